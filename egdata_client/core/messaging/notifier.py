"""
Core - Notifier

Sink the engine calls to surface transitions to the outside world.
Every message is mirrored to loguru, emitted on the synchronous message
bus, and published as a log event when an EventBus is attached.
"""
from typing import Any, Optional
from loguru import logger

from ..events import Signal, Events
from .builder import MessageBuilder
from .schema import SystemMessage, MsgTopic

class Notifier:
    """
    Structured notification sink.
    
    Usage:
        notifier = Notifier()
        notifier.bus.connect(print)
        notifier.info("Starting scan for Epic Games...", topic=MsgTopic.SCANNER)
    """

    def __init__(self, bus: Optional[Signal] = None, event_bus=None):
        self.bus = bus or Signal("SystemBus")
        self.event_bus = event_bus
        self.builder = MessageBuilder()

    def broadcast(self, msg: SystemMessage) -> None:
        """Send message to all subscribers (UI, logs)."""
        logger.opt(depth=2).log(msg.level.value, f"[{msg.topic}] {msg.body}")
        self.bus.emit(msg)
        if self.event_bus is not None:
            self.event_bus.publish_sync(Events.LOG, msg)

    def publish(self, event: str, data: Any = None) -> None:
        """Publish a domain event (registry updated, batch completed)."""
        if self.event_bus is not None:
            self.event_bus.publish_sync(event, data)

    def info(self, body: str, topic: str = MsgTopic.SYSTEM.value, data: Any = None) -> None:
        self.broadcast(self.builder.info(topic, body, data))

    def success(self, body: str, topic: str = MsgTopic.SYSTEM.value, data: Any = None) -> None:
        self.broadcast(self.builder.success(topic, body, data))

    def warning(self, body: str, topic: str = MsgTopic.SYSTEM.value, data: Any = None) -> None:
        self.broadcast(self.builder.warning(topic, body, data))

    def error(self, body: str, topic: str = MsgTopic.SYSTEM.value, exc: Exception = None) -> None:
        self.broadcast(self.builder.error(topic, body, exc))
