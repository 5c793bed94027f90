"""
Agent Core - Application Infrastructure.

Provides the pieces every background system is built on:
- ServiceLocator: explicit system registry and start/stop ordering
- BaseSystem: Abstract base for long-lived systems
- ConfigManager: Settings with persistence and change signals
- EventBus / Signal: Outward notifications
- Notifier: Structured log messages for the UI

Usage:
    from egdata_client.core import ServiceLocator, AgentPaths

    locator = ServiceLocator(AgentPaths())
    locator.register_system(MySystem)
    await locator.start_all()
"""
from .base_system import BaseSystem
from .locator import ServiceLocator
from .config import ConfigManager, SettingsConfig
from .paths import AgentPaths
from .events import Signal, EventBus, Events
from .messaging import Notifier, SystemMessage, MsgLevel, MsgTopic
from .errors import (
    AgentError,
    NotFoundError,
    ManifestIOError,
    ManifestParseError,
    LockError,
    NetworkError,
    RemoteRejectedError,
)

__all__ = [
    "BaseSystem",
    "ServiceLocator",
    "ConfigManager",
    "SettingsConfig",
    "AgentPaths",
    "Signal",
    "EventBus",
    "Events",
    "Notifier",
    "SystemMessage",
    "MsgLevel",
    "MsgTopic",
    "AgentError",
    "NotFoundError",
    "ManifestIOError",
    "ManifestParseError",
    "LockError",
    "NetworkError",
    "RemoteRejectedError",
]
