"""
Messaging - Structured log messages surfaced to the UI.
"""
from .schema import SystemMessage, MsgLevel, MsgTopic
from .builder import MessageBuilder
from .notifier import Notifier

__all__ = ["SystemMessage", "MsgLevel", "MsgTopic", "MessageBuilder", "Notifier"]
