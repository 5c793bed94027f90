"""
Core - Message Schema

Shape of the log lines shown to the user: a level the console colours by,
a topic naming the component that spoke, and the text itself.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class MsgLevel(str, Enum):
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


class MsgTopic(str, Enum):
    SYSTEM = "SYSTEM"
    SCANNER = "SCANNER"
    UPLOADER = "UPLOADER"
    SCHEDULER = "SCHEDULER"
    SETTINGS = "SETTINGS"


@dataclass(frozen=True)
class SystemMessage:
    level: MsgLevel
    topic: str
    body: str
    payload: Optional[Any] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def clock(self) -> str:
        return self.timestamp.strftime("%H:%M:%S")

    def to_dict(self) -> dict:
        """Serialized form carried by the `log-event` event."""
        return {
            "level": self.level.value,
            "message": self.body,
            "timestamp": self.clock,
        }
