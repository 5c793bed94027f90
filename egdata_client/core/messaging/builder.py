from typing import Any, Union

from .schema import SystemMessage, MsgLevel, MsgTopic


class MessageBuilder:
    """Builds SystemMessages; topics may be given as MsgTopic or plain text."""

    def build(self, level: MsgLevel, topic: Union[MsgTopic, str], body: str, payload: Any = None) -> SystemMessage:
        if isinstance(topic, MsgTopic):
            topic = topic.value
        return SystemMessage(level, str(topic), body, payload=payload)

    def info(self, topic, body: str, data: Any = None) -> SystemMessage:
        return self.build(MsgLevel.INFO, topic, body, data)

    def success(self, topic, body: str, data: Any = None) -> SystemMessage:
        return self.build(MsgLevel.SUCCESS, topic, body, data)

    def warning(self, topic, body: str, data: Any = None) -> SystemMessage:
        return self.build(MsgLevel.WARNING, topic, body, data)

    def error(self, topic, body: str, exc: BaseException = None) -> SystemMessage:
        return self.build(MsgLevel.ERROR, topic, body, exc)
