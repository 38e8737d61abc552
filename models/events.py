"""Notification payloads pushed by the analysis backend."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from config.exceptions import EventPayloadError
from models.enums import Channel


def _require(payload: dict, key: str, channel: Channel):
    if key not in payload:
        raise EventPayloadError(channel.value, f"Missing field '{key}'")
    return payload[key]


def _as_int(value, key: str, channel: Channel) -> int:
    if isinstance(value, bool):
        raise EventPayloadError(channel.value, f"Field '{key}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise EventPayloadError(channel.value, f"Field '{key}' must be an integer") from e


@dataclass(frozen=True)
class ProgressEvent:
    """Progress notification shared by the single-task and batch channels.

    ``status`` is kept as the raw string so statuses this core does not know
    about are stored verbatim for display.
    """
    novel_id: str
    chapter_id: Optional[int]
    status: str
    current: int = 0
    total: int = 0
    message: str = ""

    def __post_init__(self):
        if isinstance(self.status, Enum):
            object.__setattr__(self, "status", self.status.value)

    @classmethod
    def from_payload(cls, payload: dict, channel: Channel = Channel.ANALYSIS_PROGRESS) -> "ProgressEvent":
        if not isinstance(payload, dict):
            raise EventPayloadError(channel.value, "Payload must be an object")
        chapter_id = payload.get("chapter_id")
        return cls(
            novel_id=str(_require(payload, "novel_id", channel)),
            chapter_id=None if chapter_id is None else _as_int(chapter_id, "chapter_id", channel),
            status=str(_require(payload, "status", channel)),
            current=_as_int(payload.get("current", 0), "current", channel),
            total=_as_int(payload.get("total", 0), "total", channel),
            message=str(payload.get("message") or ""),
        )


@dataclass(frozen=True)
class StreamingEvent:
    """Streaming notification; ``full_content`` is the cumulative text so far."""
    chapter_id: int
    full_content: str
    chunk: str = ""

    @classmethod
    def from_payload(cls, payload: dict) -> "StreamingEvent":
        channel = Channel.ANALYSIS_STREAMING
        if not isinstance(payload, dict):
            raise EventPayloadError(channel.value, "Payload must be an object")
        full_content = _require(payload, "full_content", channel)
        if not isinstance(full_content, str):
            raise EventPayloadError(channel.value, "Field 'full_content' must be a string")
        return cls(
            chapter_id=_as_int(_require(payload, "chapter_id", channel), "chapter_id", channel),
            full_content=full_content,
            chunk=str(payload.get("chunk") or ""),
        )


@dataclass(frozen=True)
class InboundEvent:
    """One notification from any of the three channels.

    The channel tag decides the payload type: both progress channels carry a
    ProgressEvent, the streaming channel carries a StreamingEvent.
    """
    channel: Channel
    payload: Union[ProgressEvent, StreamingEvent]

    def __post_init__(self):
        if not isinstance(self.channel, Channel):
            try:
                object.__setattr__(self, "channel", Channel(self.channel))
            except ValueError as e:
                raise EventPayloadError(str(self.channel), f"Unknown channel '{self.channel}'") from e
        expected = StreamingEvent if self.channel == Channel.ANALYSIS_STREAMING else ProgressEvent
        if not isinstance(self.payload, expected):
            raise EventPayloadError(
                self.channel.value,
                f"Expected {expected.__name__}, got {type(self.payload).__name__}",
            )

    @classmethod
    def from_wire(cls, channel: str, payload: dict) -> "InboundEvent":
        """Build an event from a channel name and its decoded JSON payload."""
        try:
            tag = Channel(channel)
        except ValueError as e:
            raise EventPayloadError(str(channel), f"Unknown channel '{channel}'") from e
        if tag == Channel.ANALYSIS_STREAMING:
            return cls(tag, StreamingEvent.from_payload(payload))
        return cls(tag, ProgressEvent.from_payload(payload, tag))

    @classmethod
    def analysis_progress(cls, event: ProgressEvent) -> "InboundEvent":
        return cls(Channel.ANALYSIS_PROGRESS, event)

    @classmethod
    def batch_progress(cls, event: ProgressEvent) -> "InboundEvent":
        return cls(Channel.BATCH_PROGRESS, event)

    @classmethod
    def streaming(cls, event: StreamingEvent) -> "InboundEvent":
        return cls(Channel.ANALYSIS_STREAMING, event)
