"""
Streaming-specific dataclasses for the relay.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum

from sse_starlette.sse import ServerSentEvent

SSE_LINE_SEPARATOR = "\n"


class EventKind(Enum):
    """Kinds of events decoded from the upstream body."""
    CONTENT = "content"
    TERMINAL = "terminal"


class SSEEventName(Enum):
    """Outbound Server-Sent Event names."""
    START = "start"
    MESSAGE = "message"
    DONE = "done"
    ERROR = "error"


class SessionState(Enum):
    """Lifecycle of one stream session."""
    INIT = "init"
    STREAMING = "streaming"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.DONE, SessionState.ERROR)


@dataclass(frozen=True)
class DecodedEvent:
    """One event decoded from a single upstream data line."""
    kind: EventKind
    payload: str | None = None

    @classmethod
    def content(cls, payload: str) -> DecodedEvent:
        return cls(EventKind.CONTENT, payload)

    @classmethod
    def terminal(cls) -> DecodedEvent:
        return cls(EventKind.TERMINAL)


@dataclass(frozen=True)
class OutboundSSERecord:
    """A single SSE record, written once and never mutated."""
    event: SSEEventName
    data: str

    @classmethod
    def start(cls, message: str) -> OutboundSSERecord:
        return cls(SSEEventName.START, message)

    @classmethod
    def message(cls, content: str) -> OutboundSSERecord:
        return cls(
            SSEEventName.MESSAGE,
            json.dumps({"content": content}, ensure_ascii=False),
        )

    @classmethod
    def done(cls) -> OutboundSSERecord:
        return cls(SSEEventName.DONE, "[DONE]")

    @classmethod
    def error(cls, message: str) -> OutboundSSERecord:
        return cls(SSEEventName.ERROR, message)

    def to_event(self) -> ServerSentEvent:
        """Wire form: an ``event:`` line, ``data:`` line(s), then a blank line."""
        return ServerSentEvent(
            data=self.data, event=self.event.value, sep=SSE_LINE_SEPARATOR
        )
