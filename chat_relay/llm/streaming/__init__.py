"""
Streaming relay components.

- Frame decoding of the provider's line-framed body
- SSE re-framing with lifecycle records (start/message/done/error)
"""

from __future__ import annotations

from .models import (
    DecodedEvent,
    EventKind,
    OutboundSSERecord,
    SessionState,
    SSEEventName,
)
from .parser import FrameDecoder
from .reframer import ChannelWriter, EventWriter, StreamSession

__all__ = [
    "ChannelWriter",
    "DecodedEvent",
    "EventKind",
    "EventWriter",
    "FrameDecoder",
    "OutboundSSERecord",
    "SSEEventName",
    "SessionState",
    "StreamSession",
]
