"""
Line-framed decoder for the provider's streaming body.

Text chunks come from ``httpx.Response.aiter_text()``, which already decodes
multi-byte characters split across reads. A chunk may still end mid-line, so
the decoder keeps a carry-over buffer and every complete ``data:`` line
yields exactly one event, in arrival order.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

import structlog

from ..exceptions import ParseError
from .models import DecodedEvent

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"

logger = structlog.get_logger(__name__)


def extract_delta_content(payload: Any) -> str:
    """Return ``choices[0].delta.content``; any missing level counts as empty."""
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return ""
    delta = choices[0].get("delta") or {}
    content = delta.get("content") if isinstance(delta, dict) else None
    return content if isinstance(content, str) else ""


class FrameDecoder:
    """Decode upstream text chunks into a lazy sequence of DecodedEvent."""

    def __init__(self):
        self.stats = {
            'lines': 0,
            'events': 0,
            'skipped_lines': 0,
            'parse_errors': 0,
        }

    async def decode(
        self, chunks: AsyncIterable[str]
    ) -> AsyncIterator[DecodedEvent]:
        """
        Consume ``chunks`` and yield one event per complete data line.

        Reading continues past the ``[DONE]`` sentinel; only exhaustion of
        ``chunks`` ends the sequence. A trailing partial line is dropped.
        """
        buffer = ""

        async for chunk in chunks:
            buffer += chunk

            *lines, buffer = buffer.split("\n")
            for line in lines:
                event = self.decode_line(line)
                if event is not None:
                    self.stats['events'] += 1
                    yield event

        if buffer:
            logger.debug("Discarding incomplete trailing line", length=len(buffer))

    def decode_line(self, raw_line: str) -> DecodedEvent | None:
        """Decode one complete line; None for non-data or unparseable lines."""
        self.stats['lines'] += 1
        line = raw_line.rstrip("\r")

        if not line.startswith(DATA_PREFIX):
            self.stats['skipped_lines'] += 1
            return None

        data = line[len(DATA_PREFIX):].strip()
        if data == DONE_SENTINEL:
            return DecodedEvent.terminal()

        try:
            payload = self._parse_payload(data)
        except ParseError as e:
            self.stats['parse_errors'] += 1
            logger.warning(
                "Skipping malformed stream line",
                error=e.message,
                line=e.line[:200],
            )
            return None

        return DecodedEvent.content(extract_delta_content(payload))

    @staticmethod
    def _parse_payload(data: str) -> Any:
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            raise ParseError(f"JSON decode error: {e}", line=data) from e

    def get_stats(self) -> dict[str, int]:
        """Get decoding statistics for monitoring."""
        return self.stats.copy()
