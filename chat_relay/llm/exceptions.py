"""
Error taxonomy for the chat relay.

Every failure carries an explicit ``ErrorKind`` so the HTTP and GraphQL
layers can decide how to surface it without inspecting exception types:
- validation: bad caller input, rejected before any network call
- upstream: the completion provider answered with a non-success status
- parse: a single malformed stream line (recovered locally)
- stream: failure after SSE framing has started
"""

from __future__ import annotations

from enum import Enum

HTTP_BAD_REQUEST = 400
HTTP_BAD_GATEWAY = 502


class ErrorKind(Enum):
    """Failure categories of the relay."""
    VALIDATION = "validation"
    UPSTREAM = "upstream"
    PARSE = "parse"
    STREAM = "stream"


class RelayError(Exception):
    """Base relay error with kind, status and raw body context."""

    kind: ErrorKind = ErrorKind.STREAM

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body


class ValidationError(RelayError):
    """Empty or missing required input."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("status_code", HTTP_BAD_REQUEST)
        super().__init__(message, **kwargs)


class UpstreamError(RelayError):
    """Completion provider returned a non-success status or was unreachable."""

    kind = ErrorKind.UPSTREAM

    def __init__(self, message: str, status_code: int, body: str = ""):
        super().__init__(message, status_code=status_code, body=body)


class ParseError(RelayError):
    """A single decoded line could not be parsed."""

    kind = ErrorKind.PARSE

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line


class StreamError(RelayError):
    """Failure during the streaming phase, after framing has started."""

    kind = ErrorKind.STREAM
