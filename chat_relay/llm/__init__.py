"""
Completion provider integration.

This package provides:
- Request dataclasses (messages, completion requests)
- The upstream HTTP client
- The error taxonomy shared by every layer
"""

from __future__ import annotations

from .exceptions import (
    ErrorKind,
    ParseError,
    RelayError,
    StreamError,
    UpstreamError,
    ValidationError,
)
from .models import ChatMessage, CompletionRequest, MessageRole
from .client import UpstreamClient, require_message

__all__ = [
    "ChatMessage",
    "CompletionRequest",
    "ErrorKind",
    "MessageRole",
    "ParseError",
    "RelayError",
    "StreamError",
    "UpstreamClient",
    "UpstreamError",
    "ValidationError",
    "require_message",
]
