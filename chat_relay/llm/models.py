"""
Core completion dataclasses.

This module provides the request-side structures sent to the provider:
- Message roles
- Chat messages
- Completion requests and their JSON payload
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class MessageRole(Enum):
    """OpenAI-compatible message roles."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    """Single chat message; immutable once built."""
    role: MessageRole
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass(frozen=True)
class CompletionRequest:
    """Outbound completion request owned by one upstream call."""
    model: str
    messages: tuple[ChatMessage, ...]
    stream: bool = False

    @classmethod
    def build(
        cls, model: str, system_prompt: str, message: str, stream: bool = False
    ) -> CompletionRequest:
        """Build the system-then-user message sequence."""
        return cls(
            model=model,
            messages=(
                ChatMessage(MessageRole.SYSTEM, system_prompt),
                ChatMessage(MessageRole.USER, message),
            ),
            stream=stream,
        )

    def to_payload(self) -> dict[str, Any]:
        """Provider JSON body. ``stream`` is only sent when requested."""
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_dict() for m in self.messages],
        }
        if self.stream:
            payload["stream"] = True
        return payload
