"""Stream-access descriptor minting."""

from __future__ import annotations

import uuid
from urllib.parse import urlencode

import structlog

from ..llm.client import require_message

STREAM_PATH = "/stream"

logger = structlog.get_logger(__name__)


class SessionGateway:
    """
    Mints stream URLs without contacting the provider.

    The token is not stored: the stream endpoint serves whatever
    message/systemPrompt pair its query string carries.
    """

    def __init__(self, default_system_prompt: str):
        self.default_system_prompt = default_system_prompt

    def chat_stream(
        self, message: str, system_prompt: str | None = None, *, origin: str
    ) -> str:
        require_message(message)
        token = str(uuid.uuid4())
        query = urlencode({
            "message": message,
            "systemPrompt": system_prompt or self.default_system_prompt,
        })
        logger.info("Minted stream session", session_token=token)
        return f"{origin.rstrip('/')}{STREAM_PATH}/{token}?{query}"
