"""Synchronous one-shot chat."""

from __future__ import annotations

from typing import Any

from ..llm.client import UpstreamClient
from ..logging_utils import log_operation

GREETING = "欢迎使用 Chat Workers GraphQL API！"


class QueryGateway:
    """Delegates to the upstream client without streaming."""

    def __init__(self, upstream: UpstreamClient):
        self.upstream = upstream

    @staticmethod
    def hello() -> str:
        return GREETING

    @log_operation("chat")
    async def chat(
        self, message: str, system_prompt: str | None = None
    ) -> dict[str, Any]:
        """Return the provider's completion body unmodified."""
        return await self.upstream.complete(message, system_prompt)
