"""
HTTP client for the completion provider.

One invocation issues exactly one POST; there is no retry. Input is
validated before any network activity and non-success statuses fail fast
with the provider's raw body attached.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from ..config import Configuration
from .exceptions import HTTP_BAD_GATEWAY, UpstreamError, ValidationError
from .models import CompletionRequest

logger = structlog.get_logger(__name__)

EMPTY_MESSAGE_ERROR = "消息不能为空"
UPSTREAM_FAILURE_PREFIX = "豆包 API 调用失败"


def require_message(message: str | None) -> str:
    """Fail with ValidationError for missing or whitespace-only input."""
    if message is None or not message.strip():
        raise ValidationError(EMPTY_MESSAGE_ERROR)
    return message


class UpstreamClient:
    """Completion provider client with optional incremental delivery."""

    def __init__(
        self,
        config: dict[str, Any],
        api_key: str,
        *,
        timeout: httpx.Timeout | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        # Validate required configuration parameters
        required_keys = ["base_url", "model", "default_system_prompt"]
        for key in required_keys:
            if key not in config:
                raise ValueError(
                    f"Required upstream configuration parameter '{key}' not found. "
                    "All upstream parameters must be explicitly configured."
                )

        self.config: dict[str, Any] = config
        self.endpoint: str = config["base_url"]
        self.model: str = config["model"]
        self.default_system_prompt: str = config["default_system_prompt"]
        self.client: httpx.AsyncClient = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout or httpx.Timeout(30.0),
            transport=transport,
        )

    @classmethod
    def from_configuration(
        cls,
        configuration: Configuration,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> UpstreamClient:
        """Build a client from a ``Configuration`` instance."""
        http_config = configuration.get_http_client_config()
        timeout = httpx.Timeout(
            connect=http_config["connect_timeout"],
            read=http_config["read_timeout"],
            write=http_config["write_timeout"],
            pool=http_config["pool_timeout"],
        )
        return cls(
            configuration.get_upstream_config(),
            configuration.upstream_api_key,
            timeout=timeout,
            transport=transport,
        )

    def build_request(
        self, message: str, system_prompt: str | None = None, stream: bool = False
    ) -> CompletionRequest:
        """Validate input and build the system-then-user request."""
        require_message(message)
        return CompletionRequest.build(
            model=self.model,
            system_prompt=system_prompt or self.default_system_prompt,
            message=message,
            stream=stream,
        )

    async def complete(
        self, message: str, system_prompt: str | None = None
    ) -> dict[str, Any]:
        """One-shot completion; returns the provider body unmodified."""
        request = self.build_request(message, system_prompt, stream=False)
        response = await self._send(request)
        try:
            await self._raise_for_status(response)
            await response.aread()
            return response.json()
        finally:
            await response.aclose()

    async def open_stream(
        self, message: str, system_prompt: str | None = None
    ) -> httpx.Response:
        """
        Start an incremental completion.

        Returns the open response with headers read and body unread. The
        caller owns it and must close it.
        """
        request = self.build_request(message, system_prompt, stream=True)
        response = await self._send(request)
        try:
            await self._raise_for_status(response)
        except UpstreamError:
            await response.aclose()
            raise
        return response

    async def _send(self, request: CompletionRequest) -> httpx.Response:
        http_request = self.client.build_request(
            "POST", self.endpoint, json=request.to_payload()
        )
        try:
            return await self.client.send(http_request, stream=True)
        except httpx.HTTPError as e:
            logger.error(
                "Upstream request failed", error=str(e), stream=request.stream
            )
            raise UpstreamError(
                f"{UPSTREAM_FAILURE_PREFIX}: {e!s}",
                status_code=HTTP_BAD_GATEWAY,
                body=str(e),
            ) from e

    @staticmethod
    async def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        await response.aread()
        error_text = response.text
        logger.error(
            "Upstream returned error status",
            status_code=response.status_code,
            body=error_text[:500],
        )
        raise UpstreamError(
            f"{UPSTREAM_FAILURE_PREFIX}: {error_text}",
            status_code=response.status_code,
            body=error_text,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
