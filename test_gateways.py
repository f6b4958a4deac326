#!/usr/bin/env python3
"""
Tests for the session and query gateways.
"""

from urllib.parse import parse_qs, urlsplit

import pytest

from chat_relay.gateway.query import GREETING, QueryGateway
from chat_relay.gateway.sessions import SessionGateway
from chat_relay.llm.client import UpstreamClient
from chat_relay.llm.exceptions import UpstreamError, ValidationError
from conftest import FakeProvider
from test_upstream_client import COMPLETION_BODY

DEFAULT_PROMPT = "你是人工智能助手."


class TestSessionGateway:
    """Stream URL minting."""

    def test_url_embeds_token_and_parameters(self):
        gateway = SessionGateway(DEFAULT_PROMPT)

        url = gateway.chat_stream("你好 world", "be terse", origin="https://relay.test/")

        parts = urlsplit(url)
        assert f"{parts.scheme}://{parts.netloc}" == "https://relay.test"
        prefix, token = parts.path.rsplit("/", 1)
        assert prefix == "/stream"
        assert len(token) == 36
        assert parse_qs(parts.query) == {
            "message": ["你好 world"],
            "systemPrompt": ["be terse"],
        }

    def test_default_system_prompt(self):
        url = SessionGateway(DEFAULT_PROMPT).chat_stream("hi", origin="http://h")

        assert parse_qs(urlsplit(url).query)["systemPrompt"] == [DEFAULT_PROMPT]

    def test_tokens_are_unique(self):
        gateway = SessionGateway(DEFAULT_PROMPT)

        urls = {gateway.chat_stream("hi", origin="http://h") for _ in range(20)}

        assert len(urls) == 20

    @pytest.mark.parametrize("message", ["", "  "])
    def test_empty_message_rejected(self, message):
        with pytest.raises(ValidationError):
            SessionGateway(DEFAULT_PROMPT).chat_stream(message, origin="http://h")


class TestQueryGateway:
    """One-shot chat passthrough."""

    def test_hello(self):
        assert QueryGateway.hello() == GREETING

    @pytest.mark.asyncio
    async def test_chat_returns_body_unmodified(self, configuration):
        provider = FakeProvider(json_body=COMPLETION_BODY)
        upstream = UpstreamClient.from_configuration(
            configuration, transport=provider.transport
        )

        result = await QueryGateway(upstream).chat("hi")

        assert result == COMPLETION_BODY
        assert "stream" not in provider.sent_payload()
        await upstream.close()

    @pytest.mark.asyncio
    async def test_chat_propagates_upstream_error(self, configuration):
        provider = FakeProvider(status_code=500, json_body={"error": "boom"})
        upstream = UpstreamClient.from_configuration(
            configuration, transport=provider.transport
        )

        with pytest.raises(UpstreamError):
            await QueryGateway(upstream).chat("hi")
        await upstream.close()
