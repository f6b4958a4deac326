"""Shared fixtures: fake completion provider and recording writers."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Iterable

import httpx
import pytest
from sse_starlette.sse import AppStatus

from chat_relay.config import Configuration
from chat_relay.llm.streaming.models import OutboundSSERecord

TEST_CONFIG = {
    "upstream": {
        "base_url": "https://provider.test/api/v3/chat/completions",
        "model": "doubao-1-5-pro-32k-250115",
        "default_system_prompt": "你是人工智能助手.",
        "http_client": {
            "connect_timeout": 5.0,
            "read_timeout": 5.0,
            "write_timeout": 5.0,
            "pool_timeout": 5.0,
        },
    },
    "streaming": {
        "start_message": "连接已建立",
        "ping_interval": 15,
        "send_buffer_size": 0,
    },
    "server": {
        "host": "127.0.0.1",
        "port": 8787,
        "graphql_path": "/graphql",
        "cors": {
            "allow_origins": ["*"],
            "allow_methods": ["POST", "GET", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
        },
    },
    "logging": {"level": "INFO", "renderer": "console"},
}


def data_line(content: str) -> bytes:
    """One provider stream line carrying a content delta."""
    payload = {"choices": [{"index": 0, "delta": {"content": content}}]}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode()


DONE_LINE = b"data: [DONE]\n\n"


async def byte_stream(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk


class FakeProvider:
    """Records requests and answers with a canned status and body chunks."""

    def __init__(
        self,
        chunks: Iterable[bytes] = (),
        status_code: int = 200,
        json_body: dict | None = None,
    ):
        self.chunks = list(chunks)
        self.status_code = status_code
        self.json_body = json_body
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.json_body is not None:
            return httpx.Response(self.status_code, json=self.json_body)
        return httpx.Response(
            self.status_code,
            headers={"content-type": "text/event-stream"},
            content=byte_stream(self.chunks),
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def sent_payload(self, index: int = 0) -> dict:
        return json.loads(self.requests[index].content)


class RecordingWriter:
    """EventWriter that keeps every record and counts close calls."""

    def __init__(self, fail_on_write: int | None = None):
        self.records: list[OutboundSSERecord] = []
        self.close_calls = 0
        self.fail_on_write = fail_on_write
        self.write_attempts = 0

    async def write(self, record: OutboundSSERecord) -> None:
        self.write_attempts += 1
        if self.fail_on_write is not None and self.write_attempts >= self.fail_on_write:
            raise ConnectionResetError("client went away")
        self.records.append(record)

    async def close(self) -> None:
        self.close_calls += 1

    @property
    def names(self) -> list[str]:
        return [r.event.value for r in self.records]


def parse_sse_body(body: str) -> list[tuple[str, str]]:
    """Split an SSE body into (event, data) pairs, ignoring comments."""
    records = []
    for block in body.replace("\r\n", "\n").split("\n\n"):
        event, data = None, []
        for line in block.split("\n"):
            if line.startswith("event: "):
                event = line[len("event: "):]
            elif line.startswith("data: "):
                data.append(line[len("data: "):])
        if event is not None:
            records.append((event, "\n".join(data)))
    return records


@pytest.fixture
def configuration(monkeypatch) -> Configuration:
    monkeypatch.setenv("DOUBAO_API_KEY", "test-key")
    return Configuration.from_dict(TEST_CONFIG)


@pytest.fixture(autouse=True)
def reset_sse_app_status(monkeypatch):
    # sse-starlette keeps a process-wide exit event bound to the first loop
    monkeypatch.setattr(AppStatus, "should_exit_event", None, raising=False)
