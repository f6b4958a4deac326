#!/usr/bin/env python3
"""
Test script for logging utilities.

This validates that the centralized logging and error classification works
correctly.
"""

import httpx
import pytest
import structlog
from structlog.testing import capture_logs

from chat_relay.llm.exceptions import (
    ParseError,
    StreamError,
    UpstreamError,
    ValidationError,
)
from chat_relay.logging_utils import (
    RelayErrorHandler,
    configure_logging,
    log_operation,
    operation_context,
)


class TestRelayErrorHandler:
    """Test the RelayErrorHandler class."""

    def test_classify_validation_error(self):
        code, category = RelayErrorHandler.classify_error(ValidationError("empty"))
        assert code == 400
        assert category == "validation_error"

    def test_classify_upstream_error_keeps_status(self):
        error = UpstreamError("denied", status_code=403, body="denied")
        code, category = RelayErrorHandler.classify_error(error)
        assert code == 403
        assert category == "upstream_error"

    def test_classify_stream_error(self):
        code, category = RelayErrorHandler.classify_error(StreamError("gone"))
        assert code == 500
        assert category == "stream_error"

    def test_classify_parse_error(self):
        _code, category = RelayErrorHandler.classify_error(ParseError("bad", line="x"))
        assert category == "parse_error"

    def test_classify_timeout(self):
        code, category = RelayErrorHandler.classify_error(httpx.ReadTimeout("slow"))
        assert code == 504
        assert category == "timeout_error"

    def test_classify_connection_error(self):
        code, category = RelayErrorHandler.classify_error(
            ConnectionError("Network unreachable")
        )
        assert code == 502
        assert category == "connection_error"

    def test_classify_unknown_error(self):
        code, category = RelayErrorHandler.classify_error(RuntimeError("Unknown"))
        assert code == 500
        assert category == "unknown_error"


class TestDecorators:
    """Test logging decorators."""

    @pytest.mark.asyncio
    async def test_log_operation_success(self):

        @log_operation("test_operation")
        async def test_function(x, y):
            return x + y

        with capture_logs() as logs:
            assert await test_function(1, 2) == 3

        assert [entry["event"] for entry in logs] == [
            "Operation started", "Operation completed successfully",
        ]
        assert logs[0]["function"] == "test_function"

    @pytest.mark.asyncio
    async def test_log_operation_reraises(self):

        @log_operation("test_operation")
        async def failing_function():
            raise ValueError("Test error")

        with pytest.raises(ValueError, match="Test error"):
            await failing_function()


class TestContextManager:
    """Test operation context manager."""

    @pytest.mark.asyncio
    async def test_operation_context_success(self):
        with capture_logs() as logs:
            async with operation_context("test_operation") as logger:
                assert logger is not None

        assert logs[-1]["event"] == "Operation completed successfully"
        assert "duration_ms" in logs[-1]

    @pytest.mark.asyncio
    async def test_operation_context_logs_classified_failure(self):
        with capture_logs() as logs:
            with pytest.raises(ValidationError):
                async with operation_context(
                    "open_stream", context={"session_token": "t"}
                ):
                    raise ValidationError("empty")

        failure = logs[-1]
        assert failure["event"] == "Operation failed"
        assert failure["error_category"] == "validation_error"
        assert failure["status_code"] == 400
        assert failure["session_token"] == "t"


@pytest.mark.parametrize("renderer", ["console", "json"])
def test_configure_logging(renderer):
    configure_logging("DEBUG", renderer)
    try:
        structlog.get_logger(__name__).info("configured", renderer=renderer)
    finally:
        structlog.reset_defaults()
