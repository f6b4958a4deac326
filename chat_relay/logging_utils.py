"""
Centralized logging and error handling utilities for the chat relay.

This module provides decorators and helper functions to standardize logging
and error classification across the codebase.

Features:
- Structured logging with contextual information
- Relay-specific error classification (HTTP status + category)
- Performance timing for operations
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, ParamSpec, TypeVar

import httpx
import structlog

from .llm.exceptions import HTTP_BAD_GATEWAY, RelayError

HTTP_INTERNAL_ERROR = 500
HTTP_GATEWAY_TIMEOUT = 504

# Type variables for generic decorators
P = ParamSpec("P")
T = TypeVar("T")
AsyncCallable = Callable[P, Awaitable[T]]

logger = structlog.get_logger(__name__)


def configure_logging(level: str = "INFO", renderer: str = "console") -> None:
    """Configure structlog on top of stdlib logging. Safe to call repeatedly."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
    )

    final_processor = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if renderer == "json"
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            final_processor,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class RelayErrorHandler:
    """Centralized relay error classification."""

    @staticmethod
    def classify_error(error: Exception) -> tuple[int, str]:
        """
        Classify an error and return an HTTP status and error category.

        Args:
            error: The exception to classify

        Returns:
            Tuple of (http_status, error_category)
        """
        if isinstance(error, RelayError):
            return error.status_code or HTTP_INTERNAL_ERROR, f"{error.kind.value}_error"
        if isinstance(error, httpx.TimeoutException | TimeoutError):
            return HTTP_GATEWAY_TIMEOUT, "timeout_error"
        if isinstance(error, httpx.HTTPError | ConnectionError | OSError):
            return HTTP_BAD_GATEWAY, "connection_error"
        return HTTP_INTERNAL_ERROR, "unknown_error"


def log_operation(
    operation: str,
) -> Callable[[AsyncCallable[P, T]], AsyncCallable[P, T]]:
    """
    Decorator for logging async operations with structured context.

    Args:
        operation: Description of the operation being performed

    Returns:
        Decorated function with logging
    """
    def decorator(func: AsyncCallable[P, T]) -> AsyncCallable[P, T]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            async with operation_context(
                operation, context={"function": func.__name__}
            ):
                return await func(*args, **kwargs)

        return wrapper
    return decorator


@asynccontextmanager
async def operation_context(
    operation: str,
    *,
    context: dict[str, Any] | None = None,
):
    """
    Async context manager for operation logging with timing.

    Failures are logged with their relay classification and re-raised.

    Yields:
        Bound logger for the operation
    """
    operation_logger = logger.bind(operation=operation, **(context or {}))
    operation_logger.info("Operation started")
    start_time = time.perf_counter()

    try:
        yield operation_logger
    except Exception as e:
        status, category = RelayErrorHandler.classify_error(e)
        operation_logger.error(
            "Operation failed",
            error_type=type(e).__name__,
            error_category=category,
            status_code=status,
            error_message=str(e),
            duration_ms=elapsed_ms(start_time),
        )
        raise

    operation_logger.info(
        "Operation completed successfully", duration_ms=elapsed_ms(start_time)
    )


def elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)
