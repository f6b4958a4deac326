"""
HTTP entry point: banner, SSE stream endpoint and the GraphQL engine.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from functools import partial

import anyio
import httpx
import structlog
import uvicorn
from ariadne.asgi import GraphQL
from ariadne.explorer import ExplorerHttp405
from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from sse_starlette.sse import EventSourceResponse
from starlette.background import BackgroundTask

from .config import Configuration
from .gateway.query import QueryGateway
from .gateway.schema import build_schema, make_context_factory
from .gateway.sessions import STREAM_PATH, SessionGateway
from .llm.client import UpstreamClient
from .llm.exceptions import ErrorKind, RelayError
from .llm.streaming import ChannelWriter, StreamSession
from .logging_utils import RelayErrorHandler, configure_logging, operation_context

DEFAULT_BANNER = (
    "欢迎使用 Chat Workers GraphQL API！\n请访问 /graphql 端点使用 GraphQL 接口。"
)
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}

logger = structlog.get_logger(__name__)


def create_app(
    configuration: Configuration | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    Build the application. The GraphQL schema and the upstream client are
    created here, once, before any connection is accepted.

    Args:
        configuration: Loaded configuration; read from config.yaml if omitted
        transport: Optional httpx transport for the upstream client

    Returns:
        Configured FastAPI application
    """
    configuration = configuration or Configuration()
    server_config = configuration.get_server_config()
    streaming_config = configuration.get_streaming_config()

    upstream = UpstreamClient.from_configuration(configuration, transport=transport)
    query_gateway = QueryGateway(upstream)
    session_gateway = SessionGateway(upstream.default_system_prompt)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        logger.info("Chat relay started", model=upstream.model)
        try:
            yield
        finally:
            await upstream.close()
            logger.info("Chat relay shutdown complete")

    app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

    cors_config = server_config["cors"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_config["allow_origins"],
        allow_methods=cors_config["allow_methods"],
        allow_headers=cors_config["allow_headers"],
    )

    banner = server_config.get("banner", DEFAULT_BANNER)

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return banner

    @app.get(STREAM_PATH + "/{session_token}")
    async def stream_chat(
        session_token: str,
        message: str | None = None,
        system_prompt: str | None = Query(default=None, alias="systemPrompt"),
    ) -> Response:
        try:
            async with operation_context(
                "open_stream", context={"session_token": session_token}
            ):
                upstream_response = await upstream.open_stream(message, system_prompt)
        except RelayError as e:
            status, _category = RelayErrorHandler.classify_error(e)
            if e.kind is ErrorKind.UPSTREAM:
                return PlainTextResponse(e.body or e.message, status_code=status)
            return JSONResponse({"error": e.message}, status_code=status)

        session = StreamSession(
            upstream_response,
            start_message=streaming_config["start_message"],
            session_id=session_token,
        )
        send_stream, receive_stream = anyio.create_memory_object_stream(
            streaming_config["send_buffer_size"]
        )
        writer = ChannelWriter(send_stream)
        return EventSourceResponse(
            receive_stream,
            data_sender_callable=partial(session.run, writer),
            headers=SSE_HEADERS,
            ping=streaming_config["ping_interval"],
            sep="\n",
            background=BackgroundTask(session.close, writer),
        )

    graphql_app = GraphQL(
        build_schema(),
        context_value=make_context_factory(query_gateway, session_gateway),
        explorer=ExplorerHttp405(),
    )
    app.add_route(server_config["graphql_path"], graphql_app, methods=["GET", "POST"])

    return app


def run() -> None:
    """Console entry point: configure logging and serve with uvicorn."""
    configuration = Configuration()
    configure_logging(**configuration.get_logging_config())
    server_config = configuration.get_server_config()

    uvicorn.run(
        create_app(configuration),
        host=server_config["host"],
        port=server_config["port"],
        log_config=None,
    )


if __name__ == "__main__":
    run()
