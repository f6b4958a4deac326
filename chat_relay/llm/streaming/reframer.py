"""
SSE re-framer: drives one stream session from upstream bytes to SSE records.

State machine: INIT -> STREAMING -> {DONE, ERROR}. The outbound writer is
closed exactly once, on every exit path, together with the upstream response.
"""

from __future__ import annotations

import uuid
from typing import Protocol

import anyio
import httpx
import structlog
from anyio.streams.memory import MemoryObjectSendStream
from sse_starlette.sse import ServerSentEvent

from ..exceptions import StreamError
from .models import EventKind, OutboundSSERecord, SessionState
from .parser import FrameDecoder

logger = structlog.get_logger(__name__)


class EventWriter(Protocol):
    """Outbound side of a session."""

    async def write(self, record: OutboundSSERecord) -> None: ...

    async def close(self) -> None: ...


class ChannelWriter:
    """EventWriter backed by an anyio memory object stream.

    ``send`` suspends until the response side receives the event, which
    throttles how fast upstream bytes are pulled.
    """

    def __init__(self, send_stream: MemoryObjectSendStream[ServerSentEvent]):
        self._send_stream = send_stream

    async def write(self, record: OutboundSSERecord) -> None:
        try:
            await self._send_stream.send(record.to_event())
        except (anyio.BrokenResourceError, anyio.ClosedResourceError) as e:
            raise StreamError("Outbound stream closed by client") from e

    async def close(self) -> None:
        await self._send_stream.aclose()


class StreamSession:
    """One client connection: one upstream response, one outbound writer."""

    def __init__(
        self,
        response: httpx.Response,
        *,
        start_message: str,
        decoder: FrameDecoder | None = None,
        session_id: str | None = None,
    ):
        self.response = response
        self.start_message = start_message
        self.decoder = decoder or FrameDecoder()
        self.session_id = session_id or uuid.uuid4().hex
        self.state = SessionState.INIT
        self.records_written = 0
        self.dropped_after_done = 0
        self._done_written = False
        self._closed = False
        self._log = logger.bind(session_id=self.session_id)

    async def run(self, writer: EventWriter) -> SessionState:
        """Relay the upstream body to ``writer`` and return the final state."""
        self._log.info("Stream session started")
        try:
            await self._write(writer, OutboundSSERecord.start(self.start_message))
            self.state = SessionState.STREAMING

            async for event in self.decoder.decode(self.response.aiter_text()):
                if event.kind is EventKind.TERMINAL:
                    await self._write_done(writer)
                elif self._done_written:
                    # Upstream is drained until it closes; nothing follows done
                    self.dropped_after_done += 1
                    self._log.debug("Dropping content after done")
                elif event.payload:
                    await self._write(writer, OutboundSSERecord.message(event.payload))

            # Transport closed without a sentinel still ends in DONE
            await self._write_done(writer)
            self.state = SessionState.DONE

        except anyio.get_cancelled_exc_class():
            self.state = SessionState.ERROR
            self._log.warning("Stream session cancelled", records=self.records_written)
            raise

        except Exception as e:
            self.state = SessionState.ERROR
            self._log.error(
                "Stream session failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            await self._write_error(writer, e)

        finally:
            with anyio.CancelScope(shield=True):
                await self.close(writer)

        self._log.info(
            "Stream session finished",
            state=self.state.value,
            records=self.records_written,
            dropped_after_done=self.dropped_after_done,
            decoder=self.decoder.get_stats(),
        )
        return self.state

    async def _write(self, writer: EventWriter, record: OutboundSSERecord) -> None:
        await writer.write(record)
        self.records_written += 1

    async def _write_done(self, writer: EventWriter) -> None:
        if self._done_written:
            return
        self._done_written = True
        await self._write(writer, OutboundSSERecord.done())

    async def _write_error(self, writer: EventWriter, error: Exception) -> None:
        message = str(error) or type(error).__name__
        try:
            await self._write(writer, OutboundSSERecord.error(message))
        except Exception as e:
            # Writer is already broken; the session still closes below
            self._log.warning("Could not deliver error record", error_message=str(e))

    async def close(self, writer: EventWriter) -> None:
        """Close the upstream response and the writer; later calls are no-ops.

        Also used as the response's background task, so a session whose
        ``run`` never started still releases its upstream connection.
        """
        if self._closed:
            return
        self._closed = True
        try:
            await self.response.aclose()
        finally:
            await writer.close()
