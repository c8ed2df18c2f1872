"""Binds one streaming request to a Publisher channel.

``EventStreamConnection`` is the per-connection subscription: it owns the
handler registered on the Publisher, a queue of formatted frames, and the
idempotent ``close`` that unsubscribes it.

``EventStreamResponse`` is the ASGI response that writes those frames.
It runs two coroutines side by side, like Starlette's StreamingResponse:

1. a writer draining the connection queue into ``http.response.body``
2. a disconnect listener awaiting ``http.disconnect`` from ``receive``

The disconnect listener calls ``close`` synchronously, so the subscription
is gone before the next publish. The response never finishes on its own
and no idle timeout is applied to it.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any

import structlog
from starlette.responses import Response

from rivulet.core.exceptions import SerializationError
from rivulet.sse.formatter import format_event
from rivulet.sse.options import DEFAULT_STREAM_HEADERS

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Mapping

    from starlette.types import Receive, Scope, Send

    from rivulet.sse.publisher import Publisher

logger = structlog.get_logger()

EVENT_STREAM_MEDIA_TYPE = "text/event-stream"


class EventStreamConnection:
    """One open SSE connection subscribed to one channel."""

    def __init__(
        self,
        publisher: Publisher,
        channel: str,
        on_close: Callable[[EventStreamConnection], None] | None = None,
    ) -> None:
        self.channel = channel
        self.closed = False
        self._publisher = publisher
        self._on_close = on_close
        self._loop = asyncio.get_running_loop()
        # None is the close sentinel
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self.subscription_id = publisher.subscribe(channel, self.deliver)

    def deliver(self, payload: Any, event_name: str | None = None) -> None:
        """Publisher handler: format the event and queue it for this client."""
        if self.closed:
            logger.debug(
                "rivulet_stale_delivery_skipped",
                channel=self.channel,
                subscription_id=self.subscription_id,
            )
            return
        try:
            chunk = format_event(payload, event_name)
        except SerializationError as exc:
            logger.warning(
                "rivulet_serialization_failed",
                channel=self.channel,
                subscription_id=self.subscription_id,
                event_name=event_name,
                error=exc.message,
            )
            return
        self.write(chunk)

    def write(self, chunk: bytes) -> None:
        if not self.closed:
            self._put(chunk)

    def close(self) -> None:
        """Unsubscribe and stop the writer. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        self._publisher.unsubscribe(self.subscription_id)
        if not self._loop.is_closed():
            self._put(None)
        if self._on_close is not None:
            self._on_close(self)

        logger.info(
            "rivulet_connection_closed",
            channel=self.channel,
            subscription_id=self.subscription_id,
        )

    async def frames(self) -> AsyncIterator[bytes]:
        """Yield queued frames until the connection closes."""
        while True:
            chunk = await self._queue.get()
            # Frames queued before close but not yet sent are dropped
            if chunk is None or self.closed:
                return
            yield chunk

    def _put(self, item: bytes | None) -> None:
        # asyncio.Queue is not thread-safe; hop onto the owning loop if needed
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._queue.put_nowait(item)
        else:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)


class EventStreamResponse(Response):
    """Long-lived ``text/event-stream`` response fed by an EventStreamConnection."""

    def __init__(
        self,
        connection: EventStreamConnection,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.connection = connection
        self.status_code = 200
        self.media_type = None
        self.background = None
        self.client_disconnected = False
        if headers is None:
            headers = DEFAULT_STREAM_HEADERS
        merged = {name: value for name, value in headers.items() if name.lower() != "content-type"}
        # Set verbatim; Starlette would otherwise append a charset to text/* types
        merged["content-type"] = EVENT_STREAM_MEDIA_TYPE
        self.init_headers(merged)

    async def listen_for_disconnect(self, receive: Receive) -> None:
        try:
            while True:
                message = await receive()
                if message["type"] == "http.disconnect":
                    self.client_disconnected = True
                    return
        finally:
            self.connection.close()

    async def stream(self, send: Send) -> None:
        await send(
            {
                "type": "http.response.start",
                "status": self.status_code,
                "headers": self.raw_headers,
            }
        )
        async for chunk in self.connection.frames():
            await send({"type": "http.response.body", "body": chunk, "more_body": True})
        # Closed server-side (shutdown): end the body cleanly
        if not self.client_disconnected:
            await send({"type": "http.response.body", "body": b"", "more_body": False})

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        logger.info(
            "rivulet_stream_opened",
            channel=self.connection.channel,
            subscription_id=self.connection.subscription_id,
        )
        listener = asyncio.create_task(self.listen_for_disconnect(receive))
        try:
            await self.stream(send)
        finally:
            self.connection.close()
            listener.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await listener


def bind(
    publisher: Publisher,
    channel: str,
    headers: Mapping[str, str] | None = None,
    on_close: Callable[[EventStreamConnection], None] | None = None,
) -> EventStreamResponse:
    """Subscribe a new connection to ``channel`` and return its response."""
    connection = EventStreamConnection(publisher, channel, on_close=on_close)
    return EventStreamResponse(connection, headers=headers)
