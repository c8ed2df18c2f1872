"""Rivulet: SSE push middleware.

Typical wiring::

    rivulet = Rivulet(None, "rivulets", {"polyfill": "static/eventsource.js"})
    app = FastAPI(middleware=[rivulet.middleware()])

    # anywhere in the process
    rivulet.send("orders", {"id": 42}, "created")

Browsers connect with ``new EventSource("/rivulets/orders")``.

When an event source is given, events it emits under the prefix name are
relayed too::

    emitter.emit("rivulets", "orders", {"id": 42}, "created")
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog
from starlette.middleware import Middleware
from starlette.responses import FileResponse

from rivulet.core.exceptions import AssetUnavailableError
from rivulet.sse.binder import bind as bind_stream
from rivulet.sse.options import RivuletOptions
from rivulet.sse.publisher import Publisher
from rivulet.sse.router import RivuletMiddleware, match_channel, normalize_prefix
from rivulet.sse.triggers import DirectTrigger, EventSourceRelay

if TYPE_CHECKING:
    from starlette.middleware.base import RequestResponseEndpoint
    from starlette.requests import Request
    from starlette.responses import Response

    from rivulet.sse.binder import EventStreamConnection, EventStreamResponse
    from rivulet.sse.triggers import EventSource

logger = structlog.get_logger()

JAVASCRIPT_MEDIA_TYPE = "application/javascript"


class Rivulet:
    """Owns one Publisher and routes matching requests onto it."""

    def __init__(
        self,
        event_source: EventSource | None,
        prefix: str,
        options: RivuletOptions | Mapping[str, Any] | None = None,
    ) -> None:
        if options is None:
            options = RivuletOptions()
        elif isinstance(options, Mapping):
            options = RivuletOptions.model_validate(options)

        self.prefix = normalize_prefix(prefix)
        self.options = options
        self.publisher = Publisher()
        self._connections: set[EventStreamConnection] = set()

        # Both triggers feed the same Publisher
        self._direct = DirectTrigger(self.publisher)
        self._relay: EventSourceRelay | None = None
        if event_source is not None:
            self._relay = EventSourceRelay(self.publisher, event_source, self.prefix.lstrip("/"))

    @property
    def polyfill_path(self) -> str:
        return f"{self.prefix}/{self.options.polyfill_route}"

    def send(self, channel: str, payload: Any, event_name: str | None = None) -> int:
        """Publish ``payload`` to every stream on ``channel``.

        Returns the number of streams the event was queued for.
        """
        return self._direct.send(channel, payload, event_name)

    def middleware(self) -> Middleware:
        """Middleware entry for ``Starlette(middleware=[...])`` / ``FastAPI(middleware=[...])``."""
        return Middleware(RivuletMiddleware, rivulet=self)

    def resolve_channel(self, path: str) -> str | None:
        """Channel for a request path, or None if the path is not ours."""
        channel = match_channel(path, self.prefix)
        if channel is None:
            return None
        return self.options.channel or channel

    async def handle(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path

        if self.options.polyfill is not None and path == self.polyfill_path:
            return self.serve_polyfill()

        channel = self.resolve_channel(path)
        if channel is None:
            return await call_next(request)

        return self.bind(channel)

    def serve_polyfill(self) -> FileResponse:
        polyfill = self.options.polyfill
        if polyfill is None or not polyfill.is_file():
            raise AssetUnavailableError(detail={"path": str(polyfill)})
        logger.debug("rivulet_polyfill_served", path=str(polyfill))
        return FileResponse(polyfill, status_code=200, media_type=JAVASCRIPT_MEDIA_TYPE)

    def bind(self, channel: str) -> EventStreamResponse:
        """Subscribe a new connection to ``channel`` and return its streaming response."""
        response = bind_stream(
            self.publisher,
            channel,
            headers=self.options.headers,
            on_close=self._connections.discard,
        )
        self._connections.add(response.connection)
        return response

    def close(self) -> None:
        """Detach the relay, end every open stream and clear the registry."""
        if self._relay is not None:
            self._relay.close()
        for connection in list(self._connections):
            connection.close()
        self._connections.clear()
        self.publisher.clear()
