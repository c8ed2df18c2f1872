"""Request routing for Rivulet.

For each request path, in order:

1. ``<prefix>/<polyfill_route>`` with a polyfill configured: serve the file
2. ``<prefix>/<channel>``: open an event stream on ``channel``
3. anything else: hand the request to the next ASGI handler
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

if TYPE_CHECKING:
    from starlette.middleware.base import RequestResponseEndpoint
    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.types import ASGIApp

    from rivulet.sse.rivulet import Rivulet


def normalize_prefix(prefix: str) -> str:
    """``"rivulets"``, ``"/rivulets"`` and ``"/rivulets/"`` all become ``"/rivulets"``."""
    segment = prefix.strip("/")
    if not segment:
        msg = "prefix must name a path segment"
        raise ValueError(msg)
    return f"/{segment}"


def match_channel(path: str, prefix: str) -> str | None:
    """Return the channel named by ``path`` under ``prefix``, or None.

    Only an exact ``<prefix>/`` boundary matches, so ``/rivuletsX/a`` does
    not match ``/rivulets``. An empty remainder is not a channel.
    """
    root = f"{prefix}/"
    if not path.startswith(root):
        return None
    return path[len(root) :] or None


class RivuletMiddleware(BaseHTTPMiddleware):
    """Starlette middleware that routes channel requests to a Rivulet."""

    def __init__(self, app: ASGIApp, rivulet: Rivulet) -> None:
        super().__init__(app)
        self.rivulet = rivulet

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        return await self.rivulet.handle(request, call_next)
