"""SSE channel routing, fan-out and wire formatting."""

from rivulet.sse.formatter import format_event
from rivulet.sse.options import RivuletOptions
from rivulet.sse.publisher import Publisher
from rivulet.sse.rivulet import Rivulet
from rivulet.sse.router import RivuletMiddleware

__all__ = [
    "Publisher",
    "Rivulet",
    "RivuletMiddleware",
    "RivuletOptions",
    "format_event",
]
