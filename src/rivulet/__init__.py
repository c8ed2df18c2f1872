"""Server-Sent-Events push middleware for Starlette and FastAPI."""

from rivulet.core.exceptions import (
    AssetUnavailableError,
    InvalidEventNameError,
    RivuletError,
    SerializationError,
)
from rivulet.sse import Publisher, Rivulet, RivuletMiddleware, RivuletOptions, format_event

__all__ = [
    "AssetUnavailableError",
    "InvalidEventNameError",
    "Publisher",
    "Rivulet",
    "RivuletError",
    "RivuletMiddleware",
    "RivuletOptions",
    "SerializationError",
    "format_event",
]
