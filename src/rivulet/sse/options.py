"""Per-instance Rivulet options."""

from __future__ import annotations

from pathlib import Path  # noqa: TCH003 - Pydantic needs Path at runtime

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_STREAM_HEADERS: dict[str, str] = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


class RivuletOptions(BaseModel):
    """Options accepted by ``Rivulet(event_source, prefix, options)``."""

    model_config = ConfigDict(frozen=True)

    # Browser-side EventSource polyfill, served at <prefix>/<polyfill_route>
    polyfill: Path | None = None
    polyfill_route: str = "event-source.js"
    # When set, every stream under the prefix subscribes to this channel
    channel: str | None = None
    headers: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_STREAM_HEADERS))

    @field_validator("polyfill_route")
    @classmethod
    def _strip_slashes(cls, value: str) -> str:
        route = value.strip("/")
        if not route:
            msg = "polyfill_route must not be empty"
            raise ValueError(msg)
        return route

    @field_validator("channel")
    @classmethod
    def _non_empty_channel(cls, value: str | None) -> str | None:
        if value is not None and not value:
            msg = "channel must not be empty"
            raise ValueError(msg)
        return value
