"""Pydantic v2 request/response schemas for the bundled host app."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str
    channels: int
    subscribers: int
    version: str


class PublishRequest(BaseModel):
    """Event to fan out to every stream on a channel."""

    data: Any = None
    event: str | None = Field(default=None, min_length=1)


class PublishResponse(BaseModel):
    channel: str
    event: str | None
    delivered: int
