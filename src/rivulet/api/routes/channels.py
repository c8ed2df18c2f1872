"""Publish endpoint.

Endpoints:
    POST /api/v1/channels/{channel}/events  Fan an event out to a channel
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter

from rivulet.api.dependencies import RivuletDep  # noqa: TCH001
from rivulet.core.schemas import PublishRequest, PublishResponse

logger = structlog.get_logger()

router = APIRouter(tags=["channels"])


@router.post("/api/v1/channels/{channel}/events", response_model=PublishResponse)
async def publish_event(
    channel: str,
    body: PublishRequest,
    rivulet: RivuletDep,
) -> PublishResponse:
    """Publish ``body.data`` to every stream open on ``channel``."""
    delivered = rivulet.send(channel, body.data, body.event)

    logger.info(
        "rivulet_event_published",
        channel=channel,
        event_name=body.event,
        delivered=delivered,
    )

    return PublishResponse(channel=channel, event=body.event, delivered=delivered)
