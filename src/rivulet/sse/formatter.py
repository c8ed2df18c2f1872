"""SSE wire formatting.

A frame is an optional ``event:`` line, one ``data:`` line holding the
JSON-encoded payload, and a blank line terminator::

    event: <event_name>
    data: <json>

JSON never contains a raw line break, so a single ``data:`` line always
suffices.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

from rivulet.core.exceptions import InvalidEventNameError, SerializationError


def encode_payload(payload: Any) -> str:
    """Encode ``payload`` as compact JSON, the way browsers' ``JSON.stringify`` does."""
    if isinstance(payload, BaseModel):
        return payload.model_dump_json()
    try:
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError, RecursionError) as exc:
        raise SerializationError(
            f"Payload of type {type(payload).__name__} could not be encoded as JSON.",
            detail={"error": str(exc)},
        ) from exc


def validate_event_name(event_name: str | None) -> None:
    """Reject event names that would break SSE framing."""
    if event_name is not None and ("\n" in event_name or "\r" in event_name):
        raise InvalidEventNameError(detail={"event": event_name})


def format_event(payload: Any, event_name: str | None = None) -> bytes:
    """Format a single SSE frame as UTF-8 bytes."""
    validate_event_name(event_name)
    frame = f"data: {encode_payload(payload)}\n\n"
    if event_name is not None:
        frame = f"event: {event_name}\n{frame}"
    return frame.encode("utf-8")
