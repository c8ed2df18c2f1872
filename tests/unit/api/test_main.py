"""Tests for the bundled FastAPI host app.

Plain requests go through httpx's ASGI transport; the stream itself is
driven with a fake client so the test does not hang on the open body.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient
from streaming import FakeClient, make_scope, stop, wait_until

from rivulet.api.main import create_app
from rivulet.sse.rivulet import Rivulet

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

    from fastapi import FastAPI


@pytest.fixture
def rivulet() -> Rivulet:
    return Rivulet(None, "rivulets")


@pytest.fixture
def app(rivulet: Rivulet) -> FastAPI:
    return create_app(rivulet)


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def test_health(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["channels"] == 0
    assert body["subscribers"] == 0


async def test_health_counts_subscribers(client: AsyncClient, rivulet: Rivulet) -> None:
    rivulet.publisher.subscribe("a", lambda payload, event_name=None: None)
    rivulet.publisher.subscribe("b", lambda payload, event_name=None: None)

    body = (await client.get("/api/v1/health")).json()

    assert body["channels"] == 2
    assert body["subscribers"] == 2


async def test_publish_without_listeners(client: AsyncClient) -> None:
    response = await client.post("/api/v1/channels/test/events", json={"data": "HELLO"})

    assert response.status_code == 200
    assert response.json() == {"channel": "test", "event": None, "delivered": 0}


async def test_publish_reaches_subscribers(client: AsyncClient, rivulet: Rivulet) -> None:
    received: list[tuple[Any, str | None]] = []
    rivulet.publisher.subscribe(
        "test", lambda payload, event_name=None: received.append((payload, event_name))
    )

    response = await client.post(
        "/api/v1/channels/test/events",
        json={"data": {"id": 1}, "event": "created"},
    )

    assert response.json()["delivered"] == 1
    assert received == [({"id": 1}, "created")]


async def test_publish_rejects_malformed_event_name(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/channels/test/events",
        json={"data": 1, "event": "bad\nname"},
    )

    assert response.status_code == 422
    assert response.json()["code"] == "invalid_event_name"


async def test_non_stream_paths_reach_the_app(client: AsyncClient) -> None:
    response = await client.get("/rivuletsX/test")

    assert response.status_code == 404


async def test_stream_receives_published_event(
    app: FastAPI, client: AsyncClient, rivulet: Rivulet
) -> None:
    browser = FakeClient()
    scope = make_scope("/rivulets/test")
    task = asyncio.create_task(app(scope, browser.receive, browser.send))
    await wait_until(lambda: rivulet.publisher.subscriber_count("test") == 1)

    response = await client.post(
        "/api/v1/channels/test/events",
        json={"data": "HELLO", "event": "tricky"},
    )
    await wait_until(lambda: len(browser.writes) == 1)

    assert response.json()["delivered"] == 1
    assert browser.headers["content-type"] == "text/event-stream"
    assert browser.writes == [b'event: tricky\ndata: "HELLO"\n\n']

    await stop(task, browser)
    assert rivulet.publisher.subscriber_count() == 0


async def test_polyfill_is_served_by_the_app(tmp_path: Path) -> None:
    polyfill = tmp_path / "event-source.js"
    polyfill.write_text("window.EventSource = window.EventSource || {};\n")
    app = create_app(Rivulet(None, "rivulets", {"polyfill": polyfill}))

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/rivulets/event-source.js")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/javascript"
    assert "window.EventSource" in response.text


async def test_missing_polyfill_is_a_server_error(tmp_path: Path) -> None:
    app = create_app(Rivulet(None, "rivulets", {"polyfill": tmp_path / "missing.js"}))

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/rivulets/event-source.js")

    assert response.status_code == 500
