"""Shared test fixtures."""

from __future__ import annotations

import pytest
from streaming import Downstream, Emitter

from rivulet.sse.rivulet import Rivulet


@pytest.fixture
def rivulet() -> Rivulet:
    return Rivulet(None, "rivulets")


@pytest.fixture
def emitter() -> Emitter:
    return Emitter()


@pytest.fixture
def downstream() -> Downstream:
    return Downstream()
