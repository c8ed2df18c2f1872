"""FastAPI dependencies for the bundled host app."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request  # noqa: TCH002 - FastAPI needs Request at runtime

from rivulet.sse.rivulet import Rivulet  # noqa: TCH001


def get_rivulet(request: Request) -> Rivulet:
    """Return the Rivulet instance mounted on the application."""
    return request.app.state.rivulet


RivuletDep = Annotated[Rivulet, Depends(get_rivulet)]
