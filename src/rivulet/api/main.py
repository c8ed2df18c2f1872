"""FastAPI host application serving Rivulet streams.

Run with ``uvicorn rivulet.api.main:app``. Streams are served under
``/<RIVULET_PREFIX>/<channel>``; events are published through
``POST /api/v1/channels/{channel}/events`` or ``Rivulet.send``.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rivulet.api.routes.health import VERSION
from rivulet.core.config import settings
from rivulet.core.exceptions import RivuletError
from rivulet.core.logging import configure_logging
from rivulet.sse.options import RivuletOptions
from rivulet.sse.rivulet import Rivulet
from rivulet.sse.router import RivuletMiddleware

logger = structlog.get_logger()


def build_rivulet() -> Rivulet:
    """Create a Rivulet from environment settings."""
    options = RivuletOptions(polyfill=settings.polyfill_path or None)
    return Rivulet(None, settings.prefix, options)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: end open streams on shutdown."""
    logger.info("rivulet_app_started", prefix=app.state.rivulet.prefix)
    yield
    app.state.rivulet.close()
    logger.info("rivulet_app_stopped")


def create_app(rivulet: Rivulet | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, json_output=settings.log_json)

    if rivulet is None:
        rivulet = build_rivulet()

    app = FastAPI(
        title=settings.app_name,
        version=VERSION,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.rivulet = rivulet

    app.add_middleware(RivuletMiddleware, rivulet=rivulet)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -- Exception handlers --
    @app.exception_handler(RivuletError)
    async def rivulet_error_handler(_request: Request, exc: RivuletError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "code": exc.code,
                "message": exc.message,
                "detail": exc.detail,
            },
        )

    # -- Routes --
    from rivulet.api.routes.channels import router as channels_router
    from rivulet.api.routes.health import router as health_router

    app.include_router(health_router)
    app.include_router(channels_router)

    return app


app = create_app()
