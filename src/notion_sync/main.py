"""FastAPI application factory.

Creates the app with logging middleware, metrics middleware, lifespan
events that build (and tear down) the sync runtime, and the v1 API router.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.requests import Request
from fastapi.responses import Response

from src.notion_sync.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.notion_sync.api.v1.router import router as v1_router
from src.notion_sync.core.monitoring import MetricsMiddleware, get_metrics_response
from src.notion_sync.core.store import close_redis
from src.notion_sync.runtime import SyncRuntime, build_runtime


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: build the runtime on startup, close on shutdown.

    A runtime already placed on ``app.state`` (tests, embedding) is used
    as-is and left open.
    """
    log = structlog.get_logger(__name__)
    configure_structlog()

    owns_runtime = getattr(app.state, "runtime", None) is None
    if owns_runtime:
        app.state.runtime = await build_runtime()

    log.info("app.started", scheduler=app.state.runtime.scheduler.backend)
    yield

    if owns_runtime:
        await app.state.runtime.close()
        app.state.runtime = None
        await close_redis()
    log.info("app.stopped")


def create_app(runtime: SyncRuntime | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Notion Status Sync",
        version="0.1.0",
        description="Mirrors post lifecycle status changes into a Notion database",
        lifespan=lifespan,
    )
    app.state.runtime = runtime

    # Middleware is added in reverse order (last added = outermost)

    # Logging middleware (logs every request with timing)
    app.add_middleware(LoggingMiddleware)

    # Metrics middleware (outermost -- records Prometheus metrics for all requests)
    app.add_middleware(MetricsMiddleware)

    app.include_router(v1_router)

    # Prometheus metrics endpoint (infrastructure route, outside v1 router)
    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


# Module-level app for uvicorn
app = create_app()
