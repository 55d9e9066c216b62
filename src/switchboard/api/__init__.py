"""FastAPI application for the Switchboard API.

Read-only JSON views of the agent link graph, its topology, and the
persisted conversation channels.
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from switchboard import __version__
from switchboard.api.channels import router as channels_router
from switchboard.api.health import router as health_router
from switchboard.api.links import router as links_router
from switchboard.errors import StoreError

if TYPE_CHECKING:
    from switchboard.config import Config

log = structlog.get_logger()

SHUTDOWN_DRAIN_SECONDS = 5.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle.

    On shutdown, gives queued conversation writes a short window to land.
    """
    log.info("api_starting")
    yield
    store = getattr(app.state, "store", None)
    if store is not None:
        store.drain(timeout=SHUTDOWN_DRAIN_SECONDS)
    log.info("api_stopping")


def create_app(config: "Config") -> FastAPI:
    """Create and configure the FastAPI application.

    The caller populates ``app.state`` with ``db``, ``graph``, ``topology``
    and ``store``.

    Args:
        config: Application configuration.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="Switchboard API",
        description="""
## About

Switchboard governs which agents may message each other and keeps the
history of those conversations.

- **Links**: declared agent-to-agent edges with direction and kind
- **Topology**: the full agent graph for visualization
- **Channels**: persisted conversations, their transcripts and summaries

## Authentication

None. The API is read-only.
        """,
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.config = config

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        log.error(
            "store_read_failed",
            path=request.url.path,
            error=str(exc),
            cause=str(exc.__cause__) if exc.__cause__ else None,
        )
        return JSONResponse(
            status_code=503,
            content={"detail": "conversation store unavailable"},
        )

    # Request logging middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        log.info(
            "request_start",
            method=request.method,
            path=request.url.path,
        )
        response = await call_next(request)
        log.info(
            "request_complete",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
        )
        return response

    # Register routes
    app.include_router(health_router)
    app.include_router(links_router)
    app.include_router(channels_router)

    return app
