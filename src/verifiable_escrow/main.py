"""ASGI entry point for the escrow service.

``create_app`` wires middleware, the REST routers and (optionally) the MCP
tool server at /mcp. The lifespan hook configures logging and creates
tables in development; on shutdown it disposes of the database engine.

Run with:
    uvicorn verifiable_escrow.main:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from verifiable_escrow import __version__
from verifiable_escrow.api.middleware import setup_middleware
from verifiable_escrow.api.routes import accounts, conditions, escrow, health, registry
from verifiable_escrow.config import Settings, get_settings
from verifiable_escrow.infrastructure.database.engine import close_db, init_db
from verifiable_escrow.logging_config import get_logger, setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    setup_logging(log_level=settings.app_log_level, json_logs=not settings.is_development)
    logger.info("app.starting", env=settings.app_env, version=__version__)

    await init_db()
    logger.info("app.started", host=settings.app_host, port=settings.app_port)
    try:
        yield
    finally:
        await close_db()
        logger.info("app.stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Verifiable Escrow",
        description="Conditional escrow: funds move only when a verifiable condition holds.",
        version=__version__,
        lifespan=lifespan,
        debug=settings.app_debug,
        docs_url="/docs" if settings.is_development else None,
        redoc_url=None,
    )
    setup_middleware(app, settings)

    for module in (health, registry, escrow, conditions, accounts):
        app.include_router(module.router)

    if settings.mcp_enabled:
        from verifiable_escrow.mcp_server.tools import mcp

        app.mount("/mcp", mcp.sse_app())

    return app


app = create_app()
