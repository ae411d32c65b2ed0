"""FlowMiner FastAPI application entry point.

Configures the FastAPI app with:
- CORS middleware
- Lifespan events for the database connection pool
- Route registration (health, patterns, templates)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flowminer import __version__
from flowminer.api.routes import health, patterns, templates
from flowminer.core.config import get_settings
from flowminer.core.database import create_engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the PostgreSQL pool on startup and dispose of it on shutdown."""
    settings = get_settings()

    engine, session_factory = create_engine(settings)
    app.state.db_engine = engine
    app.state.db_session_factory = session_factory
    logger.info("PostgreSQL connection pool initialized")

    yield

    await engine.dispose()
    logger.info("PostgreSQL connection pool closed")


def create_app() -> FastAPI:
    """Build the FastAPI application."""
    settings = get_settings()
    logging.getLogger("flowminer").setLevel(settings.log_level.upper())

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(patterns.router)
    app.include_router(templates.router)
    return app


app = create_app()
