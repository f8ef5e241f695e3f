"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.router import api_router
from app.core.config import Settings, get_settings
from app.core.errors import register_exception_handlers
from app.core.logging import configure_logging
from app.db.session import build_session_factory
from app.reporting.billability import BillabilityIndex
from app.reporting.sources import FlagSource
from app.repositories.activity_repository import DropdownFlagSource

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, flag_source: FlagSource | None = None) -> FastAPI:
    """Create and configure FastAPI application."""

    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if settings.billability_load_on_startup:
            # reports served before the first load completes treat everything as billable
            app.state.billability_index.load_in_background(app.state.flag_source)
        else:
            logger.info("Billability index startup load disabled")
        yield

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        openapi_url=f"{settings.api_prefix}/openapi.json",
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.session_factory = build_session_factory(settings)
    app.state.billability_index = BillabilityIndex()
    app.state.flag_source = flag_source or DropdownFlagSource(app.state.session_factory)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/", tags=["system"])
    def root() -> dict[str, str]:
        return {"service": settings.app_name, "status": "running"}

    return app


app = create_app()
