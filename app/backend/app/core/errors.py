"""Reporting error taxonomy and its HTTP mapping."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ReportingError(Exception):
    """Base class for reporting failures surfaced to callers."""


class UpstreamFetchFailure(ReportingError):
    """A record or billability flag source failed to deliver its batch."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


def register_exception_handlers(app: FastAPI) -> None:
    """Map reporting errors onto HTTP responses."""

    @app.exception_handler(UpstreamFetchFailure)
    async def upstream_fetch_failure_handler(request: Request, exc: UpstreamFetchFailure) -> JSONResponse:
        logger.error("Upstream fetch failed for %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"detail": f"Upstream {exc.source} is unavailable."},
        )
