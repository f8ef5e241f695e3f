"""Billability index status and reload."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.dependencies import get_admin_reporting_service, get_flag_source, get_reporting_service
from app.reporting.schemas import BillabilityStatus
from app.reporting.sources import FlagSource
from app.services.reporting_service import ReportingService

router = APIRouter(prefix="/billability", tags=["billability"])


@router.get("/status", response_model=BillabilityStatus)
def billability_status(service: ReportingService = Depends(get_reporting_service)) -> BillabilityStatus:
    return service.billability_status()


@router.post("/reload", response_model=BillabilityStatus)
def reload_billability(
    flag_source: FlagSource = Depends(get_flag_source),
    service: ReportingService = Depends(get_admin_reporting_service),
) -> BillabilityStatus:
    """Re-read every flag and publish a fresh snapshot."""

    return service.reload_billability(flag_source)
