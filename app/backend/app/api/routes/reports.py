"""Report endpoints scoped to the caller's visible records."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_report_window, get_reporting_service
from app.reporting.schemas import (
    ClientHours,
    DailyHours,
    DashboardSummary,
    ExpenseBillability,
    MonthlyComparison,
    PhaseShare,
    ProjectHours,
    TopActivity,
    WeeklySummary,
)
from app.services.reporting_service import ReportingService, ReportWindow

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/dashboard-summary", response_model=DashboardSummary)
def dashboard_summary(
    window: ReportWindow = Depends(get_report_window),
    service: ReportingService = Depends(get_reporting_service),
) -> DashboardSummary:
    return service.dashboard_summary(window)


@router.get("/time-by-client", response_model=list[ClientHours])
def time_by_client(
    window: ReportWindow = Depends(get_report_window),
    service: ReportingService = Depends(get_reporting_service),
) -> list[ClientHours]:
    return service.time_by_client(window)


@router.get("/time-by-project", response_model=list[ProjectHours])
def time_by_project(
    client: str | None = Query(default=None),
    window: ReportWindow = Depends(get_report_window),
    service: ReportingService = Depends(get_reporting_service),
) -> list[ProjectHours]:
    return service.time_by_project(window, client=client)


@router.get("/daily-hours", response_model=list[DailyHours])
def daily_hours(
    window: ReportWindow = Depends(get_report_window),
    service: ReportingService = Depends(get_reporting_service),
) -> list[DailyHours]:
    return service.daily_hours(window)


@router.get("/time-by-phase", response_model=list[PhaseShare])
def time_by_phase(
    project: str | None = Query(default=None),
    window: ReportWindow = Depends(get_report_window),
    service: ReportingService = Depends(get_reporting_service),
) -> list[PhaseShare]:
    return service.time_by_phase(window, project=project)


@router.get("/weekly-summary", response_model=list[WeeklySummary])
def weekly_summary(
    window: ReportWindow = Depends(get_report_window),
    service: ReportingService = Depends(get_reporting_service),
) -> list[WeeklySummary]:
    return service.weekly_summary(window)


@router.get("/monthly-comparison", response_model=list[MonthlyComparison])
def monthly_comparison(
    window: ReportWindow = Depends(get_report_window),
    service: ReportingService = Depends(get_reporting_service),
) -> list[MonthlyComparison]:
    return service.monthly_comparison(window)


@router.get("/top-activities", response_model=list[TopActivity])
def top_activities(
    min_hours: float | None = Query(default=None, ge=0),
    limit: int | None = Query(default=None, ge=1, le=500),
    window: ReportWindow = Depends(get_report_window),
    service: ReportingService = Depends(get_reporting_service),
) -> list[TopActivity]:
    return service.top_activities(window, min_hours=min_hours, limit=limit)


@router.get("/expense-billability", response_model=list[ExpenseBillability])
def expense_billability(
    window: ReportWindow = Depends(get_report_window),
    service: ReportingService = Depends(get_reporting_service),
) -> list[ExpenseBillability]:
    return service.expense_billability(window)
