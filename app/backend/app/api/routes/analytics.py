"""Admin-only per-user and cross-client analytics."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_admin_reporting_service, get_report_window, get_task_selection
from app.reporting.schemas import (
    ClientBillability,
    ClientTimeline,
    DayOfWeekHours,
    PeriodDeltaResult,
    PhaseDistributionRow,
    StaleProject,
    TaskRepetition,
    TrackingCompliance,
    UserActivity,
    UserHours,
    UserSummary,
)
from app.services.reporting_service import ReportingService, ReportWindow, TaskSelection

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/user-summaries", response_model=list[UserSummary])
def user_summaries(
    window: ReportWindow = Depends(get_report_window),
    selection: TaskSelection = Depends(get_task_selection),
    service: ReportingService = Depends(get_admin_reporting_service),
) -> list[UserSummary]:
    return service.user_summaries(window, selection)


@router.get("/hours-by-user", response_model=list[UserHours])
def hours_by_user(
    window: ReportWindow = Depends(get_report_window),
    selection: TaskSelection = Depends(get_task_selection),
    service: ReportingService = Depends(get_admin_reporting_service),
) -> list[UserHours]:
    return service.hours_by_user(window, selection)


@router.get("/user-activity-timeline", response_model=list[UserActivity])
def user_activity_timeline(
    window: ReportWindow = Depends(get_report_window),
    selection: TaskSelection = Depends(get_task_selection),
    service: ReportingService = Depends(get_admin_reporting_service),
) -> list[UserActivity]:
    return service.user_activity_timeline(window, selection)


@router.get("/phase-distribution", response_model=list[PhaseDistributionRow])
def phase_distribution(
    window: ReportWindow = Depends(get_report_window),
    selection: TaskSelection = Depends(get_task_selection),
    service: ReportingService = Depends(get_admin_reporting_service),
) -> list[PhaseDistributionRow]:
    return service.phase_distribution(window, selection)


@router.get("/stale-projects", response_model=list[StaleProject])
def stale_projects(
    stale_days: int | None = Query(default=None, ge=0),
    window: ReportWindow = Depends(get_report_window),
    selection: TaskSelection = Depends(get_task_selection),
    service: ReportingService = Depends(get_admin_reporting_service),
) -> list[StaleProject]:
    return service.stale_projects(window, selection, stale_days=stale_days)


@router.get("/client-billability", response_model=list[ClientBillability])
def client_billability(
    window: ReportWindow = Depends(get_report_window),
    selection: TaskSelection = Depends(get_task_selection),
    service: ReportingService = Depends(get_admin_reporting_service),
) -> list[ClientBillability]:
    return service.client_billability(window, selection)


@router.get("/client-timeline", response_model=list[ClientTimeline])
def client_timeline(
    window: ReportWindow = Depends(get_report_window),
    selection: TaskSelection = Depends(get_task_selection),
    service: ReportingService = Depends(get_admin_reporting_service),
) -> list[ClientTimeline]:
    return service.client_timeline(window, selection)


@router.get("/day-of-week", response_model=list[DayOfWeekHours])
def day_of_week(
    window: ReportWindow = Depends(get_report_window),
    selection: TaskSelection = Depends(get_task_selection),
    service: ReportingService = Depends(get_admin_reporting_service),
) -> list[DayOfWeekHours]:
    return service.day_of_week_hours(window, selection)


@router.get("/tracking-compliance", response_model=list[TrackingCompliance])
def tracking_compliance(
    window: ReportWindow = Depends(get_report_window),
    selection: TaskSelection = Depends(get_task_selection),
    service: ReportingService = Depends(get_admin_reporting_service),
) -> list[TrackingCompliance]:
    return service.tracking_compliance(window, selection)


@router.get("/task-repetition", response_model=list[TaskRepetition])
def task_repetition(
    limit: int | None = Query(default=None, ge=1, le=500),
    window: ReportWindow = Depends(get_report_window),
    selection: TaskSelection = Depends(get_task_selection),
    service: ReportingService = Depends(get_admin_reporting_service),
) -> list[TaskRepetition]:
    return service.task_repetition(window, selection, limit=limit)


@router.get("/period-delta", response_model=PeriodDeltaResult)
def period_delta(
    window: ReportWindow = Depends(get_report_window),
    selection: TaskSelection = Depends(get_task_selection),
    service: ReportingService = Depends(get_admin_reporting_service),
) -> PeriodDeltaResult:
    return service.period_delta(window, selection)
