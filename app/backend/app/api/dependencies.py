"""Shared request dependencies for report endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import Depends, Query, Request
from sqlalchemy.orm import Session

from app.core.auth import AppRole, RequestUserContext, get_current_user_context, require_roles
from app.core.config import Settings, get_app_settings
from app.db.dependencies import get_db_session
from app.reporting.billability import BillabilityIndex
from app.reporting.date_ranges import DatePreset
from app.reporting.sources import FlagSource
from app.repositories.activity_repository import ActivityRepository
from app.services.reporting_service import ReportingService, ReportWindow, TaskSelection


def get_billability_index(request: Request) -> BillabilityIndex:
    return request.app.state.billability_index


def get_flag_source(request: Request) -> FlagSource:
    return request.app.state.flag_source


def get_report_window(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    preset: DatePreset | None = Query(default=None),
) -> ReportWindow:
    return ReportWindow(start=start_date, end=end_date, preset=preset)


def get_task_selection(
    username: list[str] | None = Query(default=None),
    client: list[str] | None = Query(default=None),
    project: list[str] | None = Query(default=None),
) -> TaskSelection:
    return TaskSelection(
        usernames=tuple(username or ()),
        clients=tuple(client or ()),
        projects=tuple(project or ()),
    )


def get_reporting_service(
    context: RequestUserContext = Depends(get_current_user_context),
    db: Session = Depends(get_db_session),
    index: BillabilityIndex = Depends(get_billability_index),
    settings: Settings = Depends(get_app_settings),
) -> ReportingService:
    """Reporting service over the caller's own records, or all records for admins."""

    return ReportingService(ActivityRepository(db, username=context.scope_username), index, settings)


def get_admin_reporting_service(
    context: RequestUserContext = Depends(require_roles(AppRole.ADMIN)),
    db: Session = Depends(get_db_session),
    index: BillabilityIndex = Depends(get_billability_index),
    settings: Settings = Depends(get_app_settings),
) -> ReportingService:
    return ReportingService(ActivityRepository(db), index, settings)
