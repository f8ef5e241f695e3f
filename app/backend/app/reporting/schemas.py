"""Report DTOs returned by the builders and serialized by the API."""

from __future__ import annotations

import datetime as dt
from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ReportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class DashboardSummary(ReportModel):
    month_hours: float
    week_hours: float
    top_client: str
    top_project: str
    avg_daily: float
    client_count: int


class ClientHours(ReportModel):
    client: str
    hours: float
    percentage: float


class PhaseHours(ReportModel):
    phase: str
    hours: float


class ProjectHours(ReportModel):
    project: str
    hours: float
    phases: list[PhaseHours]


class DailyHours(ReportModel):
    date: dt.date
    hours: float


class PhaseShare(ReportModel):
    phase: str
    hours: float
    percentage: float


class ClientTotal(ReportModel):
    client: str
    hours: float


class WeeklySummary(ReportModel):
    week_start: dt.date
    week_end: dt.date
    total_hours: float
    clients: list[ClientTotal]
    change: float


class MonthlyComparison(ReportModel):
    month: str
    total_hours: float
    clients: list[ClientTotal]


class TopActivity(ReportModel):
    details: str
    hours: float
    client: str
    project: str
    last_date: dt.date


class UserSummary(ReportModel):
    username: str
    total_hours: float
    billable_hours: float
    non_billable_hours: float
    task_count: int
    avg_hours_per_day: float
    billability_rate: float
    top_client: str
    top_project: str
    last_activity_date: dt.date


class UserHours(ReportModel):
    username: str
    hours: float
    percentage: float


class UserActivity(ReportModel):
    username: str
    date: dt.date
    hours: float


# ---------- Admin analytics ----------
class PhaseDistributionRow(ReportModel):
    project: str
    total_hours: float
    top_client: str
    phases: list[PhaseShare]
    top_phase: str


class StaleProject(ReportModel):
    project: str
    total_hours: float
    last_activity_date: dt.date
    days_since_activity: int
    primary_client: str
    active_users: list[str]


class ClientBillability(ReportModel):
    client: str
    total_hours: float
    billable_hours: float
    non_billable_hours: float
    billability_rate: float


class ClientMonth(ReportModel):
    month: str
    hours: float


class ClientTimeline(ReportModel):
    client: str
    total_hours: float
    months: list[ClientMonth]
    peak_month: str


class DayOfWeekHours(ReportModel):
    day_name: str
    day_index: int
    total_hours: float
    avg_hours_per_occurrence: float
    occurrences_in_range: int


class TrackingCompliance(ReportModel):
    username: str
    total_workdays: int
    days_logged: int
    days_missing: int
    compliance_rate: float
    recent_missed_dates: list[dt.date]


class TaskRepetition(ReportModel):
    task_id: str
    occurrences: int
    total_hours: float
    avg_hours_per_occurrence: float
    unique_users: int
    top_client: str
    top_project: str
    sample_details: str


TrendDirection = Literal["up", "down", "flat", "new", "dropped"]


class PeriodDelta(ReportModel):
    name: str
    current_hours: float
    prior_hours: float
    delta: float
    delta_percent: float | None
    trend: TrendDirection


class PeriodDeltaResult(ReportModel):
    by_user: list[PeriodDelta]
    by_client: list[PeriodDelta]
    current_label: str
    prior_label: str


class ExpenseBillability(ReportModel):
    client: str
    expense_count: int
    billable_count: int
    non_billable_count: int


class BillabilityStatus(ReportModel):
    loaded: bool
    flag_count: int
    loaded_at: dt.datetime | None
