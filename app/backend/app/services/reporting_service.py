"""Report orchestration: resolve the window, fetch once, build."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date

from app.core.config import Settings, get_settings
from app.reporting import analytics, builders
from app.reporting.billability import BillabilityEvaluator, BillabilityIndex
from app.reporting.date_ranges import (
    DatePreset,
    DateRange,
    last_n_days,
    month_start,
    preset_range,
    prior_period,
    resolve,
    shift_months,
    week_range,
)
from app.reporting.records import ExpenseRecord, TaskRecord
from app.reporting.schemas import (
    BillabilityStatus,
    ClientBillability,
    ClientHours,
    ClientTimeline,
    DailyHours,
    DashboardSummary,
    DayOfWeekHours,
    ExpenseBillability,
    MonthlyComparison,
    PeriodDeltaResult,
    PhaseDistributionRow,
    PhaseShare,
    ProjectHours,
    StaleProject,
    TaskRepetition,
    TopActivity,
    TrackingCompliance,
    UserActivity,
    UserHours,
    UserSummary,
    WeeklySummary,
)
from app.reporting.sources import FlagSource, RecordSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReportWindow:
    """Caller-supplied window: explicit bounds, a named preset, or nothing."""

    start: date | None = None
    end: date | None = None
    preset: DatePreset | None = None


@dataclass(frozen=True, slots=True)
class TaskSelection:
    usernames: tuple[str, ...] = field(default_factory=tuple)
    clients: tuple[str, ...] = field(default_factory=tuple)
    projects: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not (self.usernames or self.clients or self.projects)


class ReportingService:
    """Single entry point for every report and analytic.

    Each call resolves its date window, fetches the record batch at most once
    and hands it to a pure builder. An inverted window yields the empty result
    without touching the record source.
    """

    def __init__(
        self,
        record_source: RecordSource,
        index: BillabilityIndex,
        settings: Settings | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.record_source = record_source
        self.index = index
        self.evaluator = BillabilityEvaluator(index)
        self.settings = settings or get_settings()
        self._today = today

    # ---------- Windows and fetching ----------
    def today(self) -> date:
        return self._today()

    def resolve_window(self, window: ReportWindow | None = None) -> DateRange:
        window = window or ReportWindow()
        if window.preset is not None:
            return preset_range(window.preset, self.today())
        return resolve(window.start, window.end, today=self.today())

    def _fetch_tasks(
        self,
        date_range: DateRange,
        selection: TaskSelection | None = None,
        *,
        report: str,
    ) -> list[TaskRecord]:
        if date_range.is_empty:
            logger.debug("Skipping fetch for %s: empty range %s", report, date_range.label)
            return []
        tasks = list(self.record_source.fetch_tasks(date_range.start, date_range.end))
        if selection is not None and not selection.is_empty:
            tasks = analytics.filter_tasks(
                tasks,
                usernames=selection.usernames,
                clients=selection.clients,
                projects=selection.projects,
            )
        logger.debug("Building %s over %s from %d task records", report, date_range.label, len(tasks))
        return tasks

    def _fetch_expenses(self, date_range: DateRange, *, report: str) -> Sequence[ExpenseRecord]:
        if date_range.is_empty:
            return []
        expenses = self.record_source.fetch_expenses(date_range.start, date_range.end)
        logger.debug("Building %s over %s from %d expense records", report, date_range.label, len(expenses))
        return expenses

    # ---------- Reports ----------
    def dashboard_summary(self, window: ReportWindow | None = None) -> DashboardSummary:
        """Month figures for the window; week hours always for today's week."""

        month_tasks = self._fetch_tasks(self.resolve_window(window), report="dashboard summary")
        week_tasks = self._fetch_tasks(week_range(self.today()), report="dashboard week")
        return builders.build_dashboard_summary(month_tasks, week_tasks)

    def time_by_client(self, window: ReportWindow | None = None) -> list[ClientHours]:
        return builders.build_time_by_client(self._fetch_tasks(self.resolve_window(window), report="time by client"))

    def time_by_project(self, window: ReportWindow | None = None, client: str | None = None) -> list[ProjectHours]:
        tasks = self._fetch_tasks(self.resolve_window(window), report="time by project")
        return builders.build_time_by_project(tasks, client=client)

    def daily_hours(self, window: ReportWindow | None = None) -> list[DailyHours]:
        date_range = self.resolve_window(window)
        return builders.build_daily_hours(self._fetch_tasks(date_range, report="daily hours"), date_range)

    def time_by_phase(self, window: ReportWindow | None = None, project: str | None = None) -> list[PhaseShare]:
        tasks = self._fetch_tasks(self.resolve_window(window), report="time by phase")
        return builders.build_time_by_phase(tasks, project=project)

    def weekly_range(self, window: ReportWindow | None = None) -> DateRange:
        window = window or ReportWindow()
        if window.preset is not None or (window.start is not None and window.end is not None):
            return self.resolve_window(window)
        return last_n_days(7 * self.settings.report_weekly_default_weeks, self.today())

    def weekly_summary(self, window: ReportWindow | None = None) -> list[WeeklySummary]:
        tasks = self._fetch_tasks(self.weekly_range(window), report="weekly summary")
        return builders.build_weekly_summary(tasks, top_n=self.settings.report_top_clients_per_period)

    def monthly_range(self, window: ReportWindow | None = None) -> DateRange:
        """Explicit starts snap to the first of their month."""

        window = window or ReportWindow()
        if window.preset is not None:
            return self.resolve_window(window)
        if window.start is not None and window.end is not None:
            return DateRange(month_start(window.start), window.end)
        today = self.today()
        return DateRange(shift_months(today, -self.settings.report_monthly_default_months), today)

    def monthly_comparison(self, window: ReportWindow | None = None) -> list[MonthlyComparison]:
        tasks = self._fetch_tasks(self.monthly_range(window), report="monthly comparison")
        return builders.build_monthly_comparison(tasks, top_n=self.settings.report_top_clients_per_period)

    def top_activities(
        self,
        window: ReportWindow | None = None,
        min_hours: float | None = None,
        limit: int | None = None,
    ) -> list[TopActivity]:
        tasks = self._fetch_tasks(self.resolve_window(window), report="top activities")
        return builders.build_top_activities(
            tasks,
            min_hours=min_hours,
            limit=limit or self.settings.report_top_activities_limit,
        )

    def user_summaries(
        self,
        window: ReportWindow | None = None,
        selection: TaskSelection | None = None,
    ) -> list[UserSummary]:
        tasks = self._fetch_tasks(self.resolve_window(window), selection, report="user summaries")
        return builders.build_user_summaries(tasks, self.evaluator)

    def hours_by_user(
        self,
        window: ReportWindow | None = None,
        selection: TaskSelection | None = None,
    ) -> list[UserHours]:
        tasks = self._fetch_tasks(self.resolve_window(window), selection, report="hours by user")
        return builders.build_hours_by_user(tasks)

    def user_activity_timeline(
        self,
        window: ReportWindow | None = None,
        selection: TaskSelection | None = None,
    ) -> list[UserActivity]:
        tasks = self._fetch_tasks(self.resolve_window(window), selection, report="user activity timeline")
        return builders.build_user_activity_timeline(tasks)

    def expense_billability(self, window: ReportWindow | None = None) -> list[ExpenseBillability]:
        expenses = self._fetch_expenses(self.resolve_window(window), report="expense billability")
        return analytics.build_expense_billability(expenses, self.evaluator)

    # ---------- Admin analytics ----------
    def phase_distribution(
        self,
        window: ReportWindow | None = None,
        selection: TaskSelection | None = None,
    ) -> list[PhaseDistributionRow]:
        tasks = self._fetch_tasks(self.resolve_window(window), selection, report="phase distribution")
        return analytics.build_phase_distribution(tasks)

    def stale_projects(
        self,
        window: ReportWindow | None = None,
        selection: TaskSelection | None = None,
        stale_days: int | None = None,
    ) -> list[StaleProject]:
        tasks = self._fetch_tasks(self.resolve_window(window), selection, report="stale projects")
        threshold = self.settings.report_stale_project_days if stale_days is None else stale_days
        return analytics.build_stale_projects(tasks, threshold, self.today())

    def client_billability(
        self,
        window: ReportWindow | None = None,
        selection: TaskSelection | None = None,
    ) -> list[ClientBillability]:
        tasks = self._fetch_tasks(self.resolve_window(window), selection, report="client billability")
        return analytics.build_client_billability(tasks, self.evaluator)

    def client_timeline(
        self,
        window: ReportWindow | None = None,
        selection: TaskSelection | None = None,
    ) -> list[ClientTimeline]:
        tasks = self._fetch_tasks(self.resolve_window(window), selection, report="client timeline")
        return analytics.build_client_timeline(tasks)

    def day_of_week_hours(
        self,
        window: ReportWindow | None = None,
        selection: TaskSelection | None = None,
    ) -> list[DayOfWeekHours]:
        date_range = self.resolve_window(window)
        tasks = self._fetch_tasks(date_range, selection, report="day of week hours")
        return analytics.build_day_of_week_hours(tasks, date_range)

    def tracking_compliance(
        self,
        window: ReportWindow | None = None,
        selection: TaskSelection | None = None,
    ) -> list[TrackingCompliance]:
        date_range = self.resolve_window(window)
        tasks = self._fetch_tasks(date_range, selection, report="tracking compliance")
        return analytics.build_tracking_compliance(tasks, date_range)

    def task_repetition(
        self,
        window: ReportWindow | None = None,
        selection: TaskSelection | None = None,
        limit: int | None = None,
    ) -> list[TaskRepetition]:
        tasks = self._fetch_tasks(self.resolve_window(window), selection, report="task repetition")
        return analytics.build_task_repetition(tasks, limit=limit or self.settings.report_task_repetition_limit)

    def period_delta(
        self,
        window: ReportWindow | None = None,
        selection: TaskSelection | None = None,
    ) -> PeriodDeltaResult:
        """Compare the window against the equal-length window just before it."""

        current_range = self.resolve_window(window)
        previous_range = prior_period(current_range)
        current = self._fetch_tasks(current_range, selection, report="period delta (current)")
        prior = self._fetch_tasks(previous_range, selection, report="period delta (prior)")
        return analytics.build_period_delta(current, prior, current_range.label, previous_range.label)

    # ---------- Billability index ----------
    def billability_status(self) -> BillabilityStatus:
        return BillabilityStatus(
            loaded=self.index.is_loaded,
            flag_count=self.index.flag_count,
            loaded_at=self.index.loaded_at,
        )

    def reload_billability(self, flag_source: FlagSource) -> BillabilityStatus:
        self.index.reload(flag_source)
        return self.billability_status()
