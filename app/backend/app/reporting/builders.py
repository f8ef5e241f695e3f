"""Pure report builders over an already-fetched record batch.

Every builder accepts an empty batch and returns an empty or zeroed DTO.
Hours are summed as ``Decimal`` and rounded only when a DTO is emitted.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from app.reporting.billability import BillabilityEvaluator
from app.reporting.date_ranges import DateRange, iter_days, week_start
from app.reporting.grouping import (
    HUNDRED,
    ZERO,
    percentage,
    round_hours,
    safe_ratio,
    sum_by_key,
    top_key,
    total_hours,
    with_percentages,
)
from app.reporting.records import TaskRecord
from app.reporting.schemas import (
    ClientHours,
    ClientTotal,
    DailyHours,
    DashboardSummary,
    MonthlyComparison,
    PhaseHours,
    PhaseShare,
    ProjectHours,
    TopActivity,
    UserActivity,
    UserHours,
    UserSummary,
    WeeklySummary,
)

DEFAULT_TOP_CLIENTS = 5
DEFAULT_TOP_ACTIVITIES = 10


def _hours(task: TaskRecord) -> Decimal:
    return task.hours


def _client(task: TaskRecord) -> str:
    return task.client


def _project(task: TaskRecord) -> str:
    return task.project


def _phase(task: TaskRecord) -> str:
    return task.phase


def _owner(task: TaskRecord) -> str:
    return task.owner


@dataclass(slots=True)
class _ActivityTotals:
    hours: Decimal
    client: str
    project: str
    last_date: date


def month_key(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def _top_clients(tasks: Sequence[TaskRecord], top_n: int) -> list[ClientTotal]:
    return [
        ClientTotal(client=row.key, hours=round_hours(row.total))
        for row in sum_by_key(tasks, _client, _hours)[:top_n]
    ]


def build_dashboard_summary(
    month_tasks: Sequence[TaskRecord],
    week_tasks: Sequence[TaskRecord],
) -> DashboardSummary:
    month_hours = total_hours(month_tasks, _hours)
    week_hours = total_hours(week_tasks, _hours)
    days_with_entries = len({task.date for task in month_tasks})
    avg_daily = month_hours / days_with_entries if days_with_entries else ZERO

    return DashboardSummary(
        month_hours=round_hours(month_hours),
        week_hours=round_hours(week_hours),
        top_client=top_key(sum_by_key(month_tasks, _client, _hours)),
        top_project=top_key(sum_by_key(month_tasks, _project, _hours)),
        avg_daily=round_hours(avg_daily),
        client_count=len({task.client for task in month_tasks}),
    )


def build_time_by_client(tasks: Sequence[TaskRecord]) -> list[ClientHours]:
    return [
        ClientHours(client=row.key, hours=round_hours(row.total), percentage=share)
        for row, share in with_percentages(sum_by_key(tasks, _client, _hours))
    ]


def build_time_by_project(tasks: Sequence[TaskRecord], client: str | None = None) -> list[ProjectHours]:
    if client:
        tasks = [task for task in tasks if task.client == client]

    by_project: dict[str, list[TaskRecord]] = {}
    for task in tasks:
        by_project.setdefault(task.project, []).append(task)

    rows: list[tuple[Decimal, ProjectHours]] = []
    for project, project_tasks in by_project.items():
        phase_rows = sum_by_key(project_tasks, _phase, _hours)
        project_total = sum((row.total for row in phase_rows), ZERO)
        rows.append(
            (
                project_total,
                ProjectHours(
                    project=project,
                    hours=round_hours(project_total),
                    phases=[PhaseHours(phase=row.key, hours=round_hours(row.total)) for row in phase_rows],
                ),
            )
        )

    rows.sort(key=lambda item: item[0], reverse=True)
    return [row for _, row in rows]


def build_daily_hours(tasks: Sequence[TaskRecord], date_range: DateRange) -> list[DailyHours]:
    """Dense daily series: every day of the range, zero-hour days included."""

    if date_range.is_empty:
        return []
    by_day: dict[date, Decimal] = {}
    for task in tasks:
        by_day[task.date] = by_day.get(task.date, ZERO) + task.hours
    return [DailyHours(date=day, hours=round_hours(by_day.get(day, ZERO))) for day in iter_days(date_range)]


def build_time_by_phase(tasks: Sequence[TaskRecord], project: str | None = None) -> list[PhaseShare]:
    if project:
        tasks = [task for task in tasks if task.project == project]
    return [
        PhaseShare(phase=row.key, hours=round_hours(row.total), percentage=share)
        for row, share in with_percentages(sum_by_key(tasks, _phase, _hours))
    ]


def _percent_change(current: Decimal, previous: Decimal) -> float:
    if previous <= ZERO:
        return 0.0
    return round_hours((current - previous) / previous * HUNDRED)


def build_weekly_summary(tasks: Sequence[TaskRecord], top_n: int = DEFAULT_TOP_CLIENTS) -> list[WeeklySummary]:
    """Monday-start weekly rollup, newest week first.

    ``change`` compares each week with the next older week that has records,
    which is not necessarily the adjacent calendar week.
    """

    buckets: dict[date, list[TaskRecord]] = {}
    for task in tasks:
        buckets.setdefault(week_start(task.date), []).append(task)

    weeks = sorted(buckets, reverse=True)
    totals = {monday: total_hours(buckets[monday], _hours) for monday in weeks}

    result: list[WeeklySummary] = []
    for position, monday in enumerate(weeks):
        previous = totals[weeks[position + 1]] if position + 1 < len(weeks) else ZERO
        result.append(
            WeeklySummary(
                week_start=monday,
                week_end=monday + timedelta(days=6),
                total_hours=round_hours(totals[monday]),
                clients=_top_clients(buckets[monday], top_n),
                change=_percent_change(totals[monday], previous),
            )
        )
    return result


def build_monthly_comparison(
    tasks: Sequence[TaskRecord],
    top_n: int = DEFAULT_TOP_CLIENTS,
) -> list[MonthlyComparison]:
    """Calendar month rollup, oldest month first."""

    buckets: dict[str, list[TaskRecord]] = {}
    for task in tasks:
        buckets.setdefault(month_key(task.date), []).append(task)

    return [
        MonthlyComparison(
            month=month,
            total_hours=round_hours(total_hours(buckets[month], _hours)),
            clients=_top_clients(buckets[month], top_n),
        )
        for month in sorted(buckets)
    ]


def build_top_activities(
    tasks: Sequence[TaskRecord],
    min_hours: Decimal | float | None = None,
    limit: int = DEFAULT_TOP_ACTIVITIES,
) -> list[TopActivity]:
    """Rank activities deduplicated by their trimmed ``details`` text.

    Matching is exact after trimming. Client and project come from the first
    record seen for a key; ``last_date`` is the latest occurrence.
    """

    threshold = Decimal(str(min_hours)) if min_hours is not None else None
    activities: dict[str, _ActivityTotals] = {}
    for task in tasks:
        key = (task.details or "").strip()
        entry = activities.get(key)
        if entry is None:
            activities[key] = _ActivityTotals(
                hours=task.hours,
                client=task.client,
                project=task.project,
                last_date=task.date,
            )
            continue
        entry.hours += task.hours
        if task.date > entry.last_date:
            entry.last_date = task.date

    ranked = [
        (details, entry)
        for details, entry in activities.items()
        if threshold is None or entry.hours >= threshold
    ]
    ranked.sort(key=lambda item: item[1].hours, reverse=True)

    return [
        TopActivity(
            details=details,
            hours=round_hours(entry.hours),
            client=entry.client,
            project=entry.project,
            last_date=entry.last_date,
        )
        for details, entry in ranked[:limit]
    ]


def group_by_user(tasks: Sequence[TaskRecord]) -> dict[str, list[TaskRecord]]:
    users: dict[str, list[TaskRecord]] = {}
    for task in tasks:
        users.setdefault(task.owner, []).append(task)
    return users


def build_user_summaries(tasks: Sequence[TaskRecord], evaluator: BillabilityEvaluator) -> list[UserSummary]:
    """Per-user totals with a billable/non-billable split.

    Average hours per day, top client and top project use billable records
    only; last activity spans all records.
    """

    rows: list[tuple[Decimal, UserSummary]] = []
    for username, user_tasks in group_by_user(tasks).items():
        billable, non_billable = evaluator.split_tasks(user_tasks)
        total = total_hours(user_tasks, _hours)
        billable_hours = total_hours(billable, _hours)
        days_worked = len({task.date for task in billable})

        rows.append(
            (
                total,
                UserSummary(
                    username=username,
                    total_hours=round_hours(total),
                    billable_hours=round_hours(billable_hours),
                    non_billable_hours=round_hours(total_hours(non_billable, _hours)),
                    task_count=len(user_tasks),
                    avg_hours_per_day=safe_ratio(billable_hours, Decimal(days_worked)),
                    billability_rate=percentage(billable_hours, total),
                    top_client=top_key(sum_by_key(billable, _client, _hours)),
                    top_project=top_key(sum_by_key(billable, _project, _hours)),
                    last_activity_date=max(task.date for task in user_tasks),
                ),
            )
        )

    rows.sort(key=lambda item: item[0], reverse=True)
    return [row for _, row in rows]


def build_hours_by_user(tasks: Sequence[TaskRecord]) -> list[UserHours]:
    return [
        UserHours(username=row.key, hours=round_hours(row.total), percentage=share)
        for row, share in with_percentages(sum_by_key(tasks, _owner, _hours))
    ]


def build_user_activity_timeline(tasks: Sequence[TaskRecord]) -> list[UserActivity]:
    by_user_day: dict[tuple[str, date], Decimal] = {}
    for task in tasks:
        key = (task.owner, task.date)
        by_user_day[key] = by_user_day.get(key, ZERO) + task.hours

    rows = [
        UserActivity(username=username, date=day, hours=round_hours(hours))
        for (username, day), hours in by_user_day.items()
    ]
    rows.sort(key=lambda row: (row.date, row.username))
    return rows
