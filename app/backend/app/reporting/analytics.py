"""Admin analytics builders layered on the same grouping primitives."""

from __future__ import annotations

from collections.abc import Callable, Collection, Sequence
from datetime import date
from decimal import Decimal

from app.reporting.billability import BillabilityEvaluator
from app.reporting.builders import month_key
from app.reporting.date_ranges import DateRange, iter_days
from app.reporting.grouping import (
    HUNDRED,
    NOT_AVAILABLE,
    ZERO,
    count_by_key,
    percentage,
    quantize_tenth,
    round_hours,
    safe_ratio,
    sum_by_key,
    top_key,
    total_hours,
)
from app.reporting.records import ExpenseRecord, TaskRecord
from app.reporting.schemas import (
    ClientBillability,
    ClientMonth,
    ClientTimeline,
    DayOfWeekHours,
    ExpenseBillability,
    PeriodDelta,
    PeriodDeltaResult,
    PhaseDistributionRow,
    PhaseShare,
    StaleProject,
    TaskRepetition,
    TrackingCompliance,
)

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
RECENT_MISSED_DATES = 15
DEFAULT_TASK_REPETITION_LIMIT = 50


def _hours(task: TaskRecord) -> Decimal:
    return task.hours


def _client(task: TaskRecord) -> str:
    return task.client


def _project(task: TaskRecord) -> str:
    return task.project


def _sunday_index(day: date) -> int:
    return (day.weekday() + 1) % 7


def _group(tasks: Sequence[TaskRecord], key_fn: Callable[[TaskRecord], str]) -> dict[str, list[TaskRecord]]:
    groups: dict[str, list[TaskRecord]] = {}
    for task in tasks:
        groups.setdefault(key_fn(task), []).append(task)
    return groups


def _unique(values: Sequence[str]) -> list[str]:
    return list(dict.fromkeys(values))


def filter_tasks(
    tasks: Sequence[TaskRecord],
    *,
    usernames: Collection[str] | None = None,
    clients: Collection[str] | None = None,
    projects: Collection[str] | None = None,
) -> list[TaskRecord]:
    """Keep tasks matching every non-empty selection."""

    return [
        task
        for task in tasks
        if (not usernames or task.owner in usernames)
        and (not clients or task.client in clients)
        and (not projects or task.project in projects)
    ]


def build_phase_distribution(tasks: Sequence[TaskRecord]) -> list[PhaseDistributionRow]:
    rows: list[tuple[Decimal, PhaseDistributionRow]] = []
    for project, project_tasks in _group(tasks, _project).items():
        project_total = total_hours(project_tasks, _hours)
        phases = [
            PhaseShare(phase=row.key, hours=round_hours(row.total), percentage=percentage(row.total, project_total))
            for row in sum_by_key(project_tasks, lambda task: task.phase, _hours)
        ]
        rows.append(
            (
                project_total,
                PhaseDistributionRow(
                    project=project,
                    total_hours=round_hours(project_total),
                    top_client=top_key(sum_by_key(project_tasks, _client, _hours)),
                    phases=phases,
                    top_phase=phases[0].phase if phases else NOT_AVAILABLE,
                ),
            )
        )
    rows.sort(key=lambda item: item[0], reverse=True)
    return [row for _, row in rows]


def build_stale_projects(tasks: Sequence[TaskRecord], stale_days: int, today: date) -> list[StaleProject]:
    """Projects whose latest record is at least ``stale_days`` before ``today``."""

    result: list[StaleProject] = []
    for project, project_tasks in _group(tasks, _project).items():
        last_activity = max(task.date for task in project_tasks)
        days_since = (today - last_activity).days
        if days_since < stale_days:
            continue
        result.append(
            StaleProject(
                project=project,
                total_hours=round_hours(total_hours(project_tasks, _hours)),
                last_activity_date=last_activity,
                days_since_activity=days_since,
                primary_client=top_key(sum_by_key(project_tasks, _client, _hours)),
                active_users=_unique([task.owner for task in project_tasks]),
            )
        )
    result.sort(key=lambda row: row.days_since_activity, reverse=True)
    return result


def build_client_billability(
    tasks: Sequence[TaskRecord],
    evaluator: BillabilityEvaluator,
) -> list[ClientBillability]:
    rows: list[tuple[Decimal, ClientBillability]] = []
    for client, client_tasks in _group(tasks, _client).items():
        billable, _ = evaluator.split_tasks(client_tasks)
        total = total_hours(client_tasks, _hours)
        billable_hours = total_hours(billable, _hours)
        rows.append(
            (
                total,
                ClientBillability(
                    client=client,
                    total_hours=round_hours(total),
                    billable_hours=round_hours(billable_hours),
                    non_billable_hours=round_hours(total - billable_hours),
                    billability_rate=percentage(billable_hours, total),
                ),
            )
        )
    rows.sort(key=lambda item: item[0], reverse=True)
    return [row for _, row in rows]


def build_client_timeline(tasks: Sequence[TaskRecord]) -> list[ClientTimeline]:
    rows: list[tuple[Decimal, ClientTimeline]] = []
    for client, client_tasks in _group(tasks, _client).items():
        by_month = sum_by_key(client_tasks, lambda task: month_key(task.date), _hours)
        total = sum((row.total for row in by_month), ZERO)
        rows.append(
            (
                total,
                ClientTimeline(
                    client=client,
                    total_hours=round_hours(total),
                    months=[
                        ClientMonth(month=row.key, hours=round_hours(row.total))
                        for row in sorted(by_month, key=lambda row: row.key)
                    ],
                    peak_month=top_key(by_month, default=""),
                ),
            )
        )
    rows.sort(key=lambda item: item[0], reverse=True)
    return [row for _, row in rows]


def build_day_of_week_hours(
    tasks: Sequence[TaskRecord],
    date_range: DateRange | None = None,
) -> list[DayOfWeekHours]:
    """Sunday-to-Saturday totals with the average per occurrence of each weekday.

    Without a usable range, occurrences are counted between the earliest and
    latest record dates.
    """

    totals = [ZERO] * 7
    for task in tasks:
        totals[_sunday_index(task.date)] += task.hours

    effective = date_range
    if (effective is None or effective.is_empty) and tasks:
        dates = [task.date for task in tasks]
        effective = DateRange(min(dates), max(dates))

    occurrences = [0] * 7
    if effective is not None and not effective.is_empty:
        for day in iter_days(effective):
            occurrences[_sunday_index(day)] += 1
    else:
        occurrences = [1] * 7

    return [
        DayOfWeekHours(
            day_name=name,
            day_index=index,
            total_hours=round_hours(totals[index]),
            avg_hours_per_occurrence=safe_ratio(totals[index], Decimal(occurrences[index])),
            occurrences_in_range=occurrences[index],
        )
        for index, name in enumerate(DAY_NAMES)
    ]


def build_tracking_compliance(tasks: Sequence[TaskRecord], date_range: DateRange) -> list[TrackingCompliance]:
    """Weekdays with at least one record per user, least compliant first."""

    if date_range.is_empty:
        return []
    workdays = [day for day in iter_days(date_range) if day.weekday() < 5]

    logged_by_user: dict[str, set[date]] = {}
    for task in tasks:
        logged_by_user.setdefault(task.owner, set()).add(task.date)

    rows: list[TrackingCompliance] = []
    for username, logged in logged_by_user.items():
        missed = [day for day in workdays if day not in logged]
        days_logged = len(workdays) - len(missed)
        rows.append(
            TrackingCompliance(
                username=username,
                total_workdays=len(workdays),
                days_logged=days_logged,
                days_missing=len(missed),
                compliance_rate=(
                    percentage(Decimal(days_logged), Decimal(len(workdays))) if workdays else 100.0
                ),
                recent_missed_dates=missed[-RECENT_MISSED_DATES:],
            )
        )
    rows.sort(key=lambda row: row.compliance_rate)
    return rows


def build_task_repetition(
    tasks: Sequence[TaskRecord],
    limit: int = DEFAULT_TASK_REPETITION_LIMIT,
) -> list[TaskRepetition]:
    by_task_id: dict[str, list[TaskRecord]] = {}
    for task in tasks:
        task_id = (task.task_id or "").strip()
        if task_id:
            by_task_id.setdefault(task_id, []).append(task)

    rows: list[TaskRepetition] = []
    for task_id, entries in by_task_id.items():
        total = total_hours(entries, _hours)
        rows.append(
            TaskRepetition(
                task_id=task_id,
                occurrences=len(entries),
                total_hours=round_hours(total),
                avg_hours_per_occurrence=safe_ratio(total, Decimal(len(entries))),
                unique_users=len({entry.owner for entry in entries}),
                top_client=top_key(sum_by_key(entries, _client, _hours)),
                top_project=top_key(sum_by_key(entries, _project, _hours)),
                sample_details=next((entry.details for entry in entries if entry.details), ""),
            )
        )
    rows.sort(key=lambda row: row.occurrences, reverse=True)
    return rows[:limit]


def _delta_rows(
    current: Sequence[TaskRecord],
    prior: Sequence[TaskRecord],
    key_fn: Callable[[TaskRecord], str],
) -> list[PeriodDelta]:
    current_totals = {row.key: row.total for row in sum_by_key(current, key_fn, _hours)}
    prior_totals = {row.key: row.total for row in sum_by_key(prior, key_fn, _hours)}

    rows: list[PeriodDelta] = []
    for name in _unique([*(key_fn(task) for task in current), *(key_fn(task) for task in prior)]):
        current_hours = quantize_tenth(current_totals.get(name, ZERO))
        prior_hours = quantize_tenth(prior_totals.get(name, ZERO))
        delta = current_hours - prior_hours
        if prior_hours == ZERO:
            trend = "new"
        elif current_hours == ZERO:
            trend = "dropped"
        elif delta > ZERO:
            trend = "up"
        elif delta < ZERO:
            trend = "down"
        else:
            trend = "flat"
        rows.append(
            PeriodDelta(
                name=name,
                current_hours=float(current_hours),
                prior_hours=float(prior_hours),
                delta=float(delta),
                delta_percent=round_hours(delta / prior_hours * HUNDRED) if prior_hours > ZERO else None,
                trend=trend,
            )
        )
    rows.sort(key=lambda row: abs(row.delta), reverse=True)
    return rows


def build_period_delta(
    current: Sequence[TaskRecord],
    prior: Sequence[TaskRecord],
    current_label: str,
    prior_label: str,
) -> PeriodDeltaResult:
    """Compare two periods per user and per client."""

    return PeriodDeltaResult(
        by_user=_delta_rows(current, prior, lambda task: task.owner),
        by_client=_delta_rows(current, prior, _client),
        current_label=current_label,
        prior_label=prior_label,
    )


def build_expense_billability(
    expenses: Sequence[ExpenseRecord],
    evaluator: BillabilityEvaluator,
) -> list[ExpenseBillability]:
    billable_counts: dict[str, int] = {}
    for expense in expenses:
        if evaluator.is_expense_billable(expense):
            billable_counts[expense.client] = billable_counts.get(expense.client, 0) + 1

    return [
        ExpenseBillability(
            client=row.key,
            expense_count=row.count,
            billable_count=billable_counts.get(row.key, 0),
            non_billable_count=row.count - billable_counts.get(row.key, 0),
        )
        for row in count_by_key(expenses, lambda expense: expense.client)
    ]
