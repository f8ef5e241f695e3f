from __future__ import annotations

from datetime import date

from app.core.config import Settings
from app.reporting.billability import BillabilityIndex
from app.reporting.date_ranges import DatePreset
from app.reporting.records import BillabilityFlag, Dimension, RecordFamily
from app.services.reporting_service import ReportingService, ReportWindow, TaskSelection

from conftest import InMemoryRecordSource, task

TODAY = date(2024, 3, 13)  # Wednesday


def _service(source: InMemoryRecordSource, index: BillabilityIndex | None = None, **overrides: object) -> ReportingService:
    settings = Settings(billability_load_on_startup=False, **overrides)
    return ReportingService(source, index or BillabilityIndex(), settings, today=lambda: TODAY)


def test_default_window_is_current_month() -> None:
    source = InMemoryRecordSource([task(date(2024, 3, 2), 2), task(date(2024, 2, 28), 9)])

    rows = _service(source).time_by_client()

    assert source.task_fetches == [(date(2024, 3, 1), date(2024, 3, 31))]
    assert rows[0].hours == 2.0


def test_inverted_window_returns_empty_without_fetching() -> None:
    source = InMemoryRecordSource([task(date(2024, 3, 2), 2)])
    service = _service(source)
    window = ReportWindow(start=date(2024, 3, 31), end=date(2024, 3, 1))

    assert service.time_by_client(window) == []
    assert service.daily_hours(window) == []
    assert service.expense_billability(window) == []
    assert source.task_fetches == []
    assert source.expense_fetches == []


def test_dashboard_week_hours_ignore_caller_range() -> None:
    source = InMemoryRecordSource(
        [
            task(date(2024, 1, 10), 4, client="Acme"),
            task(date(2024, 3, 11), 2, client="Globex"),
            task(date(2024, 3, 13), 1, client="Globex"),
        ]
    )

    summary = _service(source).dashboard_summary(ReportWindow(start=date(2024, 1, 1), end=date(2024, 1, 31)))

    assert summary.month_hours == 4.0
    assert summary.top_client == "Acme"
    # the live week of TODAY, not a week inside January
    assert summary.week_hours == 3.0
    assert source.task_fetches == [
        (date(2024, 1, 1), date(2024, 1, 31)),
        (date(2024, 3, 11), date(2024, 3, 17)),
    ]


def test_weekly_default_window_covers_configured_weeks() -> None:
    source = InMemoryRecordSource([task(date(2024, 3, 4), 5), task(date(2024, 3, 11), 10)])

    weeks = _service(source, report_weekly_default_weeks=2).weekly_summary()

    assert source.task_fetches == [(date(2024, 2, 28), TODAY)]
    assert weeks[0].change == 100.0


def test_monthly_window_defaults_and_snaps_explicit_start() -> None:
    source = InMemoryRecordSource([task(date(2024, 1, 2), 1)])
    service = _service(source, report_monthly_default_months=6)

    service.monthly_comparison()
    service.monthly_comparison(ReportWindow(start=date(2024, 1, 20), end=date(2024, 2, 10)))

    assert source.task_fetches == [
        (date(2023, 9, 1), TODAY),
        (date(2024, 1, 1), date(2024, 2, 10)),
    ]


def test_preset_window_takes_precedence() -> None:
    source = InMemoryRecordSource()

    _service(source).time_by_client(ReportWindow(start=date(2024, 1, 1), end=date(2024, 1, 2), preset=DatePreset.LAST_MONTH))

    assert source.task_fetches == [(date(2024, 2, 1), date(2024, 2, 29))]


def test_user_summaries_use_current_index_snapshot() -> None:
    source = InMemoryRecordSource(
        [
            task(date(2024, 3, 4), 6, username="alice", client="Acme"),
            task(date(2024, 3, 5), 2, username="alice", client="Internal"),
        ]
    )
    index = BillabilityIndex()
    service = _service(source, index)

    assert service.user_summaries()[0].billable_hours == 8.0

    index.load([BillabilityFlag(Dimension.CLIENT, RecordFamily.TASK, "Internal", True)])

    assert service.user_summaries()[0].billable_hours == 6.0


def test_selection_filters_fetched_batch() -> None:
    source = InMemoryRecordSource(
        [
            task(date(2024, 3, 4), 6, username="alice"),
            task(date(2024, 3, 5), 2, username="bob"),
        ]
    )

    rows = _service(source).hours_by_user(selection=TaskSelection(usernames=("bob",)))

    assert [(row.username, row.percentage) for row in rows] == [("bob", 100.0)]


def test_period_delta_fetches_prior_window() -> None:
    source = InMemoryRecordSource(
        [
            task(date(2024, 2, 10), 4, username="alice"),
            task(date(2024, 3, 10), 6, username="alice"),
        ]
    )

    result = _service(source).period_delta(ReportWindow(start=date(2024, 3, 1), end=date(2024, 3, 31)))

    assert source.task_fetches[1] == (date(2024, 1, 30), date(2024, 2, 29))
    assert result.by_user[0].delta == 2.0
    assert result.prior_label == "2024-01-30 to 2024-02-29"


def test_period_delta_from_first_representable_day_skips_prior_fetch() -> None:
    source = InMemoryRecordSource([task(date(1, 1, 5), 3, username="alice")])

    result = _service(source).period_delta(ReportWindow(start=date.min, end=date(1, 1, 31)))

    assert source.task_fetches == [(date.min, date(1, 1, 31))]
    assert result.by_user[0].delta == 3.0


def test_stale_projects_default_threshold_from_settings() -> None:
    source = InMemoryRecordSource([task(date(2024, 3, 1), 1, project="Recent"), task(date(2024, 1, 2), 1, project="Old")])

    rows = _service(source, report_stale_project_days=30).stale_projects(
        ReportWindow(start=date(2024, 1, 1), end=date(2024, 3, 13))
    )

    assert [row.project for row in rows] == ["Old"]


def test_billability_status_reflects_index() -> None:
    index = BillabilityIndex()
    service = _service(InMemoryRecordSource(), index)

    assert service.billability_status().loaded is False

    index.load([BillabilityFlag(Dimension.CLIENT, RecordFamily.TASK, "Internal", True)])

    status = service.billability_status()
    assert status.loaded is True
    assert status.flag_count == 1
