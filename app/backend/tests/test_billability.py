from __future__ import annotations

import logging
from datetime import date

import pytest

from app.core.errors import UpstreamFetchFailure
from app.reporting.billability import BillabilityEvaluator, BillabilityIndex
from app.reporting.records import BillabilityFlag, Dimension, ExpenseRecord, RecordFamily

from conftest import task


class StaticFlagSource:
    def __init__(self, flags: list[BillabilityFlag]) -> None:
        self.flags = flags

    def fetch_all_billability_flags(self) -> list[BillabilityFlag]:
        return list(self.flags)


class FailingFlagSource:
    def fetch_all_billability_flags(self) -> list[BillabilityFlag]:
        raise UpstreamFetchFailure("billability flags", "connection refused")


def _flag(category: Dimension, item_value: str, non_billable: bool = True, family: RecordFamily = RecordFamily.TASK) -> BillabilityFlag:
    return BillabilityFlag(category=category, subcategory=family, item_value=item_value, non_billable=non_billable)


def test_unloaded_index_treats_everything_as_billable() -> None:
    index = BillabilityIndex()

    assert index.is_loaded is False
    assert index.flag_count == 0
    assert index.lookup(Dimension.CLIENT, RecordFamily.TASK, "Internal") is True


def test_lookup_honours_flags_and_unknown_values_fail_open() -> None:
    index = BillabilityIndex()
    index.load(
        [
            _flag(Dimension.CLIENT, "Internal"),
            _flag(Dimension.PROJECT, "Portal", non_billable=False),
        ]
    )

    assert index.is_loaded is True
    assert index.loaded_at is not None
    assert index.lookup(Dimension.CLIENT, RecordFamily.TASK, "Internal") is False
    assert index.lookup(Dimension.PROJECT, RecordFamily.TASK, "Portal") is True
    assert index.lookup(Dimension.CLIENT, RecordFamily.TASK, "Acme") is True
    # the same value under the other family is a different key
    assert index.lookup(Dimension.CLIENT, RecordFamily.EXPENSE, "Internal") is True


def test_first_flag_for_a_key_wins() -> None:
    index = BillabilityIndex()
    count = index.load(
        [
            _flag(Dimension.PHASE, "Training", non_billable=True),
            _flag(Dimension.PHASE, "Training", non_billable=False),
        ]
    )

    assert count == 1
    assert index.lookup(Dimension.PHASE, RecordFamily.TASK, "Training") is False


def test_reload_replaces_snapshot() -> None:
    index = BillabilityIndex()
    index.reload(StaticFlagSource([_flag(Dimension.CLIENT, "Internal")]))
    assert index.lookup(Dimension.CLIENT, RecordFamily.TASK, "Internal") is False

    index.reload(StaticFlagSource([_flag(Dimension.CLIENT, "Bench")]))

    assert index.flag_count == 1
    assert index.lookup(Dimension.CLIENT, RecordFamily.TASK, "Internal") is True
    assert index.lookup(Dimension.CLIENT, RecordFamily.TASK, "Bench") is False


def test_failed_reload_keeps_previous_snapshot() -> None:
    index = BillabilityIndex()
    index.load([_flag(Dimension.CLIENT, "Internal")])

    with pytest.raises(UpstreamFetchFailure):
        index.reload(FailingFlagSource())

    assert index.lookup(Dimension.CLIENT, RecordFamily.TASK, "Internal") is False


def test_background_load_publishes_flags() -> None:
    index = BillabilityIndex()

    thread = index.load_in_background(StaticFlagSource([_flag(Dimension.CLIENT, "Internal")]))
    thread.join(timeout=5)

    assert index.wait_until_loaded(timeout=5) is True
    assert index.lookup(Dimension.CLIENT, RecordFamily.TASK, "Internal") is False


def test_background_load_failure_is_logged_and_fails_open(caplog: pytest.LogCaptureFixture) -> None:
    index = BillabilityIndex()

    with caplog.at_level(logging.ERROR, logger="app.reporting.billability"):
        thread = index.load_in_background(FailingFlagSource())
        thread.join(timeout=5)

    assert index.is_loaded is False
    assert index.lookup(Dimension.CLIENT, RecordFamily.TASK, "Internal") is True
    assert "Failed to load billability flags" in caplog.text


def test_task_is_billable_only_when_every_dimension_is() -> None:
    index = BillabilityIndex()
    index.load([_flag(Dimension.PHASE, "Training")])
    evaluator = BillabilityEvaluator(index)

    assert evaluator.is_task_billable(task(date(2024, 1, 8), 2, phase="Dev")) is True
    assert evaluator.is_task_billable(task(date(2024, 1, 8), 2, phase="Training")) is False

    billable, non_billable = evaluator.split_tasks(
        [task(date(2024, 1, 8), 2, phase="Dev"), task(date(2024, 1, 9), 1, phase="Training")]
    )
    assert [entry.phase for entry in billable] == ["Dev"]
    assert [entry.phase for entry in non_billable] == ["Training"]


def test_expense_billability_uses_expense_family_keys() -> None:
    index = BillabilityIndex()
    index.load(
        [
            _flag(Dimension.EXPENSE_TYPE, "Meals", family=RecordFamily.EXPENSE),
            _flag(Dimension.CLIENT, "Acme", family=RecordFamily.TASK),
        ]
    )
    evaluator = BillabilityEvaluator(index)

    travel = ExpenseRecord(date=date(2024, 1, 8), client="Acme", expense_type="Travel", status="Approved")
    meals = ExpenseRecord(date=date(2024, 1, 8), client="Acme", expense_type="Meals", status="Approved")

    assert evaluator.is_expense_billable(travel) is True
    assert evaluator.is_expense_billable(meals) is False


def test_adding_a_flag_never_turns_a_record_billable() -> None:
    records = [
        task(date(2024, 1, 8), 1, client="Acme", phase="Dev"),
        task(date(2024, 1, 8), 1, client="Internal", phase="Dev"),
        task(date(2024, 1, 8), 1, client="Acme", phase="Training"),
    ]
    smaller = BillabilityIndex()
    smaller.load([_flag(Dimension.CLIENT, "Internal")])
    larger = BillabilityIndex()
    larger.load([_flag(Dimension.CLIENT, "Internal"), _flag(Dimension.PHASE, "Training")])

    for record in records:
        if not BillabilityEvaluator(smaller).is_task_billable(record):
            assert BillabilityEvaluator(larger).is_task_billable(record) is False
