"""Read-only record and billability flag sources over the activity tables."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import UpstreamFetchFailure
from app.models.entities import DropdownValue, Expense, TaskActivity
from app.reporting.records import BillabilityFlag, Dimension, ExpenseRecord, RecordFamily, TaskRecord

_FAMILIES = {family.value: family for family in RecordFamily}
_DIMENSIONS = {dimension.value: dimension for dimension in Dimension}


def _to_task_record(row: TaskActivity) -> TaskRecord:
    return TaskRecord(
        date=row.task_date,
        client=row.client,
        project=row.project,
        phase=row.phase,
        hours=row.hours,
        details=row.details,
        username=row.username,
        task_id=row.task_id,
    )


def _to_expense_record(row: Expense) -> ExpenseRecord:
    return ExpenseRecord(
        date=row.expense_date,
        client=row.client,
        project=row.project,
        expense_type=row.expense_type,
        status=row.expense_status,
        username=row.username,
    )


class ActivityRepository:
    """Task and expense fetches for an inclusive date window.

    When ``username`` is set every fetch is restricted to that user's rows.
    """

    def __init__(self, db: Session, username: str | None = None) -> None:
        self.db = db
        self.username = username

    def fetch_tasks(self, start: date, end: date) -> list[TaskRecord]:
        conditions = [TaskActivity.task_date >= start, TaskActivity.task_date <= end]
        if self.username is not None:
            conditions.append(TaskActivity.username == self.username)
        try:
            rows = self.db.scalars(
                select(TaskActivity)
                .where(and_(*conditions))
                .order_by(TaskActivity.task_date.asc(), TaskActivity.id.asc())
            ).all()
        except SQLAlchemyError as exc:
            raise UpstreamFetchFailure("task records", str(exc)) from exc
        return [_to_task_record(row) for row in rows]

    def fetch_expenses(self, start: date, end: date) -> list[ExpenseRecord]:
        conditions = [Expense.expense_date >= start, Expense.expense_date <= end]
        if self.username is not None:
            conditions.append(Expense.username == self.username)
        try:
            rows = self.db.scalars(
                select(Expense)
                .where(and_(*conditions))
                .order_by(Expense.expense_date.asc(), Expense.id.asc())
            ).all()
        except SQLAlchemyError as exc:
            raise UpstreamFetchFailure("expense records", str(exc)) from exc
        return [_to_expense_record(row) for row in rows]


class DropdownFlagSource:
    """Billability flags read from the dropdown catalogue.

    Opens its own session per fetch so it can run on the index loader thread.
    Rows whose family or dimension is not a billability key are skipped.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self.session_factory = session_factory

    def fetch_all_billability_flags(self) -> list[BillabilityFlag]:
        session = self.session_factory()
        try:
            rows = session.scalars(select(DropdownValue).order_by(DropdownValue.id.asc())).all()
        except SQLAlchemyError as exc:
            raise UpstreamFetchFailure("billability flags", str(exc)) from exc
        finally:
            session.close()

        flags: list[BillabilityFlag] = []
        for row in rows:
            family = _FAMILIES.get(row.category)
            dimension = _DIMENSIONS.get(row.subcategory)
            if family is None or dimension is None:
                continue
            # stored as (family, dimension); flags key on (dimension, family)
            flags.append(
                BillabilityFlag(
                    category=dimension,
                    subcategory=family,
                    item_value=row.item_value,
                    non_billable=bool(row.non_billable),
                )
            )
        return flags
