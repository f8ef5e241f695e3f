"""Collaborator interfaces the reporting engine fetches from."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Protocol

from app.reporting.records import BillabilityFlag, ExpenseRecord, TaskRecord


class RecordSource(Protocol):
    """Supplies caller-scoped records for an inclusive date window."""

    def fetch_tasks(self, start: date, end: date) -> Sequence[TaskRecord]: ...

    def fetch_expenses(self, start: date, end: date) -> Sequence[ExpenseRecord]: ...


class FlagSource(Protocol):
    def fetch_all_billability_flags(self) -> Sequence[BillabilityFlag]: ...
