"""Immutable input records consumed by the report builders."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

UNKNOWN_USER = "Unknown"


class Dimension(str, enum.Enum):
    CLIENT = "CLIENT"
    PROJECT = "PROJECT"
    PHASE = "PHASE"
    EXPENSE_TYPE = "EXPENSE_TYPE"


class RecordFamily(str, enum.Enum):
    TASK = "TASK"
    EXPENSE = "EXPENSE"


def _as_decimal(value: object) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True, slots=True)
class TaskRecord:
    """One time entry as fetched for a report window."""

    date: date
    client: str
    project: str
    phase: str
    hours: Decimal
    details: str | None = None
    username: str | None = None
    task_id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.hours, Decimal):
            object.__setattr__(self, "hours", _as_decimal(self.hours))

    @property
    def owner(self) -> str:
        return self.username or UNKNOWN_USER


@dataclass(frozen=True, slots=True)
class ExpenseRecord:
    date: date
    client: str
    expense_type: str
    status: str
    project: str | None = None
    username: str | None = None


@dataclass(frozen=True, slots=True)
class BillabilityFlag:
    """Non-billable marker for one dimension value within a record family."""

    category: Dimension
    subcategory: RecordFamily
    item_value: str
    non_billable: bool
