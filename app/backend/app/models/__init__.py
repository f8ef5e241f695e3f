"""ORM model package."""

from app.models.entities import DropdownValue, Expense, TaskActivity

__all__ = [
    "DropdownValue",
    "Expense",
    "TaskActivity",
]
