"""ORM read models over the task activity application's tables.

The CRUD application owns these tables and their migrations; the reporting
backend maps only the columns it reads.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, Date, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class TaskActivity(Base):
    __tablename__ = "taskactivity"
    __table_args__ = (
        Index("ix_taskactivity_taskdate", "taskdate"),
        Index("ix_taskactivity_username_taskdate", "username", "taskdate"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    task_date: Mapped[date] = mapped_column("taskdate", Date, nullable=False)
    client: Mapped[str] = mapped_column(String(255), nullable=False)
    project: Mapped[str] = mapped_column(String(255), nullable=False)
    phase: Mapped[str] = mapped_column(String(255), nullable=False)
    hours: Mapped[Decimal] = mapped_column("taskhours", Numeric(4, 2), nullable=False)
    task_id: Mapped[str | None] = mapped_column("taskid", String(10), nullable=True)
    task_name: Mapped[str | None] = mapped_column("taskname", String(120), nullable=True)
    details: Mapped[str | None] = mapped_column(String(255), nullable=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False)


class Expense(Base):
    __tablename__ = "expenses"
    __table_args__ = (
        Index("ix_expenses_expense_date", "expense_date"),
        Index("ix_expenses_username", "username"),
    )

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    client: Mapped[str] = mapped_column(String(50), nullable=False)
    project: Mapped[str | None] = mapped_column(String(50), nullable=True)
    expense_date: Mapped[date] = mapped_column(Date, nullable=False)
    expense_type: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    expense_status: Mapped[str] = mapped_column(String(50), nullable=False, default="Draft")


class DropdownValue(Base):
    """Dropdown catalogue row; ``category`` is TASK/EXPENSE, ``subcategory`` the dimension."""

    __tablename__ = "dropdownvalues"
    __table_args__ = (Index("ix_dropdownvalues_category_subcategory", "category", "subcategory"),)

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    subcategory: Mapped[str] = mapped_column(String(50), nullable=False)
    item_value: Mapped[str] = mapped_column("itemvalue", String(255), nullable=False)
    display_order: Mapped[int] = mapped_column("displayorder", Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column("isactive", Boolean, nullable=False, default=True)
    non_billable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
