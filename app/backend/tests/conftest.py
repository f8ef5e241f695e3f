from __future__ import annotations

from collections.abc import Generator, Sequence
from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.db.base import Base
from app.db.dependencies import get_db_session
import app.models.entities  # noqa: F401
from app.main import create_app
from app.models.entities import DropdownValue, Expense, TaskActivity
from app.reporting.records import ExpenseRecord, TaskRecord
from app.repositories.activity_repository import DropdownFlagSource

TEST_TABLES = [
    TaskActivity.__table__,
    Expense.__table__,
    DropdownValue.__table__,
]


class InMemoryRecordSource:
    """Record source over fixed lists that remembers every fetch window."""

    def __init__(
        self,
        tasks: Sequence[TaskRecord] = (),
        expenses: Sequence[ExpenseRecord] = (),
    ) -> None:
        self.tasks = list(tasks)
        self.expenses = list(expenses)
        self.task_fetches: list[tuple[date, date]] = []
        self.expense_fetches: list[tuple[date, date]] = []

    def fetch_tasks(self, start: date, end: date) -> list[TaskRecord]:
        self.task_fetches.append((start, end))
        return [task for task in self.tasks if start <= task.date <= end]

    def fetch_expenses(self, start: date, end: date) -> list[ExpenseRecord]:
        self.expense_fetches.append((start, end))
        return [expense for expense in self.expenses if start <= expense.date <= end]


def task(
    day: date,
    hours: str | float,
    *,
    client: str = "Acme",
    project: str = "Portal",
    phase: str = "Dev",
    details: str | None = None,
    username: str | None = "alice",
    task_id: str | None = None,
) -> TaskRecord:
    return TaskRecord(
        date=day,
        client=client,
        project=project,
        phase=phase,
        hours=Decimal(str(hours)),
        details=details,
        username=username,
        task_id=task_id,
    )


@pytest.fixture()
def session_factory() -> Generator[sessionmaker, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine, tables=TEST_TABLES)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.drop_all(bind=engine, tables=TEST_TABLES)


@pytest.fixture()
def db_session(session_factory: sessionmaker) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        billability_load_on_startup=False,
        auth_allow_dev_principal=True,
        auth_dev_username="dev.user",
        auth_dev_roles=["ADMIN"],
    )


@pytest.fixture()
def client(
    db_session: Session,
    session_factory: sessionmaker,
    test_settings: Settings,
) -> Generator[TestClient, None, None]:
    app = create_app(settings=test_settings, flag_source=DropdownFlagSource(session_factory))

    def override_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(username: str = "alice", roles: str = "USER") -> dict[str, str]:
    return {
        "X-USERNAME": username,
        "X-ROLES": roles,
    }


def admin_headers(username: str = "admin") -> dict[str, str]:
    return auth_headers(username=username, roles="ADMIN")
