"""Database dependencies for FastAPI endpoints."""

from collections.abc import Generator

from fastapi import Request
from sqlalchemy.orm import Session


def get_db_session(request: Request) -> Generator[Session, None, None]:
    """Yield a per-request session from the application's session factory."""

    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()
