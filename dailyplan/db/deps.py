"""FastAPI dependencies for database access."""
from __future__ import annotations

from typing import Iterator

from sqlalchemy.orm import Session

from dailyplan.db.session import get_session_factory


def get_db() -> Iterator[Session]:
    """Yield a session and make sure it is closed after the request."""
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
