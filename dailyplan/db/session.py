"""Engine and session factory bound to the configured database."""
from __future__ import annotations

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from dailyplan.core.config import settings


@lru_cache
def get_engine() -> Engine:
    """Create the process-wide engine on first use."""
    return create_engine(settings.database_url, echo=settings.debug, future=True, pool_pre_ping=True)


@lru_cache
def get_session_factory() -> sessionmaker:
    return sessionmaker(bind=get_engine(), autoflush=False, autocommit=False, future=True)
