"""User planning preferences ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID

from dailyplan.db.base import Base
from dailyplan.db.types import JSONDocument


class UserPreferences(Base):
    __tablename__ = "user_preferences"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    max_tasks_per_day = Column(Integer, nullable=False, default=5)
    max_work_hours_per_day = Column(Integer, nullable=False, default=6)
    preferred_projects_per_day = Column(Integer, nullable=False, default=2)
    # "HH:MM" strings, both optional.
    peak_productivity_start = Column(String(length=5), nullable=True)
    peak_productivity_end = Column(String(length=5), nullable=True)
    short_term_goals = Column(JSONDocument, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
