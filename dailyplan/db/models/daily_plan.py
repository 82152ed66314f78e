"""Stored daily plans and their ordered task entries."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text as sa_text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from dailyplan.db.base import Base


class DailyPlan(Base):
    __tablename__ = "daily_plans"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_plans_user_date"),
        Index("ix_daily_plans_user_id", "user_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    ai_reasoning = Column(Text, nullable=True)
    # "advisor" or "fallback"
    source = Column(String(length=20), nullable=True)
    is_completed = Column(Boolean, nullable=False, server_default=sa_text("false"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    tasks = relationship(
        "DailyPlanTask",
        back_populates="daily_plan",
        cascade="all, delete-orphan",
        order_by="DailyPlanTask.order",
    )


class DailyPlanTask(Base):
    __tablename__ = "daily_plan_tasks"
    __table_args__ = (Index("ix_daily_plan_tasks_daily_plan_id", "daily_plan_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    daily_plan_id = Column(
        UUID(as_uuid=True),
        ForeignKey("daily_plans.id", ondelete="CASCADE"),
        nullable=False,
    )
    task_id = Column(UUID(as_uuid=True), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False)
    order = Column(Integer, nullable=False)
    recommended_start_time = Column(String(length=5), nullable=True)
    recommended_end_time = Column(String(length=5), nullable=True)
    ai_advice = Column(Text, nullable=True)
    is_completed = Column(Boolean, nullable=False, server_default=sa_text("false"))
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    daily_plan = relationship("DailyPlan", back_populates="tasks")
