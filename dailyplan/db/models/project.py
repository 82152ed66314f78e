"""Project ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from dailyplan.db.base import Base


class Project(Base):
    __tablename__ = "projects"
    __table_args__ = (Index("ix_projects_user_id_status", "user_id", "status"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    goal = Column(Text, nullable=True)
    priority = Column(String(length=10), nullable=False, default="MEDIUM")
    category = Column(String(length=50), nullable=False, default="PERSONAL")
    status = Column(String(length=20), nullable=False, default="ACTIVE")
    soft_deadline = Column(Date, nullable=True)
    hard_deadline = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    tasks = relationship(
        "Task",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Task.created_at",
    )
