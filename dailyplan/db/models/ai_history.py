"""AI interaction history ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, func
from sqlalchemy.dialects.postgresql import UUID

from dailyplan.db.base import Base
from dailyplan.db.types import JSONDocument


class AIHistory(Base):
    __tablename__ = "ai_history"
    __table_args__ = (Index("ix_ai_history_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    request_data = Column(JSONDocument, nullable=False, default=dict)
    response_data = Column(JSONDocument, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
