"""DailyHabit ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from aligned.db.base import Base


class DailyHabit(Base):
    __tablename__ = "daily_habits"
    __table_args__ = (
        Index("ix_daily_habits_user_id", "user_id"),
        UniqueConstraint("user_id", "legacy_id", name="uq_daily_habits_user_legacy"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    legacy_id = Column(Text, nullable=True)
    # "non_negotiable" or "health_objective"
    type = Column(String(length=30), nullable=False)
    text = Column(Text, nullable=False)
    icon = Column(String(length=50), nullable=True)
    target_value = Column(Text, nullable=True)
    personalized_tip = Column(Text, nullable=True)
    sort_order = Column(Integer, nullable=False, server_default=sa_text("0"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
