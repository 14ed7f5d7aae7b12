"""DailyActivity ORM model (per-day analytics rollup)."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from aligned.db.base import Base


class DailyActivity(Base):
    __tablename__ = "daily_activities"
    __table_args__ = (UniqueConstraint("user_id", "activity_date", name="uq_daily_activities_user_date"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    activity_date = Column(Date, nullable=False)
    focus_sessions = Column(Integer, nullable=False, server_default=sa_text("0"))
    focus_minutes = Column(Integer, nullable=False, server_default=sa_text("0"))
    tasks_completed = Column(Integer, nullable=False, server_default=sa_text("0"))
    tasks_total = Column(Integer, nullable=False, server_default=sa_text("0"))
    habits_completed = Column(Integer, nullable=False, server_default=sa_text("0"))
    habits_total = Column(Integer, nullable=False, server_default=sa_text("0"))
    mood_checkin = Column(String(length=10), nullable=True)
    energy_checkin = Column(String(length=10), nullable=True)
    challenge_check_ins = Column(Integer, nullable=False, server_default=sa_text("0"))
    active_challenges = Column(Integer, nullable=False, server_default=sa_text("0"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
