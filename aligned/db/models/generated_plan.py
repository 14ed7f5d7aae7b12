"""Durable-tier rows for generated plan documents."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID

from aligned.db.base import Base
from aligned.db.types import JSONBCompat


class GeneratedPlan(Base):
    """One plan document per user; upserted on ``user_id``."""

    __tablename__ = "generated_plans"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    document = Column(JSONBCompat, nullable=False)
    generated_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class CustomWeeklyPlan(Base):
    """User-edited day/activity template that replaced the generated weekly_plan."""

    __tablename__ = "custom_weekly_plans"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    plan = Column(JSONBCompat, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
