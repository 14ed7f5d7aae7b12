"""User and onboarding identity ORM models."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Text, func
from sqlalchemy.dialects.postgresql import UUID

from aligned.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class UserIdentity(Base):
    """Onboarding answers; one row per user, rewritten on every onboarding pass."""

    __tablename__ = "user_identities"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    identity_statement = Column(Text, nullable=True)
    purpose_why = Column(Text, nullable=True)
    yearly_goal = Column(Text, nullable=True)
    daily_time_capacity = Column(Text, nullable=True)
    sleep_definition = Column(Text, nullable=True)
    body_care = Column(Text, nullable=True)
    self_care_practice = Column(Text, nullable=True)
    habits_focus = Column(Text, nullable=True)
    health_focus = Column(Text, nullable=True)
    friction_triggers = Column(Text, nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
