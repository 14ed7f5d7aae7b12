"""BrainDump ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from aligned.db.base import Base
from aligned.db.types import JSONBCompat


class BrainDump(Base):
    __tablename__ = "brain_dumps"
    __table_args__ = (
        Index("ix_brain_dumps_user_id", "user_id"),
        UniqueConstraint("user_id", "legacy_id", name="uq_brain_dumps_user_legacy"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # Identifier from the pre-migration local record; null for rows created natively.
    legacy_id = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    organized_content = Column(Text, nullable=True)
    tags = Column(JSONBCompat, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
