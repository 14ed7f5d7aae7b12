"""JournalEntry ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from aligned.db.base import Base


class JournalEntry(Base):
    __tablename__ = "journal_entries"
    __table_args__ = (
        Index("ix_journal_entries_user_id", "user_id"),
        UniqueConstraint("user_id", "legacy_id", name="uq_journal_entries_user_legacy"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    legacy_id = Column(Text, nullable=True)
    entry_date = Column(Date, nullable=False)
    prompt = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    ai_summary = Column(Text, nullable=True)
    polished_content = Column(Text, nullable=True)
    mood = Column(String(length=20), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
