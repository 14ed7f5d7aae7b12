"""Pydantic schemas for onboarding identity API."""
from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from aligned.services.user_profile import MAX_IDENTITY_FIELD_LENGTH, UserProfile

# Raw answers may carry invisible characters that sanitizing strips, so allow headroom.
_RAW_LIMIT = MAX_IDENTITY_FIELD_LENGTH * 2


class IdentityAnswers(BaseModel):
    identity_statement: Optional[str] = Field(default=None, max_length=_RAW_LIMIT)
    purpose_why: Optional[str] = Field(default=None, max_length=_RAW_LIMIT)
    yearly_goal: Optional[str] = Field(default=None, max_length=_RAW_LIMIT)
    daily_time_capacity: Optional[str] = Field(default=None, max_length=_RAW_LIMIT)
    sleep_definition: Optional[str] = Field(default=None, max_length=_RAW_LIMIT)
    body_care: Optional[str] = Field(default=None, max_length=_RAW_LIMIT)
    self_care_practice: Optional[str] = Field(default=None, max_length=_RAW_LIMIT)
    habits_focus: Optional[str] = Field(default=None, max_length=_RAW_LIMIT)
    health_focus: Optional[str] = Field(default=None, max_length=_RAW_LIMIT)
    friction_triggers: Optional[str] = Field(default=None, max_length=_RAW_LIMIT)

    def to_profile(self) -> UserProfile:
        return UserProfile(**self.model_dump())


class IdentityResponse(IdentityAnswers):
    user_id: UUID
    updated_at: Optional[datetime] = None
