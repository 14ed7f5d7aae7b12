"""Onboarding profile passed to plan generation."""
from __future__ import annotations

import re
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator

NOT_PROVIDED = "Not provided"
MAX_IDENTITY_FIELD_LENGTH = 2000

PROFILE_FIELDS = (
    "identity_statement",
    "purpose_why",
    "yearly_goal",
    "daily_time_capacity",
    "sleep_definition",
    "body_care",
    "self_care_practice",
    "habits_focus",
    "health_focus",
    "friction_triggers",
)

# zero-width, bidi overrides/isolates, C0/C1 controls except \t \n \r, invisible format chars
_UNSAFE_UNICODE = re.compile(
    r"[\u200B-\u200D\uFEFF\u200E\u200F"
    r"\u202A-\u202E\u2066-\u2069"
    r"\x00-\x08\x0B\x0C\x0E-\x1F\x7F-\x9F"
    r"\u00AD\u034F\u061C\u115F\u1160\u17B4\u17B5\u180B-\u180E"
    r"\uFE00-\uFE0F]"
)


def sanitize_identity_field(value: Optional[str]) -> str:
    """Strip invisible/control characters, normalize whitespace and cap the length."""
    if not value:
        return ""
    cleaned = _UNSAFE_UNICODE.sub("", str(value))
    cleaned = re.sub(r"[ \t]+", " ", cleaned)
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    cleaned = "\n".join(line.strip() for line in cleaned.split("\n")).strip()
    return cleaned[:MAX_IDENTITY_FIELD_LENGTH]


class UserProfile(BaseModel):
    """Immutable onboarding answers; blank answers collapse to ``NOT_PROVIDED``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    identity_statement: str = NOT_PROVIDED
    purpose_why: str = NOT_PROVIDED
    yearly_goal: str = NOT_PROVIDED
    daily_time_capacity: str = NOT_PROVIDED
    sleep_definition: str = NOT_PROVIDED
    body_care: str = NOT_PROVIDED
    self_care_practice: str = NOT_PROVIDED
    habits_focus: str = NOT_PROVIDED
    health_focus: str = NOT_PROVIDED
    friction_triggers: str = NOT_PROVIDED

    @field_validator(*PROFILE_FIELDS, mode="before")
    @classmethod
    def _sanitize(cls, value: Any) -> str:
        cleaned = sanitize_identity_field(value if isinstance(value, str) else (str(value) if value else None))
        return cleaned or NOT_PROVIDED

    def provided(self, field: str) -> Optional[str]:
        value = getattr(self, field)
        return None if value == NOT_PROVIDED else value

    @classmethod
    def from_identity_row(cls, row) -> "UserProfile":
        return cls(**{field: getattr(row, field, None) for field in PROFILE_FIELDS})

    def to_answers(self) -> Dict[str, Optional[str]]:
        """Answers with the sentinel mapped back to ``None`` (storage shape)."""
        return {field: self.provided(field) for field in PROFILE_FIELDS}
