"""Pydantic schemas for plan API."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from aligned.api.schemas.identity import IdentityAnswers


class PlanGenerateRequest(BaseModel):
    force_refresh: bool = False
    profile: Optional[IdentityAnswers] = Field(
        default=None,
        description="Onboarding answers to plan from; the stored identity is used when omitted.",
    )


class PlanResponse(BaseModel):
    user_id: UUID
    document: Dict[str, Any]
    warnings: List[str] = Field(default_factory=list)
    source: str
    generated_at: Optional[datetime] = None
    attempts: int = 0
    request_id: Optional[str] = None
