"""Pydantic schemas for legacy migration API."""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from aligned.services.migration_manager import FEATURE_AREAS


class MigrationRequest(BaseModel):
    areas: Optional[List[str]] = Field(default=None, description="Feature areas to migrate; all when omitted.")

    @field_validator("areas")
    @classmethod
    def _known_areas(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        unknown = [area for area in value if area not in FEATURE_AREAS]
        if unknown:
            raise ValueError(f"unknown feature areas: {', '.join(unknown)}")
        return list(dict.fromkeys(value))


class MigrationResponse(BaseModel):
    results: Dict[str, bool]
