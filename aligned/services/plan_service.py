"""Serve a user's plan from cache or generate a fresh one."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from aligned.cache.plan_cache import DualTierCache
from aligned.core.errors import MissingProfileError
from aligned.services.plan_generator import PlanGenerationOrchestrator
from aligned.services.plan_validator import audit_plan_depth
from aligned.services.user_profile import UserProfile

logger = logging.getLogger(__name__)


@dataclass
class PlanResult:
    document: Dict[str, Any]
    generated_at: Optional[datetime]
    source: str
    warnings: List[str] = field(default_factory=list)
    attempts: int = 0


def get_or_generate(
    user_id: UUID,
    profile: Optional[UserProfile],
    *,
    cache: DualTierCache,
    orchestrator: PlanGenerationOrchestrator,
    force_refresh: bool = False,
) -> PlanResult:
    """
    Return the cached plan unless ``force_refresh`` is set or nothing is cached.

    A refresh passes the cached document to the orchestrator as the fallback it
    may serve if generation fails. Generated and synthesized plans are written
    through both tiers; a served fallback is not written again.
    ``PlanGenerationError`` propagates with nothing persisted, and
    ``MissingProfileError`` is raised when generation is needed without a profile.
    """
    cached = cache.load(user_id)
    if cached is not None and not force_refresh:
        return PlanResult(
            document=cached.document,
            generated_at=cached.generated_at,
            source="cache",
            warnings=audit_plan_depth(cached.document).warnings,
        )
    if profile is None:
        raise MissingProfileError(f"no onboarding answers for user {user_id}")

    outcome = orchestrator.run(profile, fallback_document=cached.document if cached else None)
    if outcome.source == "cached":
        return PlanResult(
            document=outcome.document,
            generated_at=cached.generated_at if cached else None,
            source=outcome.source,
            warnings=outcome.warnings,
            attempts=outcome.attempts,
        )

    entry = cache.save(user_id, outcome.document)
    logger.info("Stored %s plan for user %s after %s attempt(s)", outcome.source, user_id, outcome.attempts)
    return PlanResult(
        document=entry.document,
        generated_at=entry.generated_at,
        source=outcome.source,
        warnings=outcome.warnings,
        attempts=outcome.attempts,
    )
