"""Bounded-retry orchestration of the plan generation pipeline."""
from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from aligned.core.errors import (
    ParseError,
    PlanGenerationError,
    PlanPipelineError,
    SchemaError,
    TruncationError,
)
from aligned.observability.metrics import log_metric
from aligned.observability.tracing import trace
from aligned.services.generation_client import GeminiClient
from aligned.services.plan_schema import GeneratedPlanDocument
from aligned.services.plan_synthesizer import synthesize_plan
from aligned.services.plan_validator import audit_plan_depth, validate_plan_text
from aligned.services.prompt_builder import build_plan_prompt
from aligned.services.response_sanitizer import sanitize_response
from aligned.services.user_profile import UserProfile

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2
DEFAULT_BACKOFF_SECONDS = 2.0


class GenerationState(str, enum.Enum):
    IDLE = "idle"
    GENERATING = "generating"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class GenerationOutcome:
    document: Dict[str, Any]
    warnings: List[str] = field(default_factory=list)
    source: str = "generated"
    attempts: int = 0


class PlanGenerationOrchestrator:
    """
    Run prompt -> generate -> sanitize -> validate with one retry.

    State lives on the instance (``state``, ``attempts``, ``last_error``) so a
    caller can inspect how the last run ended. Instances are per request and not
    shared across threads.
    """

    def __init__(
        self,
        client: GeminiClient,
        *,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        max_attempts: int = MAX_ATTEMPTS,
    ) -> None:
        self.client = client
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep
        self.max_attempts = max_attempts
        self.state = GenerationState.IDLE
        self.attempts = 0
        self.last_error: Optional[PlanPipelineError] = None

    def _attempt(self, prompt: str) -> GeneratedPlanDocument:
        raw = self.client.generate(prompt)
        sanitized = sanitize_response(raw)
        if sanitized.truncated:
            raise TruncationError(f"response ended mid-structure after {len(sanitized.text)} characters")
        result = validate_plan_text(sanitized.text)
        if not result.ok:
            if result.kind == "parse":
                raise ParseError("; ".join(result.errors))
            raise SchemaError(result.errors)
        return result.data

    def run(
        self,
        profile: UserProfile,
        fallback_document: Optional[Dict[str, Any]] = None,
    ) -> GenerationOutcome:
        self.state = GenerationState.GENERATING
        self.attempts = 0
        self.last_error = None

        if not self.client.is_configured:
            logger.info("Generation credential missing; synthesizing plan locally.")
            document = synthesize_plan(profile)
            log_metric("plan.generation.synthesized", 1)
            self.state = GenerationState.SUCCEEDED
            return GenerationOutcome(
                document=document.to_storage(),
                warnings=audit_plan_depth(document).warnings,
                source="synthesized",
                attempts=0,
            )

        prompt = build_plan_prompt(profile)
        for attempt in range(1, self.max_attempts + 1):
            self.attempts = attempt
            try:
                with trace("plan.generate", metadata={"attempt": attempt, "model": self.client.config.model}):
                    document = self._attempt(prompt)
            except PlanPipelineError as exc:
                self.last_error = exc
                logger.warning("Plan generation attempt %s/%s failed: %s", attempt, self.max_attempts, exc)
                log_metric("plan.generation.failure", 1, {"attempt": attempt, "error": type(exc).__name__})
                if attempt < self.max_attempts:
                    self._sleep(self.backoff_seconds)
                continue

            document.is_ai_generated = True
            audit = audit_plan_depth(document)
            for warning in audit.warnings:
                logger.warning("Depth audit: %s", warning)
            log_metric("plan.generation.success", 1, {"attempts": attempt, "depth_warnings": len(audit.warnings)})
            self.state = GenerationState.SUCCEEDED
            return GenerationOutcome(
                document=document.to_storage(),
                warnings=audit.warnings,
                source="generated",
                attempts=attempt,
            )

        self.state = GenerationState.FAILED
        error = self.last_error
        if fallback_document is not None:
            logger.warning("Serving previous plan after generation failed: %s", error.reason)
            log_metric("plan.generation.fallback", 1, {"error": type(error).__name__})
            return GenerationOutcome(
                document=fallback_document,
                warnings=[f"Plan refresh failed ({error.reason}); showing your previous plan."]
                + audit_plan_depth(fallback_document).warnings,
                source="cached",
                attempts=self.attempts,
            )
        raise PlanGenerationError(error, self.attempts)
