"""Error taxonomy for the plan generation pipeline and legacy migrations."""
from __future__ import annotations

from typing import List, Optional


class PlanPipelineError(Exception):
    """Base class for failures the orchestrator retries once."""

    reason = "plan generation failed"


class TransportError(PlanPipelineError):
    reason = "generation service unavailable"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EmptyResponseError(PlanPipelineError):
    reason = "generation service returned no text"


class TruncationError(PlanPipelineError):
    reason = "response truncated"


class ParseError(PlanPipelineError):
    reason = "response was not valid JSON"


class SchemaError(PlanPipelineError):
    reason = "response did not match the plan schema"

    def __init__(self, errors: List[str]) -> None:
        preview = "; ".join(errors[:5])
        super().__init__(preview or self.reason)
        self.errors = errors


class PlanGenerationError(Exception):
    """Terminal failure surfaced to the caller once every attempt has failed."""

    def __init__(self, cause: PlanPipelineError, attempts: int) -> None:
        self.cause = cause
        self.attempts = attempts
        super().__init__(f"Plan generation failed after {attempts} attempts: {cause.reason} ({cause})")

    @property
    def reason(self) -> str:
        return self.cause.reason


class MigrationError(Exception):
    """A legacy feature area could not be moved into the durable tier."""

    def __init__(self, area: str, message: str) -> None:
        super().__init__(f"{area}: {message}")
        self.area = area


class MissingProfileError(Exception):
    """No onboarding answers exist to plan from and nothing is cached."""
