"""FastAPI dependencies for the plan pipeline."""
from __future__ import annotations

from fastapi import Depends

from aligned.cache.local_store import LocalStore, get_local_store
from aligned.core.config import settings
from aligned.services.generation_client import GeminiClient, GenerationConfig
from aligned.services.plan_generator import PlanGenerationOrchestrator


def get_store() -> LocalStore:
    return get_local_store()


def get_generation_client() -> GeminiClient:
    return GeminiClient(GenerationConfig.from_settings())


def get_plan_orchestrator(client: GeminiClient = Depends(get_generation_client)) -> PlanGenerationOrchestrator:
    """A fresh orchestrator per request; it holds per-run state."""
    return PlanGenerationOrchestrator(client, backoff_seconds=settings.generation_retry_backoff_seconds)
