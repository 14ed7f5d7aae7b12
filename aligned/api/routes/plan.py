"""Yearly plan API routes."""
from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aligned.api.deps import get_plan_orchestrator, get_store
from aligned.api.schemas.plan import PlanGenerateRequest, PlanResponse
from aligned.cache.local_store import LocalStore
from aligned.cache.plan_cache import DualTierCache
from aligned.core.context import bind_user_id
from aligned.core.errors import MissingProfileError, PlanGenerationError
from aligned.db.deps import get_db
from aligned.observability.metrics import log_metric
from aligned.observability.tracing import trace
from aligned.services.migration_manager import MigrationManager
from aligned.services.plan_generator import PlanGenerationOrchestrator
from aligned.services.plan_service import get_or_generate
from aligned.services.plan_validator import audit_plan_depth
from aligned.services.user_service import load_profile

logger = logging.getLogger(__name__)

router = APIRouter()


def _migrate_legacy_plan(db: Session, store: LocalStore, user_id: UUID) -> bool:
    """Move a plan cached by the legacy client into the durable tier before the first read."""
    return MigrationManager(db, store).migrate_if_needed(user_id, "dashboard")


@router.post("/users/{user_id}/plan", response_model=PlanResponse, tags=["plan"])
def generate_plan(
    user_id: UUID,
    request: Request,
    payload: PlanGenerateRequest | None = None,
    db: Session = Depends(get_db),
    store: LocalStore = Depends(get_store),
    orchestrator: PlanGenerationOrchestrator = Depends(get_plan_orchestrator),
) -> PlanResponse | JSONResponse:
    """Return the cached plan, or generate (and store) one when missing or when a refresh is forced."""
    payload = payload or PlanGenerateRequest()
    request_id = getattr(request.state, "request_id", None)
    bind_user_id(str(user_id))

    _migrate_legacy_plan(db, store, user_id)
    profile = payload.profile.to_profile() if payload.profile else load_profile(db, user_id)
    cache = DualTierCache(db, store)
    metadata = {"route": "/users/{user_id}/plan", "force_refresh": payload.force_refresh}
    with trace("plan.request", metadata=metadata, user_id=str(user_id)):
        try:
            result = get_or_generate(
                user_id,
                profile,
                cache=cache,
                orchestrator=orchestrator,
                force_refresh=payload.force_refresh,
            )
        except MissingProfileError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="No onboarding answers found; complete onboarding first.",
            ) from exc
        except PlanGenerationError as exc:
            log_metric("plan.request.failed", 1, {"reason": exc.reason})
            return JSONResponse(
                status_code=status.HTTP_502_BAD_GATEWAY,
                content={"detail": str(exc), "retryable": True},
            )
        except SQLAlchemyError as exc:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to store plan"
            ) from exc

    log_metric("plan.request.served", 1, {"source": result.source})
    return PlanResponse(
        user_id=user_id,
        document=result.document,
        warnings=result.warnings,
        source=result.source,
        generated_at=result.generated_at,
        attempts=result.attempts,
        request_id=request_id,
    )


@router.get("/users/{user_id}/plan", response_model=PlanResponse, tags=["plan"])
def read_plan(
    user_id: UUID,
    request: Request,
    fast: bool = Query(False, description="Read only the fast local tier."),
    db: Session = Depends(get_db),
    store: LocalStore = Depends(get_store),
) -> PlanResponse:
    bind_user_id(str(user_id))
    migrated = _migrate_legacy_plan(db, store, user_id)
    cache = DualTierCache(db, store)
    # A just-migrated plan is only durable so far; load() mirrors it locally.
    fast = fast and not migrated
    entry = cache.peek(user_id) if fast else cache.load(user_id)
    if entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")
    return PlanResponse(
        user_id=user_id,
        document=entry.document,
        warnings=audit_plan_depth(entry.document).warnings,
        source="local" if fast else "cache",
        generated_at=entry.generated_at,
        request_id=getattr(request.state, "request_id", None),
    )


@router.delete("/users/{user_id}/plan", status_code=status.HTTP_204_NO_CONTENT, tags=["plan"])
def delete_plan(
    user_id: UUID,
    db: Session = Depends(get_db),
    store: LocalStore = Depends(get_store),
) -> Response:
    bind_user_id(str(user_id))
    try:
        DualTierCache(db, store).invalidate(user_id)
    except SQLAlchemyError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete plan") from exc
    logger.info("Invalidated plan for user %s", user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
