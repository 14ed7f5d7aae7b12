"""Legacy data migration API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from aligned.api.deps import get_store
from aligned.api.schemas.migration import MigrationRequest, MigrationResponse
from aligned.cache.local_store import LocalStore
from aligned.core.context import bind_user_id
from aligned.db.deps import get_db
from aligned.services.migration_manager import MigrationManager

router = APIRouter()


@router.post("/users/{user_id}/migrations", response_model=MigrationResponse, tags=["migrations"])
def run_migrations(
    user_id: UUID,
    payload: MigrationRequest | None = None,
    db: Session = Depends(get_db),
    store: LocalStore = Depends(get_store),
) -> MigrationResponse:
    """Move any legacy local records for the user into the durable tier; ``True`` means records moved."""
    bind_user_id(str(user_id))
    manager = MigrationManager(db, store)
    areas = payload.areas if payload and payload.areas else None
    if areas is None:
        return MigrationResponse(results=manager.migrate_all(user_id))
    return MigrationResponse(results={area: manager.migrate_if_needed(user_id, area) for area in areas})
