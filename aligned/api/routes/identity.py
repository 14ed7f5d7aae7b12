"""Onboarding identity API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aligned.api.schemas.identity import IdentityAnswers, IdentityResponse
from aligned.core.context import bind_user_id
from aligned.db.deps import get_db
from aligned.db.models.user import UserIdentity
from aligned.observability.tracing import trace
from aligned.services.user_profile import PROFILE_FIELDS
from aligned.services.user_service import save_identity

router = APIRouter()


def _to_response(identity: UserIdentity) -> IdentityResponse:
    return IdentityResponse(
        user_id=identity.user_id,
        updated_at=identity.updated_at,
        **{field: getattr(identity, field) for field in PROFILE_FIELDS},
    )


@router.put("/users/{user_id}/identity", response_model=IdentityResponse, tags=["identity"])
def put_identity(user_id: UUID, payload: IdentityAnswers, db: Session = Depends(get_db)) -> IdentityResponse:
    """Store sanitized onboarding answers, replacing any previous set."""
    bind_user_id(str(user_id))
    with trace("identity.save", metadata={"route": "/users/{user_id}/identity"}, user_id=str(user_id)):
        try:
            identity = save_identity(db, user_id, payload.to_profile())
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save identity") from exc
        db.refresh(identity)
    return _to_response(identity)


@router.get("/users/{user_id}/identity", response_model=IdentityResponse, tags=["identity"])
def get_identity(user_id: UUID, db: Session = Depends(get_db)) -> IdentityResponse:
    identity = db.get(UserIdentity, user_id)
    if identity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Identity not found")
    return _to_response(identity)
