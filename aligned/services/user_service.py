"""Helpers for working with users and their onboarding answers."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from aligned.db.models.user import User, UserIdentity
from aligned.db.upsert import upsert_row
from aligned.services.user_profile import PROFILE_FIELDS, UserProfile


def get_or_create_user(db: Session, user_id: UUID) -> User:
    """Fetch an existing user or create a new row safely."""
    user = db.get(User, user_id)
    if user:
        return user

    user = User(id=user_id)
    db.add(user)
    try:
        db.flush()
        return user
    except IntegrityError:
        db.rollback()
        existing = db.get(User, user_id)
        if existing:
            return existing
        raise


def save_identity(db: Session, user_id: UUID, profile: UserProfile) -> UserIdentity:
    """Upsert the onboarding answers for ``user_id``. The caller commits."""
    get_or_create_user(db, user_id)
    answers = profile.to_answers()
    row = {"user_id": user_id, "updated_at": datetime.now(timezone.utc), **answers}
    upsert_row(
        db,
        UserIdentity,
        row,
        conflict_columns=["user_id"],
        update_columns=[*PROFILE_FIELDS, "updated_at"],
    )
    db.flush()
    identity = db.get(UserIdentity, user_id, populate_existing=True)
    return identity


def load_profile(db: Session, user_id: UUID) -> Optional[UserProfile]:
    identity = db.get(UserIdentity, user_id)
    if identity is None:
        return None
    return UserProfile.from_identity_row(identity)
