"""
Two-tier plan cache.

The relational row in ``generated_plans`` is the source of truth; the local
tier holds a copy for fast reads. Reads consult the local tier first and then
reconcile with the durable tier. Writes go durable-first so the local tier never
holds a document the database does not.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from aligned.cache.local_store import LocalStore, user_storage_key
from aligned.db.models.generated_plan import GeneratedPlan
from aligned.db.upsert import upsert_row
from aligned.observability.metrics import log_metric
from aligned.observability.tracing import trace
from aligned.services.plan_schema import has_required_fields
from aligned.services.user_service import get_or_create_user

logger = logging.getLogger(__name__)

PLAN_CACHE_KEY = "aligned_plan_cache"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class CacheEntry:
    user_id: str
    document: Dict[str, Any]
    generated_at: datetime

    def to_json(self) -> str:
        return json.dumps(
            {
                "user_id": self.user_id,
                "document": self.document,
                "generated_at": _as_utc(self.generated_at).isoformat(),
            }
        )

    @classmethod
    def from_json(cls, raw: str) -> Optional["CacheEntry"]:
        """Parse a local-tier value; anything malformed or incomplete yields ``None``."""
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError):
            return None
        if not isinstance(payload, dict) or not has_required_fields(payload.get("document")):
            return None
        try:
            generated_at = datetime.fromisoformat(payload["generated_at"])
        except (KeyError, TypeError, ValueError):
            return None
        return cls(user_id=str(payload.get("user_id", "")), document=payload["document"], generated_at=_as_utc(generated_at))

    def same_as(self, other: "CacheEntry") -> bool:
        return self.document == other.document and _as_utc(self.generated_at) == _as_utc(other.generated_at)


class DualTierCache:
    def __init__(self, db: Session, store: LocalStore, *, local_ttl_seconds: Optional[int] = None) -> None:
        self.db = db
        self.store = store
        self.local_ttl_seconds = local_ttl_seconds

    @staticmethod
    def key_for(user_id: UUID | str) -> str:
        return user_storage_key(PLAN_CACHE_KEY, user_id)

    def peek(self, user_id: UUID) -> Optional[CacheEntry]:
        """Local tier only. Invalid entries are evicted."""
        key = self.key_for(user_id)
        raw = self.store.get(key)
        if raw is None:
            return None
        entry = CacheEntry.from_json(raw)
        if entry is None:
            logger.warning("Evicting malformed local plan cache entry for user %s", user_id)
            self.store.delete(key)
        return entry

    def _read_durable(self, user_id: UUID) -> Optional[CacheEntry]:
        row = self.db.query(GeneratedPlan).filter(GeneratedPlan.user_id == user_id).one_or_none()
        if row is None:
            return None
        if not has_required_fields(row.document):
            logger.warning("Stored plan for user %s is missing required fields; ignoring it", user_id)
            return None
        return CacheEntry(user_id=str(user_id), document=row.document, generated_at=_as_utc(row.generated_at))

    def load(self, user_id: UUID) -> Optional[CacheEntry]:
        """Local tier first, then the durable tier, which wins on any disagreement."""
        with trace("plan.cache.load", metadata={"user_id": str(user_id)}):
            local = self.peek(user_id)
            try:
                durable = self._read_durable(user_id)
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.warning("Durable plan read failed for user %s; serving local copy: %s", user_id, exc)
                log_metric("plan.cache.durable_error", 1)
                return local

            if durable is None:
                if local is not None:
                    logger.info("Evicting local plan for user %s: no durable row", user_id)
                    self.store.delete(self.key_for(user_id))
                log_metric("plan.cache.miss", 1)
                return None

            if local is None or not local.same_as(durable):
                self._write_local(durable)
            log_metric("plan.cache.hit", 1, {"local_agreed": bool(local and local.same_as(durable))})
            return durable

    def _write_local(self, entry: CacheEntry) -> None:
        key = self.key_for(entry.user_id)
        try:
            stored = self.store.set(key, entry.to_json(), ttl=self.local_ttl_seconds)
        except Exception:  # local tier is best-effort
            logger.warning("Local plan write raised for user %s", entry.user_id, exc_info=True)
            return
        if not stored:
            logger.warning("Local plan write failed for user %s; durable copy is authoritative", entry.user_id)

    def save(self, user_id: UUID, document: Dict[str, Any], generated_at: Optional[datetime] = None) -> CacheEntry:
        """Upsert and commit the durable row, then mirror it locally."""
        generated_at = _as_utc(generated_at or datetime.now(timezone.utc))
        try:
            get_or_create_user(self.db, user_id)
            upsert_row(
                self.db,
                GeneratedPlan,
                {
                    "user_id": user_id,
                    "document": document,
                    "generated_at": generated_at,
                    "updated_at": datetime.now(timezone.utc),
                },
                conflict_columns=["user_id"],
                update_columns=["document", "generated_at", "updated_at"],
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Durable plan write failed for user %s", user_id)
            raise

        entry = CacheEntry(user_id=str(user_id), document=document, generated_at=generated_at)
        self._write_local(entry)
        log_metric("plan.cache.saved", 1)
        return entry

    def invalidate(self, user_id: UUID) -> None:
        try:
            self.db.query(GeneratedPlan).filter(GeneratedPlan.user_id == user_id).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.store.delete(self.key_for(user_id))
