"""One-time migration of legacy local-tier records into the durable tier."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from aligned.cache.local_store import LocalStore, user_storage_key
from aligned.core.config import settings
from aligned.core.context import get_request_id
from aligned.core.errors import MigrationError
from aligned.db.models import (
    BrainDump,
    Challenge,
    ChallengeCheckIn,
    CustomWeeklyPlan,
    DailyActivity,
    DailyHabit,
    GeneratedPlan,
    JournalEntry,
    UserBadge,
)
from aligned.db.upsert import insert_ignore_duplicates
from aligned.observability.metrics import log_metric
from aligned.observability.tracing import trace
from aligned.services import legacy_transforms
from aligned.services.user_service import get_or_create_user

logger = logging.getLogger(__name__)

MIGRATED_VALUE = "true"

Blobs = Dict[str, Any]


@dataclass(frozen=True)
class FeatureArea:
    name: str
    legacy_keys: Tuple[str, ...]
    flag_key: str
    apply: Callable[[Session, UUID, Blobs], int]

    @property
    def lock_key(self) -> str:
        return f"aligned_{self.name}_migration_lock"


def _apply_journal(db: Session, user_id: UUID, blobs: Blobs) -> int:
    entries, dumps = legacy_transforms.journal_rows(user_id, blobs.get("aligned_journal"))
    insert_ignore_duplicates(db, JournalEntry, entries, ["user_id", "legacy_id"])
    insert_ignore_duplicates(db, BrainDump, dumps, ["user_id", "legacy_id"])
    return len(entries) + len(dumps)


def _apply_goals(db: Session, user_id: UUID, blobs: Blobs) -> int:
    challenges, badges = legacy_transforms.goal_rows(user_id, blobs.get("aligned_goals"))
    insert_ignore_duplicates(db, Challenge, [row for row, _ in challenges], ["user_id", "legacy_id"])
    db.flush()

    legacy_ids = [row["legacy_id"] for row, _ in challenges]
    stored = {}
    if legacy_ids:
        stored = dict(
            db.query(Challenge.legacy_id, Challenge.id)
            .filter(Challenge.user_id == user_id, Challenge.legacy_id.in_(legacy_ids))
            .all()
        )
    check_ins = [
        {"challenge_id": stored[row["legacy_id"]], "user_id": user_id, "check_in_date": day}
        for row, days in challenges
        if row["legacy_id"] in stored
        for day in days
    ]
    insert_ignore_duplicates(db, ChallengeCheckIn, check_ins, ["challenge_id", "check_in_date"])
    insert_ignore_duplicates(db, UserBadge, badges, ["user_id", "badge_id"])
    return len(challenges) + len(check_ins) + len(badges)


def _apply_analytics(db: Session, user_id: UUID, blobs: Blobs) -> int:
    rows = legacy_transforms.daily_activity_rows(
        user_id, blobs.get("aligned_analytics"), blobs.get("aligned_mood_energy")
    )
    insert_ignore_duplicates(db, DailyActivity, rows, ["user_id", "activity_date"])
    return len(rows)


def _apply_habits(db: Session, user_id: UUID, blobs: Blobs) -> int:
    rows = legacy_transforms.daily_habit_rows(
        user_id, blobs.get("aligned_daily_habits"), blobs.get("aligned_health_objectives")
    )
    insert_ignore_duplicates(db, DailyHabit, rows, ["user_id", "legacy_id"])
    return len(rows)


def _apply_dashboard(db: Session, user_id: UUID, blobs: Blobs) -> int:
    plan_row, weekly_row = legacy_transforms.dashboard_rows(
        user_id, blobs.get("aligned_insights"), blobs.get("aligned_custom_weekly_plan")
    )
    count = 0
    if plan_row:
        # An existing durable plan is newer than anything the legacy client cached.
        insert_ignore_duplicates(db, GeneratedPlan, [plan_row], ["user_id"])
        count += 1
    if weekly_row:
        insert_ignore_duplicates(db, CustomWeeklyPlan, [weekly_row], ["user_id"])
        count += 1
    return count


FEATURE_AREAS: Dict[str, FeatureArea] = {
    area.name: area
    for area in (
        FeatureArea("journal", ("aligned_journal",), "aligned_journal_migrated_to_supabase", _apply_journal),
        FeatureArea("goals", ("aligned_goals",), "aligned_goals_migrated_to_supabase", _apply_goals),
        FeatureArea(
            "analytics",
            ("aligned_analytics", "aligned_mood_energy"),
            "aligned_analytics_migrated_to_supabase",
            _apply_analytics,
        ),
        FeatureArea(
            "habits",
            ("aligned_daily_habits", "aligned_health_objectives"),
            "aligned_habits_migrated_to_supabase",
            _apply_habits,
        ),
        FeatureArea(
            "dashboard",
            ("aligned_insights", "aligned_custom_weekly_plan"),
            "aligned_dashboard_migrated_to_supabase",
            _apply_dashboard,
        ),
    )
}


class MigrationManager:
    """
    Moves each legacy feature area for a user exactly once.

    The migrated flag is the first thing read and the last thing written. A
    short-lived lock taken with a single set-if-absent keeps two concurrent
    passes for the same user and area from both reaching the insert step; the
    duplicate-tolerant inserts cover a pass retried after a crash between
    commit and flag write.
    """

    def __init__(self, db: Session, store: LocalStore, *, lock_ttl_seconds: Optional[int] = None) -> None:
        self.db = db
        self.store = store
        self.lock_ttl_seconds = lock_ttl_seconds or settings.migration_lock_ttl_seconds

    def is_migrated(self, user_id: UUID, feature_area: str) -> bool:
        area = self._area(feature_area)
        return self.store.get(user_storage_key(area.flag_key, user_id)) == MIGRATED_VALUE

    @staticmethod
    def _area(feature_area: str) -> FeatureArea:
        try:
            return FEATURE_AREAS[feature_area]
        except KeyError:
            raise ValueError(f"Unknown feature area: {feature_area}") from None

    def _read_legacy(self, key: str, user_id: UUID) -> Any:
        raw = self.store.get(user_storage_key(key, user_id))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Legacy record %s for user %s is not valid JSON; treating it as absent", key, user_id)
            return None

    def _finish(self, area: FeatureArea, user_id: UUID) -> None:
        self.store.set(user_storage_key(area.flag_key, user_id), MIGRATED_VALUE)
        for key in area.legacy_keys:
            self.store.delete(user_storage_key(key, user_id))

    def migrate_if_needed(self, user_id: UUID, feature_area: str) -> bool:
        """Return ``True`` only when this call transferred records."""
        area = self._area(feature_area)
        if self.is_migrated(user_id, area.name):
            return False

        lock_key = user_storage_key(area.lock_key, user_id)
        if not self.store.set_if_absent(lock_key, get_request_id() or "migration", ttl=self.lock_ttl_seconds):
            logger.info("Migration of %s for user %s already in progress", area.name, user_id)
            return False

        try:
            with trace("migration.run", metadata={"area": area.name, "user_id": str(user_id)}):
                blobs = {key: self._read_legacy(key, user_id) for key in area.legacy_keys}
                if all(blob is None for blob in blobs.values()):
                    self._finish(area, user_id)
                    log_metric("migration.empty", 1, {"area": area.name})
                    return False

                get_or_create_user(self.db, user_id)
                transferred = area.apply(self.db, user_id, blobs)
                self.db.commit()

            self._finish(area, user_id)
            logger.info("Migrated %s legacy %s records for user %s", transferred, area.name, user_id)
            log_metric("migration.completed", 1, {"area": area.name, "records": transferred})
            return transferred > 0
        except Exception as exc:  # any failure leaves the flag unset for a later pass
            self.db.rollback()
            error = MigrationError(area.name, str(exc) or type(exc).__name__)
            logger.error("Legacy migration failed: %s", error, exc_info=True)
            log_metric("migration.failed", 1, {"area": area.name, "error": type(exc).__name__})
            return False
        finally:
            self.store.delete(lock_key)

    def migrate_all(self, user_id: UUID) -> Dict[str, bool]:
        return {name: self.migrate_if_needed(user_id, name) for name in FEATURE_AREAS}
