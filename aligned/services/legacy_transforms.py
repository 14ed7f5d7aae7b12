"""
Pure conversions from legacy single-tier blobs to durable-tier row dicts.

Legacy records carry client-generated ids; those become ``legacy_id`` so a
retried migration collides on the natural key instead of duplicating rows.
Records without an id get a deterministic substitute built from their content.
Records missing a required field (date, content, title) are skipped.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from aligned.services.plan_schema import has_required_fields

logger = logging.getLogger(__name__)

MOOD_VALUES = {"great", "okay", "low"}
ENERGY_VALUES = {"high", "medium", "low"}


def parse_legacy_date(value: Any) -> Optional[date]:
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def parse_legacy_datetime(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _int(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


def _list(blob: Any, field: str) -> List[Any]:
    if not isinstance(blob, dict):
        return []
    items = blob.get(field)
    return [item for item in items if isinstance(item, dict)] if isinstance(items, list) else []


def journal_rows(user_id: UUID, blob: Any) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """``{entries: [...], brainDumps: [...]}`` -> (journal_entries rows, brain_dumps rows)."""
    entries: List[Dict[str, Any]] = []
    for entry in _list(blob, "entries"):
        entry_date = parse_legacy_date(entry.get("date"))
        content = _text(entry.get("content"))
        if entry_date is None or content is None:
            logger.info("Skipping legacy journal entry without date or content")
            continue
        mood = entry.get("mood") if entry.get("mood") in MOOD_VALUES else None
        row = {
            "user_id": user_id,
            "legacy_id": _text(entry.get("id")) or f"{entry_date.isoformat()}:{_text(entry.get('prompt')) or ''}",
            "entry_date": entry_date,
            "prompt": _text(entry.get("prompt")),
            "content": content,
            "ai_summary": _text(entry.get("aiSummary")),
            "polished_content": _text(entry.get("polishedContent")),
            "mood": mood,
        }
        created_at = parse_legacy_datetime(entry.get("createdAt"))
        if created_at:
            row["created_at"] = created_at
        entries.append(row)

    dumps: List[Dict[str, Any]] = []
    for dump in _list(blob, "brainDumps"):
        content = _text(dump.get("content"))
        if content is None:
            continue
        tags = dump.get("tags")
        row = {
            "user_id": user_id,
            "legacy_id": _text(dump.get("id")) or _text(dump.get("timestamp")) or content[:64],
            "content": content,
            "organized_content": _text(dump.get("organizedContent")),
            "tags": [str(tag) for tag in tags] if isinstance(tags, list) and tags else None,
        }
        created_at = parse_legacy_datetime(dump.get("timestamp"))
        if created_at:
            row["created_at"] = created_at
        dumps.append(row)
    return entries, dumps


def goal_rows(
    user_id: UUID, blob: Any
) -> Tuple[List[Tuple[Dict[str, Any], List[date]]], List[Dict[str, Any]]]:
    """``{challenges: [...], badges: [...]}`` -> ([(challenge row, check-in dates)], badge rows)."""
    challenges: List[Tuple[Dict[str, Any], List[date]]] = []
    for challenge in _list(blob, "challenges"):
        title = _text(challenge.get("title"))
        if title is None:
            continue
        start_date = parse_legacy_date(challenge.get("startDate"))
        row = {
            "user_id": user_id,
            "legacy_id": _text(challenge.get("id")) or f"{title}:{start_date.isoformat() if start_date else ''}",
            "title": title,
            "description": _text(challenge.get("description")),
            "start_date": start_date,
            "end_date": parse_legacy_date(challenge.get("endDate")),
            "total_days": _int(challenge.get("totalDays")) or 30,
            "is_active": bool(challenge.get("isActive", True)),
            "completed_at": parse_legacy_datetime(challenge.get("completedAt")),
        }
        raw_check_ins = challenge.get("checkIns") if isinstance(challenge.get("checkIns"), list) else []
        check_ins = sorted({day for day in (parse_legacy_date(item) for item in raw_check_ins) if day})
        challenges.append((row, check_ins))

    badges: List[Dict[str, Any]] = []
    for badge in _list(blob, "badges"):
        badge_id = _text(badge.get("id"))
        earned_at = parse_legacy_datetime(badge.get("earnedAt"))
        if badge_id is None or earned_at is None:
            continue
        badges.append({"user_id": user_id, "badge_id": badge_id, "earned_at": earned_at})
    return challenges, badges


def daily_activity_rows(user_id: UUID, analytics: Any, mood_energy: Any) -> List[Dict[str, Any]]:
    """Merge ``dailyActivities`` with the per-day mood/energy check-ins into one row per date."""
    by_date: Dict[date, Dict[str, Any]] = {}
    activities = analytics.get("dailyActivities") if isinstance(analytics, dict) else None
    if isinstance(activities, dict):
        for key, activity in activities.items():
            activity_date = parse_legacy_date(key)
            if activity_date is None or not isinstance(activity, dict):
                continue
            by_date[activity_date] = {
                "user_id": user_id,
                "activity_date": activity_date,
                "focus_sessions": _int(activity.get("focusSessions")),
                "focus_minutes": _int(activity.get("focusMinutes")),
                "tasks_completed": _int(activity.get("tasksCompleted")),
                "tasks_total": _int(activity.get("tasksTotal")),
                "habits_completed": _int(activity.get("habitsCompleted")),
                "habits_total": _int(activity.get("habitsTotal")),
                "mood_checkin": activity.get("moodCheckin") if activity.get("moodCheckin") in MOOD_VALUES else None,
                "energy_checkin": (
                    activity.get("energyCheckin") if activity.get("energyCheckin") in ENERGY_VALUES else None
                ),
                "challenge_check_ins": _int(activity.get("challengeCheckIns")),
                "active_challenges": _int(activity.get("activeChallenges")),
            }

    if isinstance(mood_energy, dict):
        for key, checkin in mood_energy.items():
            activity_date = parse_legacy_date(key)
            if activity_date is None or not isinstance(checkin, dict):
                continue
            row = by_date.setdefault(activity_date, {"user_id": user_id, "activity_date": activity_date})
            if not row.get("mood_checkin") and checkin.get("mood") in MOOD_VALUES:
                row["mood_checkin"] = checkin["mood"]
            if not row.get("energy_checkin") and checkin.get("energy") in ENERGY_VALUES:
                row["energy_checkin"] = checkin["energy"]

    return [by_date[key] for key in sorted(by_date)]


def daily_habit_rows(user_id: UUID, habits: Any, health: Any) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for index, habit in enumerate(_list(habits, "nonNegotiables")):
        text = _text(habit.get("text"))
        if text is None:
            continue
        rows.append(
            {
                "user_id": user_id,
                "legacy_id": f"non_negotiable:{_text(habit.get('id')) or index}",
                "type": "non_negotiable",
                "text": text,
                "sort_order": index,
            }
        )
    for index, objective in enumerate(_list(health, "objectives")):
        text = _text(objective.get("text"))
        if text is None:
            continue
        rows.append(
            {
                "user_id": user_id,
                "legacy_id": f"health_objective:{_text(objective.get('id')) or index}",
                "type": "health_objective",
                "text": text,
                "icon": _text(objective.get("icon")),
                "target_value": _text(objective.get("targetValue")),
                "personalized_tip": _text(objective.get("personalizedTip")),
                "sort_order": index,
            }
        )
    return rows


def dashboard_rows(
    user_id: UUID, insights: Any, custom_weekly_plan: Any
) -> Tuple[Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
    """Legacy cached insights become the stored plan; the edited weekly template is kept as-is."""
    plan_row = None
    if has_required_fields(insights):
        plan_row = {
            "user_id": user_id,
            "document": insights,
            "generated_at": datetime.now(timezone.utc),
        }
    elif insights:
        logger.info("Legacy insights for user %s lack required plan fields; not migrating them", user_id)

    weekly_row = None
    if isinstance(custom_weekly_plan, list):
        items = [item for item in custom_weekly_plan if isinstance(item, dict) and item.get("day")]
        if items:
            weekly_row = {"user_id": user_id, "plan": items}
    return plan_row, weekly_row
