"""Parse, validate and depth-audit generated plan documents."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from pydantic import ValidationError

from aligned.services.plan_schema import QUARTER_IDS, GeneratedPlanDocument

MIN_AVG_DAYS_PER_WEEK = 3.0


@dataclass
class ValidationResult:
    ok: bool
    data: Optional[GeneratedPlanDocument] = None
    errors: List[str] = field(default_factory=list)
    kind: Optional[Literal["parse", "schema"]] = None


@dataclass(frozen=True)
class QuarterDepth:
    has_weekly_plan: bool
    week_count: int
    avg_days_per_week: float
    populated_weeks: int = 0

    @property
    def incomplete(self) -> bool:
        if not self.has_weekly_plan or self.week_count == 0:
            return True
        if self.populated_weeks * 2 < self.week_count:
            return True
        return self.avg_days_per_week < MIN_AVG_DAYS_PER_WEEK


@dataclass
class DepthAudit:
    quarters: Dict[str, QuarterDepth] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.warnings


def _format_location(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "document"


def validate_plan_text(text: str) -> ValidationResult:
    """Parse ``text`` as JSON and validate it against the plan schema. Never raises."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        return ValidationResult(
            ok=False,
            kind="parse",
            errors=[f"invalid JSON at line {exc.lineno} column {exc.colno}: {exc.msg}"],
        )

    if not isinstance(payload, dict):
        return ValidationResult(
            ok=False,
            kind="schema",
            errors=[f"document: expected an object, got {type(payload).__name__}"],
        )

    try:
        document = GeneratedPlanDocument.model_validate(payload)
    except ValidationError as exc:
        errors = [f"{_format_location(err['loc'])}: {err['msg']}" for err in exc.errors()]
        return ValidationResult(ok=False, kind="schema", errors=errors)

    return ValidationResult(ok=True, data=document)


def _days_of(week: Any) -> List[Any]:
    days = week.get("days") if isinstance(week, dict) else getattr(week, "days", None)
    return days if isinstance(days, list) else []


def _day_name(day: Any) -> Any:
    return day.get("day") if isinstance(day, dict) else getattr(day, "day", None)


def _weeks_of(goal: Any) -> Optional[List[Any]]:
    if isinstance(goal, dict):
        weeks = goal.get("weeklyPlan", goal.get("weekly_plan"))
    else:
        weeks = getattr(goal, "weekly_plan", None)
    return weeks if isinstance(weeks, list) else None


def _quarter_of(goal: Any) -> Any:
    return goal.get("quarter") if isinstance(goal, dict) else getattr(goal, "quarter", None)


def audit_plan_depth(document: Any) -> DepthAudit:
    """
    Report how completely each quarter's weekly plan is filled in.

    Accepts a validated ``GeneratedPlanDocument`` or the stored dict form. A week
    counts as populated when it has at least one day with a non-empty ``day``.
    Missing quarters are reported too. The audit only warns; it never rejects.
    """
    if isinstance(document, GeneratedPlanDocument):
        goals = document.quarterly_goals
    elif isinstance(document, dict):
        goals = document.get("quarterly_goals") or []
    else:
        goals = []

    by_quarter = {_quarter_of(goal): goal for goal in goals if _quarter_of(goal) in QUARTER_IDS}
    audit = DepthAudit()

    for quarter in QUARTER_IDS:
        weeks = _weeks_of(by_quarter[quarter]) if quarter in by_quarter else None
        week_list = weeks or []
        populated = 0
        day_total = 0
        for week in week_list:
            named_days = [day for day in _days_of(week) if isinstance(_day_name(day), str) and _day_name(day).strip()]
            day_total += len(named_days)
            if named_days:
                populated += 1
        week_count = len(week_list)
        avg_days = round(day_total / week_count, 1) if week_count else 0.0
        depth = QuarterDepth(
            has_weekly_plan=bool(week_list),
            week_count=week_count,
            avg_days_per_week=avg_days,
            populated_weeks=populated,
        )
        audit.quarters[quarter] = depth
        if depth.incomplete:
            audit.warnings.append(
                f"{quarter}: incomplete weekly plan ({week_count} weeks, avg {avg_days:.1f} days/week)"
            )

    return audit
