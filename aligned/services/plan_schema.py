"""Typed shape of the generated yearly plan document."""
from __future__ import annotations

import re
from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

QUARTER_IDS = ("Q1", "Q2", "Q3", "Q4")
WEEKS_PER_QUARTER = 13
DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

NonEmptyStr = Annotated[str, Field(min_length=1)]


class _PlanModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, str_strip_whitespace=True)


class DayTask(_PlanModel):
    day: NonEmptyStr
    task: NonEmptyStr
    description: Optional[str] = None


class WeeklyPlanItem(_PlanModel):
    week: NonEmptyStr
    focus: NonEmptyStr
    # Partially populated weeks are allowed; the depth audit reports them.
    days: List[DayTask] = Field(default_factory=list)

    @field_validator("week", mode="before")
    @classmethod
    def _week_label(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return f"Week {value}"
        return value


class QuarterlyGoal(_PlanModel):
    quarter: Literal["Q1", "Q2", "Q3", "Q4"]
    goal: NonEmptyStr
    weekly_plan: List[WeeklyPlanItem] = Field(default_factory=list, alias="weeklyPlan")


class Identity(_PlanModel):
    name: NonEmptyStr
    icon: Optional[str] = None
    selected: Optional[bool] = None


class NonNegotiable(_PlanModel):
    name: NonEmptyStr
    icon: Optional[str] = None


class WeeklyPlanDay(_PlanModel):
    day: NonEmptyStr
    activity: NonEmptyStr


class Habit(_PlanModel):
    name: NonEmptyStr
    current: Optional[float] = None
    target: Optional[float] = None
    value: Optional[str] = None
    unit: Optional[str] = None
    icon: Optional[str] = None

    @field_validator("value", mode="before")
    @classmethod
    def _value_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class MicroStep(_PlanModel):
    id: Optional[str] = None
    text: NonEmptyStr
    type: Optional[Literal["goal", "habit", "health", "rest"]] = None
    completed: bool = False


class GeneratedPlanDocument(_PlanModel):
    """The validated plan. ``quarterly_goals`` must hold Q1..Q4 exactly once each."""

    identities: List[Identity] = Field(..., min_length=1)
    yearly_goal_title: NonEmptyStr
    quarterly_goals: List[QuarterlyGoal] = Field(..., min_length=1)

    identity_summary: str = ""
    my_why: str = ""
    your_why_detail: str = ""
    daily_non_negotiables: List[NonNegotiable] = Field(default_factory=list)
    weekly_plan: List[WeeklyPlanDay] = Field(default_factory=list)
    habits: List[Habit] = Field(default_factory=list)
    micro_steps: List[MicroStep] = Field(default_factory=list)

    identity_reflection: str = ""
    quarter_goal: str = ""
    focus_block_duration: str = "30-45 min"
    focus_block_suggestion: str = ""
    friction_insight: str = ""
    identity_reinforcement: str = ""
    frictions_detector_message: str = ""
    focus_duration_minutes: int = Field(default=45, ge=5, le=180)
    is_ai_generated: bool = False

    @field_validator("focus_duration_minutes", mode="before")
    @classmethod
    def _minutes_from_text(cls, value: Any) -> Any:
        if value is None:
            return 45
        if isinstance(value, str):
            match = re.match(r"\s*(\d+)", value)
            return int(match.group(1)) if match else 45
        if isinstance(value, float):
            return int(value)
        return value

    @model_validator(mode="after")
    def _four_distinct_quarters(self) -> "GeneratedPlanDocument":
        seen = [goal.quarter for goal in self.quarterly_goals]
        duplicates = sorted({quarter for quarter in seen if seen.count(quarter) > 1})
        if duplicates:
            raise ValueError(f"duplicate quarters: {', '.join(duplicates)}")
        missing = [quarter for quarter in QUARTER_IDS if quarter not in seen]
        if missing:
            raise ValueError(f"expected 4 quarters, missing {', '.join(missing)}")
        self.quarterly_goals.sort(key=lambda goal: QUARTER_IDS.index(goal.quarter))
        for index, step in enumerate(self.micro_steps, start=1):
            if not step.id:
                step.id = str(index)
        return self

    def to_storage(self) -> dict:
        """JSON-ready dict in the wire shape (``weeklyPlan`` alias kept)."""
        return self.model_dump(mode="json", by_alias=True)


def has_required_fields(document: Any) -> bool:
    """Cheap structural check used on cache reads before trusting a stored document."""
    if not isinstance(document, dict):
        return False
    identities = document.get("identities")
    title = document.get("yearly_goal_title")
    quarters = document.get("quarterly_goals")
    return (
        isinstance(identities, list)
        and bool(identities)
        and isinstance(title, str)
        and bool(title.strip())
        and isinstance(quarters, list)
        and bool(quarters)
    )
