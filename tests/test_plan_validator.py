from __future__ import annotations

import copy
import json

import pytest

from aligned.services.plan_synthesizer import synthesize_plan
from aligned.services.plan_validator import audit_plan_depth, validate_plan_text
from aligned.services.user_profile import UserProfile


@pytest.fixture()
def plan_dict():
    return synthesize_plan(UserProfile(yearly_goal="Learn conversational Spanish")).to_storage()


def test_valid_plan_passes(plan_dict) -> None:
    for step in plan_dict["micro_steps"]:
        step.pop("id", None)
        step.pop("completed", None)

    result = validate_plan_text(json.dumps(plan_dict))

    assert result.ok is True
    assert result.errors == []
    assert [step.id for step in result.data.micro_steps] == ["1", "2", "3"]
    assert all(step.completed is False for step in result.data.micro_steps)


def test_invalid_json_is_a_parse_failure() -> None:
    result = validate_plan_text('{"identities": [}')

    assert result.ok is False
    assert result.kind == "parse"
    assert "line 1" in result.errors[0]


def test_top_level_must_be_an_object() -> None:
    result = validate_plan_text("[]")

    assert result.kind == "schema"
    assert result.errors[0].startswith("document:")


def test_missing_required_field_is_reported_with_its_path(plan_dict) -> None:
    del plan_dict["yearly_goal_title"]

    result = validate_plan_text(json.dumps(plan_dict))

    assert result.ok is False
    assert result.kind == "schema"
    assert any(error.startswith("yearly_goal_title:") for error in result.errors)


def test_exactly_four_quarters_are_required(plan_dict) -> None:
    plan_dict["quarterly_goals"] = plan_dict["quarterly_goals"][:3]

    result = validate_plan_text(json.dumps(plan_dict))

    assert result.ok is False
    assert any("missing Q4" in error for error in result.errors)


def test_duplicate_quarters_are_rejected(plan_dict) -> None:
    plan_dict["quarterly_goals"][3]["quarter"] = "Q1"

    result = validate_plan_text(json.dumps(plan_dict))

    assert result.ok is False
    assert any("duplicate quarters: Q1" in error for error in result.errors)


def test_empty_day_task_is_a_schema_error(plan_dict) -> None:
    plan_dict["quarterly_goals"][0]["weeklyPlan"][0]["days"][0]["task"] = ""

    result = validate_plan_text(json.dumps(plan_dict))

    assert result.ok is False
    assert any(error.startswith("quarterly_goals.0.weeklyPlan.0.days.0.task:") for error in result.errors)


def test_coercions(plan_dict) -> None:
    plan_dict["focus_duration_minutes"] = "60 minutes"
    plan_dict["quarterly_goals"][0]["weeklyPlan"][0]["week"] = 1

    result = validate_plan_text(json.dumps(plan_dict))

    assert result.ok is True
    assert result.data.focus_duration_minutes == 60
    assert result.data.quarterly_goals[0].weekly_plan[0].week == "Week 1"


def test_focus_duration_out_of_range(plan_dict) -> None:
    plan_dict["focus_duration_minutes"] = 500

    result = validate_plan_text(json.dumps(plan_dict))

    assert result.ok is False
    assert any(error.startswith("focus_duration_minutes:") for error in result.errors)


def test_complete_plan_has_no_depth_warnings(plan_dict) -> None:
    audit = audit_plan_depth(plan_dict)

    assert audit.warnings == []
    assert audit.quarters["Q2"].week_count == 13
    assert audit.quarters["Q2"].avg_days_per_week == 7.0


def test_shallow_quarter_produces_warning_but_still_validates(plan_dict) -> None:
    q3 = plan_dict["quarterly_goals"][2]
    q3["weeklyPlan"] = [dict(week, days=week["days"][:2]) for week in q3["weeklyPlan"][:6]]

    result = validate_plan_text(json.dumps(plan_dict))
    audit = audit_plan_depth(result.data)

    assert result.ok is True
    assert audit.warnings == ["Q3: incomplete weekly plan (6 weeks, avg 2.0 days/week)"]
    assert audit.quarters["Q3"].has_weekly_plan is True


def test_mostly_empty_weeks_count_as_incomplete(plan_dict) -> None:
    q1 = plan_dict["quarterly_goals"][0]
    for week in q1["weeklyPlan"][5:]:
        week["days"] = []

    audit = audit_plan_depth(plan_dict)

    assert audit.quarters["Q1"].populated_weeks == 5
    assert audit.warnings[0].startswith("Q1: incomplete weekly plan (13 weeks")


def test_missing_quarter_in_stored_document_is_reported(plan_dict) -> None:
    stored = copy.deepcopy(plan_dict)
    stored["quarterly_goals"] = stored["quarterly_goals"][:3]

    audit = audit_plan_depth(stored)

    assert audit.warnings == ["Q4: incomplete weekly plan (0 weeks, avg 0.0 days/week)"]
    assert audit.quarters["Q4"].has_weekly_plan is False


def test_only_first_quarter_populated_still_validates_with_three_warnings(plan_dict) -> None:
    for goal in plan_dict["quarterly_goals"][1:]:
        goal["weeklyPlan"] = []

    result = validate_plan_text(json.dumps(plan_dict))
    audit = audit_plan_depth(result.data)

    assert result.ok is True
    assert audit.warnings == [
        "Q2: incomplete weekly plan (0 weeks, avg 0.0 days/week)",
        "Q3: incomplete weekly plan (0 weeks, avg 0.0 days/week)",
        "Q4: incomplete weekly plan (0 weeks, avg 0.0 days/week)",
    ]
    assert audit.quarters["Q1"].has_weekly_plan is True
