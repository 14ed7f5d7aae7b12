"""Prompt construction for yearly plan generation."""
from __future__ import annotations

from typing import Tuple

from aligned.services.plan_schema import DAY_NAMES, QUARTER_IDS, WEEKS_PER_QUARTER
from aligned.services.user_profile import UserProfile

PROFILE_LABELS: Tuple[Tuple[str, str], ...] = (
    ("identity_statement", "Identity Statement"),
    ("purpose_why", "Purpose/Why"),
    ("yearly_goal", "Yearly Goal"),
    ("daily_time_capacity", "Daily Time Capacity"),
    ("sleep_definition", "Sleep Definition"),
    ("body_care", "Body Care"),
    ("self_care_practice", "Self Care Practice"),
    ("habits_focus", "Habits Focus"),
    ("health_focus", "Health Focus"),
    ("friction_triggers", "Friction Triggers"),
)

QUARTER_PHASES = {
    "Q1": "foundation phase",
    "Q2": "building phase",
    "Q3": "advancing phase",
    "Q4": "completion phase",
}

# SYSTEM: the mentor persona
ROLE_SECTION = (
    "You are the planning mentor behind Aligned, an all-in-one personal operating system. "
    "You think like an experienced coach working in the user's own field.\n\n"
    "Mission: turn the onboarding answers below into a realistic, career-aware yearly plan "
    "with quarterly milestones, weekly themes, and one concrete task for every day."
)

PLANNING_RULES_SECTION = (
    "### STRICT PLANNING RULES\n"
    "1. Classify the goal first: career, skill, academic, health, or personal development.\n"
    "2. Every quarter has a DIFFERENT focus that builds toward the yearly goal.\n"
    "3. Every week inside a quarter has a DIFFERENT focus theme.\n"
    "4. Every day (Mon-Sun) has a UNIQUE, SPECIFIC task.\n"
    "5. Never use vague placeholder tasks such as 'research', 'watch tutorials' or 'practice basics'.\n"
    "6. Every task names WHAT to do, WHERE (platform, book, resource) and WHY it matters."
)

TASK_EXAMPLES_SECTION = (
    "### TASK EXAMPLES\n"
    "BAD: \"Research materials\" / \"Watch tutorials\" / \"Practice skills\"\n"
    "GOOD: \"Read chapters 1-3 of 'Clean Code' and note three naming rules to apply this week\"\n"
    "GOOD: \"Complete Module 1 of the chosen course on its platform and summarise the key idea in 5 bullets\"\n"
    "GOOD: \"Build a small calculator app in React that supports add, subtract, multiply and divide\""
)

QUALITY_CHECKLIST_SECTION = (
    "### FINAL QUALITY CHECKLIST\n"
    f"- All {len(QUARTER_IDS)} quarters carry a full weeklyPlan: {WEEKS_PER_QUARTER} weeks each, "
    f"{len(DAY_NAMES)} days per week.\n"
    "- Q2, Q3 and Q4 have the same level of detail as Q1. Full depth, no shortcuts.\n"
    "- No placeholders, no '...', no repeated task titles.\n"
    "- focus_duration_minutes is a number (default 45).\n"
    "- Return JSON only: no markdown fences, no commentary before or after the object."
)


def quarter_week_range(quarter: str) -> Tuple[int, int]:
    """Inclusive absolute week numbers for ``quarter`` (Q2 -> 14..26)."""
    index = QUARTER_IDS.index(quarter)
    start = index * WEEKS_PER_QUARTER + 1
    return start, start + WEEKS_PER_QUARTER - 1


def _profile_section(profile: UserProfile) -> str:
    lines = ["### USER ONBOARDING ANSWERS"]
    for field, label in PROFILE_LABELS:
        lines.append(f'- {label}: "{getattr(profile, field)}"')
    return "\n".join(lines)


def _day_lines(indent: str) -> str:
    return ",\n".join(
        f'{indent}{{"day": "{day}", "task": "Specific task", "description": "What, where and why"}}'
        for day in DAY_NAMES
    )


def _quarter_template(quarter: str) -> str:
    first, last = quarter_week_range(quarter)
    return (
        "    {\n"
        f'      "quarter": "{quarter}",\n'
        f'      "goal": "{quarter} milestone ({QUARTER_PHASES[quarter]}), specific and measurable",\n'
        '      "weeklyPlan": [\n'
        "        {\n"
        f'          "week": "Week {first}",\n'
        '          "focus": "Unique theme for this week",\n'
        '          "days": [\n'
        f"{_day_lines(' ' * 12)}\n"
        "          ]\n"
        "        }\n"
        f"        // weeks {first}-{last}: all {WEEKS_PER_QUARTER} weeks, every day filled in\n"
        "      ]\n"
        "    }"
    )


def _output_shape_section() -> str:
    quarters = ",\n".join(_quarter_template(quarter) for quarter in QUARTER_IDS)
    ranges = "\n".join(
        "- {q}: Week {a} through Week {b} ({phase})".format(
            q=quarter, a=quarter_week_range(quarter)[0], b=quarter_week_range(quarter)[1], phase=QUARTER_PHASES[quarter]
        )
        for quarter in QUARTER_IDS
    )
    return (
        "### OUTPUT FORMAT\n"
        "Generate COMPLETE weeklyPlan arrays for ALL 4 quarters. Do not abbreviate Q2, Q3 or Q4.\n"
        f"{ranges}\n\n"
        "{\n"
        '  "identities": [{"name": "Identity derived from the identity statement", "icon": "target", "selected": true}],\n'
        '  "identity_summary": "One sentence on who they are becoming",\n'
        '  "my_why": "Their purpose in at most 8 words",\n'
        '  "yearly_goal_title": "The yearly goal rewritten as a measurable title",\n'
        '  "quarterly_goals": [\n'
        f"{quarters}\n"
        "  ],\n"
        '  "your_why_detail": "1-2 sentences expanding their purpose",\n'
        '  "daily_non_negotiables": [{"name": "Sleep goal from their answers", "icon": "moon"}],\n'
        '  "weekly_plan": [{"day": "Mon", "activity": "Deep work on the primary goal"}],\n'
        '  "habits": [{"name": "Primary habit", "current": 0, "target": 4, "unit": "days"}],\n'
        '  "focus_duration_minutes": 45,\n'
        '  "identity_reflection": "1-2 sentences",\n'
        '  "quarter_goal": "Current quarter goal in one sentence",\n'
        '  "focus_block_duration": "30-45 min",\n'
        '  "focus_block_suggestion": "Why this duration fits their capacity",\n'
        '  "friction_insight": "Compassionate note about their friction triggers",\n'
        '  "identity_reinforcement": "One empowering sentence",\n'
        '  "frictions_detector_message": "You are a [identity]. Stay on your path!",\n'
        '  "micro_steps": [{"text": "Action toward the yearly goal", "type": "goal"}]\n'
        "}"
    )


def build_plan_prompt(profile: UserProfile) -> str:
    """Render the full generation prompt. Pure: the same profile always yields the same text."""
    sections = [
        ROLE_SECTION,
        _profile_section(profile),
        PLANNING_RULES_SECTION,
        TASK_EXAMPLES_SECTION,
        _output_shape_section(),
        QUALITY_CHECKLIST_SECTION,
    ]
    return "\n\n".join(sections)
