"""Deterministic local plan used when no generation credential is configured."""
from __future__ import annotations

from typing import Any, Dict, List

from aligned.services.plan_schema import DAY_NAMES, QUARTER_IDS, WEEKS_PER_QUARTER, GeneratedPlanDocument
from aligned.services.prompt_builder import QUARTER_PHASES, quarter_week_range
from aligned.services.user_profile import UserProfile

TRACK_CONFIG: Dict[str, Dict[str, Any]] = {
    "fitness": {
        "keywords": {"run", "running", "marathon", "gym", "workout", "strength", "yoga", "fitness", "cardio", "weight"},
        "identity": ("Athlete in training", "activity"),
        "days": [
            ("Interval session", "Run 3x(4 min steady / 2 min walk) and log effort 1-10 afterwards."),
            ("Strength circuit", "3 rounds of 12 squats, 10 pushups and 12 rows with 60 sec rest."),
            ("Mobility + core", "10 min hip and shoulder mobility, then 5 min plank and dead bug variations."),
            ("Tempo effort", "Hold a comfortably hard pace for 15 minutes between an easy warm-up and cool-down."),
            ("Technique drill", "Film one set of your main lift or stride and note one form cue to fix."),
            ("Long easy session", "Go longer than any other day this week at conversational effort."),
            ("Recovery review", "Stretch for 15 minutes and plan next week's three key sessions."),
        ],
    },
    "learning": {
        "keywords": {"learn", "study", "exam", "course", "certification", "degree", "read", "language", "skill"},
        "identity": ("Lifelong learner", "book-open"),
        "days": [
            ("Core lesson", "Work through the next lesson of your main resource and write 5 summary bullets."),
            ("Practice set", "Solve a problem set on this week's topic and mark every miss for review."),
            ("Teach it back", "Explain the week's concept out loud in 3 minutes, recording yourself."),
            ("Applied exercise", "Use the concept in a small real task and note what was harder than expected."),
            ("Spaced review", "Review flashcards from the last three weeks; retire the ones you know cold."),
            ("Project block", "Spend a focused block on your capstone project, shipping one visible piece."),
            ("Weekly reflection", "Write what worked, what was confusing, and the topic for next week."),
        ],
    },
    "career": {
        "keywords": {"career", "job", "promotion", "business", "launch", "startup", "client", "project", "build", "code"},
        "identity": ("Builder who ships", "briefcase"),
        "days": [
            ("Deep work block", "Protect 90 minutes for the highest-leverage deliverable of the week."),
            ("Skill sharpening", "Study one technique your target role needs and apply it to a work sample."),
            ("Outreach", "Send two thoughtful messages to people ahead of you in the field."),
            ("Ship a slice", "Finish one small, demonstrable piece and share it with a reviewer."),
            ("Feedback loop", "Review feedback received and turn it into two concrete changes."),
            ("Portfolio update", "Document this week's result with context, numbers and lessons."),
            ("Weekly planning", "Score the week against the quarter milestone and pick next week's focus."),
        ],
    },
    "wellbeing": {
        "keywords": {"sleep", "meditate", "meditation", "mindful", "journal", "stress", "calm", "health", "habit"},
        "identity": ("Calm, grounded self", "heart"),
        "days": [
            ("Morning anchor", "Complete a 10-minute morning routine right after waking, before the phone."),
            ("Movement break", "Take a 20-minute walk outside without headphones."),
            ("Mindfulness session", "Do a 10-minute guided breathing or meditation session."),
            ("Digital sunset", "Put screens away one hour before bed and read instead."),
            ("Connection", "Call or meet someone who energises you."),
            ("Restorative activity", "Spend an hour on a hobby that fully absorbs you."),
            ("Reflection journal", "Write one page on what drained and what restored you this week."),
        ],
    },
}

DEFAULT_TRACK = "career"

WEEK_THEMES = (
    "Set up the environment and remove friction",
    "Establish the baseline",
    "Build consistency",
    "Add deliberate difficulty",
    "Review and adjust",
    "Deepen the core skill",
    "Stretch week",
    "Consolidate gains",
    "Apply in the real world",
    "Seek outside feedback",
    "Raise the bar",
    "Checkpoint milestone",
    "Recover and reflect",
)


def detect_track(profile: UserProfile) -> str:
    """Pick the template track whose keywords appear in the goal-related answers."""
    text = " ".join(
        value.lower()
        for value in (profile.provided("yearly_goal"), profile.provided("habits_focus"), profile.provided("health_focus"))
        if value
    )
    for key, config in TRACK_CONFIG.items():
        if any(keyword in text for keyword in config["keywords"]):
            return key
    return DEFAULT_TRACK


def _goal_focus_phrase(profile: UserProfile) -> str:
    goal = profile.provided("yearly_goal")
    if not goal:
        return "your yearly goal"
    tokens = goal.replace("\n", " ").split()
    return " ".join(tokens[:8]) or "your yearly goal"


def _weekly_plan(track: Dict[str, Any], quarter: str) -> List[Dict[str, Any]]:
    first_week, _ = quarter_week_range(quarter)
    weeks = []
    for offset in range(WEEKS_PER_QUARTER):
        week_number = first_week + offset
        theme = WEEK_THEMES[offset % len(WEEK_THEMES)]
        days = []
        for day_index, day in enumerate(DAY_NAMES):
            task, description = track["days"][day_index]
            days.append(
                {
                    "day": day,
                    "task": f"{task} (week {week_number})",
                    "description": description,
                }
            )
        weeks.append({"week": f"Week {week_number}", "focus": theme, "days": days})
    return weeks


def synthesize_plan(profile: UserProfile) -> GeneratedPlanDocument:
    """Build a complete 4x13x7 plan from ``profile`` without calling the generation service."""
    track_key = detect_track(profile)
    track = TRACK_CONFIG[track_key]
    focus = _goal_focus_phrase(profile)
    identity_name, identity_icon = track["identity"]
    why = profile.provided("purpose_why")

    payload: Dict[str, Any] = {
        "identities": [
            {"name": identity_name, "icon": identity_icon, "selected": True},
            {"name": "Someone who keeps promises to themselves", "icon": "user", "selected": False},
        ],
        "identity_summary": f"You are becoming someone who makes steady progress on {focus}.",
        "my_why": " ".join(why.split()[:8]) if why else "Grow into who I want to be",
        "yearly_goal_title": profile.provided("yearly_goal") or "Make consistent progress this year",
        "quarterly_goals": [
            {
                "quarter": quarter,
                "goal": f"{quarter} ({QUARTER_PHASES[quarter]}): move {focus} forward with measurable weekly output",
                "weeklyPlan": _weekly_plan(track, quarter),
            }
            for quarter in QUARTER_IDS
        ],
        "your_why_detail": why or "",
        "daily_non_negotiables": [
            {"name": profile.provided("sleep_definition") or "Protect your sleep window", "icon": "moon"},
            {"name": "Drink water through the day", "icon": "droplet"},
            {"name": profile.provided("body_care") or "Move your body for 20 minutes", "icon": "activity"},
            {"name": profile.provided("self_care_practice") or "Ten quiet minutes for yourself", "icon": "heart"},
        ],
        "weekly_plan": [
            {"day": day, "activity": track["days"][index][0]} for index, day in enumerate(DAY_NAMES)
        ],
        "habits": [
            {"name": profile.provided("habits_focus") or "Primary habit", "current": 0, "target": 4, "unit": "days"},
            {"name": "Water", "value": "2,000", "unit": "ml", "icon": "droplet"},
        ],
        "focus_duration_minutes": 45,
        "focus_block_duration": "30-45 min",
        "focus_block_suggestion": "A 30-45 minute block fits most days and is long enough to finish something.",
        "quarter_goal": f"Lay the foundation for {focus}.",
        "friction_insight": (
            f"Watch for: {profile.provided('friction_triggers')}" if profile.provided("friction_triggers") else ""
        ),
        "identity_reinforcement": f"Every small rep counts. You are a {identity_name.lower()}.",
        "frictions_detector_message": f"You are a {identity_name.lower()}. Stay on your path!",
        "micro_steps": [
            {"text": f"Spend 10 minutes on {focus}", "type": "goal"},
            {"text": profile.provided("habits_focus") or "Complete your primary habit once", "type": "habit"},
            {"text": profile.provided("health_focus") or "Take a short walk", "type": "health"},
        ],
        "is_ai_generated": False,
    }
    return GeneratedPlanDocument.model_validate(payload)
