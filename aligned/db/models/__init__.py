"""ORM models exposed for metadata discovery."""
from aligned.db.models.brain_dump import BrainDump
from aligned.db.models.challenge import Challenge, ChallengeCheckIn, UserBadge
from aligned.db.models.daily_activity import DailyActivity
from aligned.db.models.daily_habit import DailyHabit
from aligned.db.models.generated_plan import CustomWeeklyPlan, GeneratedPlan
from aligned.db.models.journal_entry import JournalEntry
from aligned.db.models.user import User, UserIdentity

__all__ = [
    "BrainDump",
    "Challenge",
    "ChallengeCheckIn",
    "CustomWeeklyPlan",
    "DailyActivity",
    "DailyHabit",
    "GeneratedPlan",
    "JournalEntry",
    "User",
    "UserBadge",
    "UserIdentity",
]
