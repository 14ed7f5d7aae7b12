"""Initial Aligned schema."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "202601150900"
down_revision = None
branch_labels = None
depends_on = None


def _id_column() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _user_fk() -> sa.Column:
    return sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()"))


def upgrade() -> None:
    op.create_table(
        "users",
        _id_column(),
        _created_at(),
    )

    op.create_table(
        "user_identities",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("identity_statement", sa.Text(), nullable=True),
        sa.Column("purpose_why", sa.Text(), nullable=True),
        sa.Column("yearly_goal", sa.Text(), nullable=True),
        sa.Column("daily_time_capacity", sa.Text(), nullable=True),
        sa.Column("sleep_definition", sa.Text(), nullable=True),
        sa.Column("body_care", sa.Text(), nullable=True),
        sa.Column("self_care_practice", sa.Text(), nullable=True),
        sa.Column("habits_focus", sa.Text(), nullable=True),
        sa.Column("health_focus", sa.Text(), nullable=True),
        sa.Column("friction_triggers", sa.Text(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "generated_plans",
        _id_column(),
        _user_fk(),
        sa.Column("document", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", name="uq_generated_plans_user_id"),
    )

    op.create_table(
        "custom_weekly_plans",
        _id_column(),
        _user_fk(),
        sa.Column("plan", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", name="uq_custom_weekly_plans_user_id"),
    )

    op.create_table(
        "journal_entries",
        _id_column(),
        _user_fk(),
        sa.Column("legacy_id", sa.Text(), nullable=True),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("prompt", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("ai_summary", sa.Text(), nullable=True),
        sa.Column("polished_content", sa.Text(), nullable=True),
        sa.Column("mood", sa.String(length=20), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "legacy_id", name="uq_journal_entries_user_legacy"),
    )
    op.create_index("ix_journal_entries_user_id", "journal_entries", ["user_id"], unique=False)

    op.create_table(
        "brain_dumps",
        _id_column(),
        _user_fk(),
        sa.Column("legacy_id", sa.Text(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("organized_content", sa.Text(), nullable=True),
        sa.Column("tags", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "legacy_id", name="uq_brain_dumps_user_legacy"),
    )
    op.create_index("ix_brain_dumps_user_id", "brain_dumps", ["user_id"], unique=False)

    op.create_table(
        "challenges",
        _id_column(),
        _user_fk(),
        sa.Column("legacy_id", sa.Text(), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("total_days", sa.Integer(), nullable=False, server_default=sa.text("30")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "legacy_id", name="uq_challenges_user_legacy"),
    )
    op.create_index("ix_challenges_user_id", "challenges", ["user_id"], unique=False)

    op.create_table(
        "challenge_check_ins",
        _id_column(),
        sa.Column("challenge_id", postgresql.UUID(as_uuid=True), nullable=False),
        _user_fk(),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["challenge_id"], ["challenges.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("challenge_id", "check_in_date", name="uq_challenge_check_ins_day"),
    )

    op.create_table(
        "user_badges",
        _id_column(),
        _user_fk(),
        sa.Column("badge_id", sa.Text(), nullable=False),
        sa.Column("earned_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),
    )

    op.create_table(
        "daily_activities",
        _id_column(),
        _user_fk(),
        sa.Column("activity_date", sa.Date(), nullable=False),
        sa.Column("focus_sessions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("focus_minutes", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("tasks_completed", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("tasks_total", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("habits_completed", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("habits_total", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("mood_checkin", sa.String(length=10), nullable=True),
        sa.Column("energy_checkin", sa.String(length=10), nullable=True),
        sa.Column("challenge_check_ins", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("active_challenges", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "activity_date", name="uq_daily_activities_user_date"),
    )

    op.create_table(
        "daily_habits",
        _id_column(),
        _user_fk(),
        sa.Column("legacy_id", sa.Text(), nullable=True),
        sa.Column("type", sa.String(length=30), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("icon", sa.String(length=50), nullable=True),
        sa.Column("target_value", sa.Text(), nullable=True),
        sa.Column("personalized_tip", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _created_at(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "legacy_id", name="uq_daily_habits_user_legacy"),
    )
    op.create_index("ix_daily_habits_user_id", "daily_habits", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_daily_habits_user_id", table_name="daily_habits")
    op.drop_table("daily_habits")
    op.drop_table("daily_activities")
    op.drop_table("user_badges")
    op.drop_table("challenge_check_ins")
    op.drop_index("ix_challenges_user_id", table_name="challenges")
    op.drop_table("challenges")
    op.drop_index("ix_brain_dumps_user_id", table_name="brain_dumps")
    op.drop_table("brain_dumps")
    op.drop_index("ix_journal_entries_user_id", table_name="journal_entries")
    op.drop_table("journal_entries")
    op.drop_table("custom_weekly_plans")
    op.drop_table("generated_plans")
    op.drop_table("user_identities")
    op.drop_table("users")
