# backend/alembic/versions/001_scheduling_core.py
"""Scheduling core - teachers, availability, occurrences, patterns, outbox

Revision ID: 001_scheduling_core
Revises:
Create Date: 2025-01-01 00:00:00.000000

This migration creates every table the scheduling engine reads and writes.
All instants are stored as timestamptz in UTC; weekly slot times are local
HH:MM strings interpreted in the slot's timezone.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_scheduling_core"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=True,
    )


def upgrade() -> None:
    """Create scheduling core tables."""
    print("Creating scheduling core tables...")

    op.create_table(
        "teacher_profiles",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("display_name", sa.String(200), nullable=False),
        sa.Column("timezone", sa.String(64), nullable=False),
        sa.Column("availability_mode", sa.String(32), nullable=False),
        sa.Column("gender", sa.String(16), nullable=True),
        sa.Column("subjects", JSON_TYPE, nullable=False),
        sa.Column("min_student_age", sa.Integer(), nullable=False),
        sa.Column("max_student_age", sa.Integer(), nullable=False),
        sa.Column("male_min_student_age", sa.Integer(), nullable=True),
        sa.Column("male_max_student_age", sa.Integer(), nullable=True),
        sa.Column("female_min_student_age", sa.Integer(), nullable=True),
        sa.Column("female_max_student_age", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        comment="Teacher timezone, availability baseline and matching preferences",
    )
    op.create_index("ix_teacher_profiles_status", "teacher_profiles", ["status"])

    op.create_table(
        "weekly_availability_slots",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("teacher_id", sa.String(26), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("timezone", sa.String(64), nullable=True),
        sa.Column("effective_from", sa.Date(), nullable=True),
        sa.Column("effective_to", sa.Date(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["teacher_id"], ["teacher_profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_slot_day_of_week"),
        comment="Recurring weekly windows in the teacher's local time (0 = Sunday)",
    )
    op.create_index(
        "idx_weekly_slots_teacher_day_status",
        "weekly_availability_slots",
        ["teacher_id", "day_of_week", "status"],
    )

    op.create_table(
        "unavailability_periods",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("teacher_id", sa.String(26), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(32), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("approval_status", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["teacher_id"], ["teacher_profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("end_at > start_at", name="ck_unavailability_range"),
    )
    op.create_index(
        "idx_unavailability_teacher_range",
        "unavailability_periods",
        ["teacher_id", "start_at", "end_at"],
    )

    op.create_table(
        "recurring_patterns",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("teacher_id", sa.String(26), nullable=False),
        sa.Column("student_id", sa.String(26), nullable=False),
        sa.Column("student_name", sa.String(200), nullable=True),
        sa.Column("subject", sa.String(200), nullable=True),
        sa.Column("anchor_timezone", sa.String(16), nullable=False),
        sa.Column("timezone", sa.String(64), nullable=False),
        sa.Column("anchor_scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("horizon_months", sa.Integer(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("generated_through", sa.Date(), nullable=True),
        sa.Column("last_generated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["teacher_id"], ["teacher_profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("horizon_months >= 1 AND horizon_months <= 12", name="ck_pattern_horizon"),
    )
    op.create_index("ix_recurring_patterns_teacher_id", "recurring_patterns", ["teacher_id"])
    op.create_index("ix_recurring_patterns_status", "recurring_patterns", ["status"])

    op.create_table(
        "recurring_pattern_slots",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("pattern_id", sa.String(26), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("hour", sa.Integer(), nullable=False),
        sa.Column("minute", sa.Integer(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=True),
        sa.ForeignKeyConstraint(["pattern_id"], ["recurring_patterns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_pattern_slot_day"),
        sa.CheckConstraint("hour >= 0 AND hour <= 23", name="ck_pattern_slot_hour"),
        sa.CheckConstraint("minute >= 0 AND minute <= 59", name="ck_pattern_slot_minute"),
    )

    op.create_table(
        "class_occurrences",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("teacher_id", sa.String(26), nullable=False),
        sa.Column("student_id", sa.String(26), nullable=False),
        sa.Column("student_name", sa.String(200), nullable=True),
        sa.Column("subject", sa.String(200), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("anchor_timezone", sa.String(16), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=True),
        sa.Column("anchor_utc_offset_minutes", sa.Integer(), nullable=True),
        sa.Column("pattern_id", sa.String(26), nullable=True),
        sa.Column("slot_key", sa.String(120), nullable=True),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("dst_adjustments", JSON_TYPE, nullable=False),
        sa.Column("last_dst_check_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["teacher_id"], ["teacher_profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["pattern_id"], ["recurring_patterns.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("pattern_id", "slot_key", name="uq_occurrence_pattern_slot_key"),
        comment="Concrete classes; (pattern_id, slot_key) makes generation idempotent",
    )
    op.create_index("ix_class_occurrences_student_id", "class_occurrences", ["student_id"])
    op.create_index(
        "idx_occurrences_teacher_range",
        "class_occurrences",
        ["teacher_id", "scheduled_at", "ends_at"],
    )
    op.create_index(
        "idx_occurrences_timezone_scheduled",
        "class_occurrences",
        ["timezone", "scheduled_at"],
    )

    op.create_table(
        "notification_outbox",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("recipient_id", sa.String(26), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("payload", JSON_TYPE, nullable=False),
        sa.Column("idempotency_key", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("attempt_count", sa.Integer(), nullable=False),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("idempotency_key", name="uq_notification_outbox_idempotency_key"),
    )
    op.create_index("ix_notification_outbox_recipient_id", "notification_outbox", ["recipient_id"])
    op.create_index("ix_notification_outbox_event_type", "notification_outbox", ["event_type"])
    op.create_index("ix_notification_outbox_status", "notification_outbox", ["status"])

    print("Scheduling core tables created successfully!")


def downgrade() -> None:
    """Drop scheduling core tables."""
    print("Dropping scheduling core tables...")

    op.drop_index("ix_notification_outbox_status", table_name="notification_outbox")
    op.drop_index("ix_notification_outbox_event_type", table_name="notification_outbox")
    op.drop_index("ix_notification_outbox_recipient_id", table_name="notification_outbox")
    op.drop_table("notification_outbox")

    op.drop_index("idx_occurrences_timezone_scheduled", table_name="class_occurrences")
    op.drop_index("idx_occurrences_teacher_range", table_name="class_occurrences")
    op.drop_index("ix_class_occurrences_student_id", table_name="class_occurrences")
    op.drop_table("class_occurrences")

    op.drop_table("recurring_pattern_slots")
    op.drop_index("ix_recurring_patterns_status", table_name="recurring_patterns")
    op.drop_index("ix_recurring_patterns_teacher_id", table_name="recurring_patterns")
    op.drop_table("recurring_patterns")

    op.drop_index("idx_unavailability_teacher_range", table_name="unavailability_periods")
    op.drop_table("unavailability_periods")

    op.drop_index("idx_weekly_slots_teacher_day_status", table_name="weekly_availability_slots")
    op.drop_table("weekly_availability_slots")

    op.drop_index("ix_teacher_profiles_status", table_name="teacher_profiles")
    op.drop_table("teacher_profiles")

    print("Scheduling core tables dropped successfully!")
