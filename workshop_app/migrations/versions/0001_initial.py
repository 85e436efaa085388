from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# Alembic identifiers
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("role", sa.String(16), nullable=False, server_default="student"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "workshops",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("instructor_name", sa.String(255), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("zoom_join_url", sa.String(1024), nullable=True),
        sa.Column("reminder_settings", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_workshops_start_at", "workshops", ["start_at"])

    op.create_table(
        "registrations",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("workshop_id", sa.String(64), sa.ForeignKey("workshops.id"), nullable=False),
        sa.Column("payment_status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("amount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "workshop_id", name="uq_registrations_user_id"),
    )
    op.create_index("ix_registrations_workshop_status", "registrations", ["workshop_id", "payment_status"])

    op.create_table(
        "settings",
        sa.Column("id", sa.String(32), primary_key=True),
        sa.Column("reminder_hours", sa.JSON(), nullable=True),
        sa.Column("reminder_hours_before", sa.Float(), nullable=True),
        sa.Column(
            "email_subject_template", sa.String(255), nullable=False,
            server_default="Reminder: {workshop_title} is coming up!",
        ),
        sa.Column("sender_name", sa.String(255), nullable=False, server_default="LMS Platform"),
        sa.Column("sender_email", sa.String(320), nullable=False, server_default=""),
        sa.Column("send_confirmation", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("send_reminders", sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    # the unique index on key is what makes mark_sent race-safe
    op.create_table(
        "sent_reminders",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("key", sa.String(512), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("key", name="uq_sent_reminders_key"),
    )


def downgrade():
    op.drop_table("sent_reminders")
    op.drop_table("settings")
    op.drop_index("ix_registrations_workshop_status", table_name="registrations")
    op.drop_table("registrations")
    op.drop_index("ix_workshops_start_at", table_name="workshops")
    op.drop_table("workshops")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
