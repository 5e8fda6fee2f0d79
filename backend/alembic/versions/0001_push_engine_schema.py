"""create users, notifications and device registrations

Revision ID: 0001_push_engine
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_push_engine"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        """
        DO $$
        BEGIN
            IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'notification_status') THEN
                CREATE TYPE notification_status AS ENUM ('draft', 'scheduled', 'sent');
            END IF;
        END $$;
        """
    )
    notification_status_enum = postgresql.ENUM(name="notification_status", create_type=False)

    op.execute(
        """
        DO $$
        BEGIN
            IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'push_channel') THEN
                CREATE TYPE push_channel AS ENUM ('fcm', 'expo');
            END IF;
        END $$;
        """
    )
    push_channel_enum = postgresql.ENUM(name="push_channel", create_type=False)

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("last_token_update", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "notifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False, server_default=""),
        sa.Column("type", sa.String(length=50), nullable=False, server_default="general"),
        sa.Column("priority", sa.String(length=20), nullable=False, server_default="normal"),
        sa.Column("target_users", postgresql.JSON(), nullable=False),
        sa.Column("status", notification_status_enum, nullable=False, server_default="draft"),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("read_by", postgresql.JSON(), nullable=False),
        sa.Column("sent_to", postgresql.JSON(), nullable=True),
        sa.Column("delivered_to", sa.Integer(), nullable=True),
        sa.Column("failed_deliveries", sa.Integer(), nullable=True),
        sa.Column("error", sa.String(length=1000), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=True),
        sa.Column("send_generation", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("delivery_generation", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_notifications_status"), "notifications", ["status"], unique=False)
    op.create_index(op.f("ix_notifications_scheduled_for"), "notifications", ["scheduled_for"], unique=False)

    op.create_table(
        "device_registrations",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("channel", push_channel_enum, nullable=False),
        sa.Column("device_id", sa.String(length=255), nullable=False),
        sa.Column("token", sa.String(length=4096), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "channel", "device_id", name="uq_device_registration_device"),
    )
    op.create_index(op.f("ix_device_registrations_user_id"), "device_registrations", ["user_id"], unique=False)
    op.create_index(op.f("ix_device_registrations_channel"), "device_registrations", ["channel"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_device_registrations_channel"), table_name="device_registrations")
    op.drop_index(op.f("ix_device_registrations_user_id"), table_name="device_registrations")
    op.drop_table("device_registrations")

    op.drop_index(op.f("ix_notifications_scheduled_for"), table_name="notifications")
    op.drop_index(op.f("ix_notifications_status"), table_name="notifications")
    op.drop_table("notifications")

    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")

    op.execute("DROP TYPE IF EXISTS push_channel")
    op.execute("DROP TYPE IF EXISTS notification_status")
