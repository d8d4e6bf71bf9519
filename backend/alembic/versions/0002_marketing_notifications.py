"""marketing notifications

Revision ID: 0002_marketing_notifications
Revises: 0001_auth_core
Create Date: 2026-10-16
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_marketing_notifications"
down_revision = "0001_auth_core"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "marketing_notifications",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("category", sa.Text, nullable=False),
        sa.Column("timing", sa.Text, nullable=False, server_default="IMMEDIATE"),
        sa.Column("scheduled_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("recipients", sa.JSON, nullable=False),
        sa.Column("metadata", sa.JSON, nullable=False),
        sa.Column("sent", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("success_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("failure_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_by_user_id", sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "category in ('PROMOTIONAL','NEWSLETTER','PRODUCT_UPDATES','EVENTS')",
            name="ck_marketing_notification_category",
        ),
        sa.CheckConstraint("timing in ('IMMEDIATE','SCHEDULED')", name="ck_marketing_notification_timing"),
    )
    op.create_index(
        "ix_marketing_notifications_created", "marketing_notifications", [sa.text("created_at DESC")]
    )


def downgrade():
    op.drop_index("ix_marketing_notifications_created", table_name="marketing_notifications")
    op.drop_table("marketing_notifications")
