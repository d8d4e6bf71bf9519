"""users with otp slots, marketing preferences and audit log

Revision ID: 0001_auth_core
Revises:
Create Date: 2026-10-16
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_auth_core"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("first_name", sa.Text, nullable=False),
        sa.Column("last_name", sa.Text, nullable=False),
        sa.Column("email", sa.Text, nullable=False),
        sa.Column("phone", sa.Text, nullable=False),
        sa.Column("password_hash", sa.Text, nullable=False),
        sa.Column("role", sa.Text, nullable=False, server_default="USER"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("is_phone_verified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_email_verified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("phone_verification_otp", sa.Text, nullable=True),
        sa.Column("phone_verification_otp_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("email_verification_otp", sa.Text, nullable=True),
        sa.Column("email_verification_otp_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reset_password_otp", sa.Text, nullable=True),
        sa.Column("reset_password_otp_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reset_password_token", sa.Text, nullable=True),
        sa.Column("reset_password_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_otp_request_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("otp_request_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("role in ('USER','ADMIN')", name="ck_user_role"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("phone", name="uq_users_phone"),
        sa.UniqueConstraint("reset_password_token", name="uq_users_reset_password_token"),
    )

    op.create_table(
        "user_marketing_preferences",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("user_id", sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("email", sa.Text, nullable=False, server_default=""),
        sa.Column("subscribed_to_promotional", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("subscribed_to_newsletter", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("subscribed_to_product_updates", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("subscribed_to_events", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("prefer_email", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("prefer_sms", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("prefer_push", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", name="uq_user_marketing_preferences_user"),
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("actor_user_id", sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("entity_type", sa.Text, nullable=False),
        sa.Column("entity_id", sa.Text, nullable=False),
        sa.Column("action", sa.Text, nullable=False),
        sa.Column("data", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])
    op.create_index("ix_audit_actor_created", "audit_log", ["actor_user_id", sa.text("created_at DESC")])


def downgrade():
    op.drop_index("ix_audit_actor_created", table_name="audit_log")
    op.drop_index("ix_audit_entity", table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_table("user_marketing_preferences")
    op.drop_table("users")
