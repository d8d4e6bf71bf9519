import enum
import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base


class MarketingCategory(str, enum.Enum):
    PROMOTIONAL = "PROMOTIONAL"
    NEWSLETTER = "NEWSLETTER"
    PRODUCT_UPDATES = "PRODUCT_UPDATES"
    EVENTS = "EVENTS"


class NotificationTiming(str, enum.Enum):
    IMMEDIATE = "IMMEDIATE"
    SCHEDULED = "SCHEDULED"


class MarketingNotification(Base):
    __tablename__ = "marketing_notifications"
    __table_args__ = (
        sa.CheckConstraint(
            "category in ('PROMOTIONAL','NEWSLETTER','PRODUCT_UPDATES','EVENTS')",
            name="ck_marketing_notification_category",
        ),
        sa.CheckConstraint("timing in ('IMMEDIATE','SCHEDULED')", name="ck_marketing_notification_timing"),
    )

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(sa.Text, nullable=False)
    content: Mapped[str] = mapped_column(sa.Text, nullable=False)
    category: Mapped[str] = mapped_column(sa.Text, nullable=False)
    timing: Mapped[str] = mapped_column(sa.Text, nullable=False, default=NotificationTiming.IMMEDIATE.value)
    scheduled_date: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)

    # Empty list means every subscriber of the category.
    recipients: Mapped[list] = mapped_column(sa.JSON, nullable=False, default=list)
    # "metadata" is reserved on declarative classes.
    meta: Mapped[dict] = mapped_column("metadata", sa.JSON, nullable=False, default=dict)

    sent: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    sent_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)
    success_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    failure_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now()
    )
