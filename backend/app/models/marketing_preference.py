import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base

class UserMarketingPreference(Base):
    __tablename__ = "user_marketing_preferences"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    email: Mapped[str] = mapped_column(sa.Text, nullable=False, default="")

    subscribed_to_promotional: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    subscribed_to_newsletter: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    subscribed_to_product_updates: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    subscribed_to_events: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)

    prefer_email: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True)
    prefer_sms: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    prefer_push: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now()
    )

    user = relationship("User", back_populates="marketing_preference")
