import enum
import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    first_name: Mapped[str] = mapped_column(sa.Text, nullable=False)
    last_name: Mapped[str] = mapped_column(sa.Text, nullable=False)
    email: Mapped[str] = mapped_column(sa.Text, unique=True, nullable=False)
    phone: Mapped[str] = mapped_column(sa.Text, unique=True, nullable=False)  # E.164
    password_hash: Mapped[str] = mapped_column(sa.Text, nullable=False)
    role: Mapped[str] = mapped_column(sa.Text, nullable=False, default=UserRole.USER.value, server_default=UserRole.USER.value)

    is_active: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=True, server_default=sa.true())
    is_phone_verified: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False, server_default=sa.false())
    is_email_verified: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False, server_default=sa.false())

    # OTP slots: (code, expiry) pairs, cleared after a single use
    phone_verification_otp: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    phone_verification_otp_expires: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)
    email_verification_otp: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    email_verification_otp_expires: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)
    reset_password_otp: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    reset_password_otp_expires: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)

    reset_password_token: Mapped[str | None] = mapped_column(sa.Text, unique=True, nullable=True)
    reset_password_expires: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)

    # Shared by every OTP slot
    last_otp_request_time: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)
    otp_request_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0, server_default="0")

    last_login_at: Mapped[datetime | None] = mapped_column(sa.DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now(), onupdate=sa.func.now()
    )

    __table_args__ = (
        sa.CheckConstraint("role in ('USER','ADMIN')", name="ck_user_role"),
    )

    marketing_preference = relationship(
        "UserMarketingPreference", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
