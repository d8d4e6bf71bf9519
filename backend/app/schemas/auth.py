from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def looks_like_email(value: str) -> bool:
    v = value.strip()
    return "@" in v and "." in v.split("@")[-1]


def normalize_email(value: str) -> str:
    return value.strip().lower()


class EmailIn(BaseModel):
    email: str = Field(..., min_length=3, max_length=254, examples=["user@example.com"])

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        if not looks_like_email(value):
            raise ValueError("Invalid email")
        return normalize_email(value)


class PhoneIn(BaseModel):
    phone: str = Field(..., min_length=3, max_length=32, examples=["08012345678"])


class SignupIn(EmailIn):
    first_name: str = Field(..., min_length=1, max_length=80, validation_alias=AliasChoices("first_name", "firstName"))
    last_name: str = Field(..., min_length=1, max_length=80, validation_alias=AliasChoices("last_name", "lastName"))
    phone: str = Field(..., min_length=3, max_length=32, examples=["08012345678"])
    password: str = Field(..., min_length=8, max_length=128)


class LoginIn(BaseModel):
    login: str = Field(..., min_length=3, max_length=32, validation_alias=AliasChoices("login", "phone"))
    password: str = Field(..., min_length=1, max_length=128)


class VerifyPhoneIn(PhoneIn):
    otp: str = Field(..., min_length=6, max_length=6)


class ResendVerificationIn(PhoneIn):
    pass


class ForgotPasswordIn(PhoneIn):
    pass


class ResetPasswordOtpIn(PhoneIn):
    otp: str = Field(..., min_length=6, max_length=6)
    new_password: str = Field(..., min_length=8, max_length=128, validation_alias=AliasChoices("new_password", "newPassword"))


class ForgotPasswordEmailIn(EmailIn):
    pass


class ResetPasswordIn(BaseModel):
    token: str = Field(..., min_length=1, max_length=256)
    new_password: str = Field(..., min_length=8, max_length=128, validation_alias=AliasChoices("new_password", "newPassword"))


class RequestEmailVerificationIn(EmailIn):
    pass


class VerifyEmailIn(EmailIn):
    otp: str = Field(..., min_length=6, max_length=6)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    first_name: str
    last_name: str
    email: str
    phone: str
    role: str
    is_active: bool
    is_phone_verified: bool
    is_email_verified: bool

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value) -> str:
        return str(value)


class SignupOut(UserOut):
    message: str
    otp_sent: bool
    dev_code: str | None = None


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class MessageOut(BaseModel):
    ok: bool = True
    message: str


class OTPRequestOut(MessageOut):
    expires_at: datetime | None = None
    dev_code: str | None = None
