from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.security import resolve_timezone

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    ENV: str = "prod"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str

    JWT_SECRET: str
    JWT_ACCESS_MINUTES: int = 30

    BCRYPT_ROUNDS: int = 10

    OTP_TTL_MINUTES: int = 10
    OTP_DAILY_LIMIT: int = 3
    OTP_MIN_INTERVAL_MINUTES: int = 5
    OTP_DAY_TIMEZONE: str = "UTC"

    RESET_TOKEN_TTL_MINUTES: int = 60

    PHONE_DEFAULT_COUNTRY_CODE: str = "234"

    # SMS gateway
    SMS_PROVIDER: str = "console"  # console|http
    SMS_API_URL: str | None = None
    SMS_API_KEY: str | None = None
    SMS_SENDER_ID: str = "AuthKit"
    SMS_TIMEOUT_SECONDS: int = 20

    # Mail transport
    MAIL_TRANSPORT: str = "console"  # console|smtp
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    MAIL_FROM: str = "AuthKit <no-reply@authkit.local>"
    PASSWORD_RESET_URL: str = "http://localhost:3000/reset-password"

    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 5
    DB_POOL_TIMEOUT_SECONDS: int = 30
    DB_POOL_RECYCLE_SECONDS: int = 1800

    ALLOWED_HOSTS: str = "localhost,127.0.0.1"
    SECURITY_HEADERS_ENABLED: bool = True

    @field_validator("OTP_DAY_TIMEZONE")
    @classmethod
    def check_day_timezone(cls, value: str) -> str:
        resolve_timezone(value)
        return value

settings = Settings()
