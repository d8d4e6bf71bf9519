from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.core.config import Settings


def _settings(**overrides) -> Settings:
    return Settings(DATABASE_URL="sqlite://", JWT_SECRET="s", **overrides)


def test_defaults():
    cfg = _settings(ENV="prod", BCRYPT_ROUNDS=10)
    assert cfg.OTP_TTL_MINUTES == 10
    assert cfg.OTP_DAILY_LIMIT == 3
    assert cfg.OTP_MIN_INTERVAL_MINUTES == 5
    assert cfg.JWT_ACCESS_MINUTES == 30
    assert cfg.RESET_TOKEN_TTL_MINUTES == 60


def test_day_timezone_is_checked_at_load():
    assert _settings(OTP_DAY_TIMEZONE="Africa/Lagos").OTP_DAY_TIMEZONE == "Africa/Lagos"
    with pytest.raises(ValidationError):
        _settings(OTP_DAY_TIMEZONE="Mars/Olympus")
