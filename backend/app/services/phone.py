"""
Phone number normalisation.

Numbers are stored in E.164 so that the same subscriber typed in a national
format (``08012345678``) or an international one (``+234 801 234 5678``)
resolves to one identity.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

E164_PATTERN = re.compile(r"^\+[1-9]\d{7,14}$")
_SEPARATORS = re.compile(r"[\s\-().]")


@dataclass(frozen=True)
class PhoneValidation:
    is_valid: bool
    formatted_number: str | None = None
    error: str | None = None


class PhoneNormalizer:
    def __init__(self, default_country_code: str = "234"):
        self.default_country_code = default_country_code.strip().lstrip("+")

    def normalize(self, raw: str | None) -> str | None:
        """Return the E.164 form of ``raw`` or ``None`` when it can't be read."""
        value = _SEPARATORS.sub("", (raw or "").strip())
        if not value:
            return None

        if value.startswith("+"):
            digits = value[1:]
        elif value.startswith("00"):
            digits = value[2:]
        elif value.startswith("0"):
            digits = self.default_country_code + value[1:]
        elif value.startswith(self.default_country_code) and len(value) > 10:
            digits = value
        else:
            digits = self.default_country_code + value

        if not digits.isdigit():
            return None
        candidate = "+" + digits
        if not E164_PATTERN.match(candidate):
            return None
        return candidate

    def validate(self, raw: str | None) -> PhoneValidation:
        formatted = self.normalize(raw)
        if formatted is None:
            return PhoneValidation(
                is_valid=False,
                error="Invalid phone number format. Use a local number or include the country code, e.g. +2348012345678",
            )
        return PhoneValidation(is_valid=True, formatted_number=formatted)
