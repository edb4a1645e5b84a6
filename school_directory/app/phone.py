"""Georgian phone number validation and formatting."""

from __future__ import annotations

import re
from typing import Optional

COUNTRY_PREFIX = "+995"

PHONE_WITH_SPACES_RE = re.compile(r"^\+995\s\d{3}\s\d{2}\s\d{2}\s\d{2}$")
PHONE_NO_SPACES_RE = re.compile(r"^\+995\d{9}$")
PHONE_NINE_DIGITS_RE = re.compile(r"^\d{9}$")
NON_PHONE_CHARS_RE = re.compile(r"[^\d+]")

PHONE_FORMAT_MESSAGE = (
    "Phone number must be 9 digits or in format: +995 XXX XX XX XX "
    "(e.g., 577189127 or +995 577 18 91 27)"
)


def is_valid_georgian_phone(value: Optional[str]) -> bool:
    """Return ``True`` for empty values and any of the three accepted shapes."""

    if not value:
        return True

    cleaned = value.strip()
    return bool(
        PHONE_WITH_SPACES_RE.match(cleaned)
        or PHONE_NO_SPACES_RE.match(cleaned)
        or PHONE_NINE_DIGITS_RE.match(cleaned)
    )


def format_georgian_phone(value: Optional[str]) -> str:
    """Return ``value`` as ``+995 XXX XX XX XX`` or ``""`` when it cannot be formatted."""

    if not value:
        return ""

    cleaned = NON_PHONE_CHARS_RE.sub("", value)

    if PHONE_NINE_DIGITS_RE.match(cleaned):
        digits = cleaned
    elif cleaned.startswith(COUNTRY_PREFIX):
        digits = cleaned[len(COUNTRY_PREFIX):]
    else:
        return ""

    if len(digits) != 9 or not digits.isdigit():
        return ""

    return f"{COUNTRY_PREFIX} {digits[0:3]} {digits[3:5]} {digits[5:7]} {digits[7:9]}"


__all__ = [
    "PHONE_FORMAT_MESSAGE",
    "format_georgian_phone",
    "is_valid_georgian_phone",
]
