"""Input sanitizers applied before any write reaches storage."""

from __future__ import annotations

import math
import re
from typing import Any, Optional, Union

from .phone import format_georgian_phone

MAX_STRING_LENGTH = 1000
MAX_URL_LENGTH = 500
MAX_PHONE_LENGTH = 20
MAX_EMAIL_LENGTH = 254

ANGLE_BRACKETS_RE = re.compile(r"[<>]")
URL_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
UNSAFE_PHONE_CHARS_RE = re.compile(r"[^\d+\s-]")


def sanitize_string(value: Optional[str]) -> str:
    if not value:
        return ""
    return ANGLE_BRACKETS_RE.sub("", value.strip())[:MAX_STRING_LENGTH].strip()


def sanitize_url(value: Optional[str]) -> str:
    """Return ``value`` when it is an http(s) URL, otherwise an empty string."""

    if not value:
        return ""

    trimmed = value.strip()
    if trimmed and not URL_SCHEME_RE.match(trimmed):
        return ""

    return trimmed[:MAX_URL_LENGTH]


def sanitize_phone(value: Optional[str]) -> str:
    """Format ``value`` as a Georgian number, falling back to stripping unsafe characters."""

    if not value:
        return ""

    formatted = format_georgian_phone(value)
    if formatted:
        return formatted

    return UNSAFE_PHONE_CHARS_RE.sub("", value.strip())[:MAX_PHONE_LENGTH]


def sanitize_number(value: Any) -> Optional[Union[int, float]]:
    """Return a number or ``None`` when ``value`` is empty or not numeric."""

    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return None
        return value

    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            parsed = float(stripped)
        except ValueError:
            return None
        if math.isnan(parsed) or math.isinf(parsed):
            return None
        return int(parsed) if parsed.is_integer() and "." not in stripped else parsed

    return None


def sanitize_email(value: Optional[str]) -> str:
    if not value:
        return ""
    return value.strip().lower()[:MAX_EMAIL_LENGTH]


__all__ = [
    "MAX_EMAIL_LENGTH",
    "MAX_PHONE_LENGTH",
    "MAX_STRING_LENGTH",
    "MAX_URL_LENGTH",
    "sanitize_email",
    "sanitize_number",
    "sanitize_phone",
    "sanitize_string",
    "sanitize_url",
]
