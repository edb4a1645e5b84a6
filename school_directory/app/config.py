"""Configuration helpers shared across the school directory backend modules."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parent.parent


# Ensure environment variables defined in ``school_directory/.env`` (or the
# working directory) are available before submodules read them.
load_dotenv(ROOT_DIR / ".env")
load_dotenv()


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
TRUTHY_VALUES = {"1", "true", "yes", "on"}


def _normalize_cors_origin(origin: str) -> Optional[str]:
    """Return a sanitized representation of a configured CORS origin."""

    trimmed = origin.strip().strip('"').strip("'")
    if not trimmed:
        return None

    if trimmed == "*":
        return trimmed

    return trimmed.rstrip("/")


def _collect_csv_entries(entries: Iterable[str]) -> List[str]:
    normalized: List[str] = []
    seen: Set[str] = set()

    for raw_entry in entries:
        if not isinstance(raw_entry, str):
            continue
        normalized_entry = _normalize_cors_origin(raw_entry)
        if not normalized_entry or normalized_entry in seen:
            continue

        normalized.append(normalized_entry)
        seen.add(normalized_entry)

    return normalized


def _split_entries(value: str) -> List[str]:
    stripped = value.strip()
    if stripped.startswith("["):
        try:
            parsed = json.loads(stripped)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed JSON list in configuration: %s", stripped)
        else:
            if isinstance(parsed, list):
                return [entry for entry in parsed if isinstance(entry, str)]

    return value.replace("\n", ",").split(",")


def _parse_csv(value: Optional[str], *, default: Optional[List[str]] = None) -> List[str]:
    """Return a normalized list from a comma, newline or JSON separated string."""

    if value is not None:
        parsed = _collect_csv_entries(_split_entries(value))
        if parsed:
            return parsed

    return _collect_csv_entries(default or [])


def _parse_bool(value: Optional[str], *, default: bool = False) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in TRUTHY_VALUES


def prepare_cors_settings(origins: List[str]) -> Tuple[List[str], Optional[str]]:
    """Split configured origins into explicit origins and an optional wildcard regex."""

    allow_all_origins = "*" in origins or not origins
    explicit = [origin for origin in origins if origin != "*"]
    return explicit, ".*" if allow_all_origins else None


@dataclass(frozen=True)
class Settings:
    database_url: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    firebase_credentials_path: Optional[str] = None
    firebase_project_id: Optional[str] = None
    firebase_auth_emulator_host: Optional[str] = None
    log_level: str = "INFO"
    sql_echo: bool = False
    auto_create_tables: bool = True


def load_settings() -> Settings:
    """Build :class:`Settings` from the current environment."""

    return Settings(
        database_url=os.environ.get("DATABASE_URL") or None,
        cors_origins=_parse_csv(os.environ.get("CORS_ORIGINS"), default=["*"]),
        firebase_credentials_path=os.environ.get("GOOGLE_APPLICATION_CREDENTIALS") or None,
        firebase_project_id=os.environ.get("FIREBASE_PROJECT_ID") or None,
        firebase_auth_emulator_host=os.environ.get("FIREBASE_AUTH_EMULATOR_HOST") or None,
        log_level=(os.environ.get("LOG_LEVEL") or "INFO").upper(),
        sql_echo=_parse_bool(os.environ.get("SQL_ECHO")),
        auto_create_tables=_parse_bool(os.environ.get("AUTO_CREATE_TABLES"), default=True),
    )


__all__ = [
    "LOG_FORMAT",
    "ROOT_DIR",
    "Settings",
    "load_settings",
    "prepare_cors_settings",
    "_normalize_cors_origin",
    "_parse_bool",
    "_parse_csv",
]
