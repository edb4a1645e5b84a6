"""
Copy school records from the legacy database into the current schema.

Usage:
    OLD_DATABASE_URL=... DATABASE_URL=... ADMIN_USER_ID=... python -m school_directory.scripts.migrate_data

The legacy database stores schools in camelCase tables ("SchoolData",
"Address", "Infrastructure", "Primary", "Basic", "Secondary", "media").  Every
migrated school is assigned to ``ADMIN_USER_ID``, which must already exist in
the ``users`` table.  Schools whose id already exists are skipped, so the
script can be re-run after a partial failure.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic.alias_generators import to_camel
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from ..app.config import LOG_FORMAT
from ..app.database import Database
from ..app.models import (
    EDUCATION_LEVEL_MODELS,
    Address,
    Infrastructure,
    Media,
    MediaAttachment,
    MediaType,
    School,
    User,
)

logger = logging.getLogger(__name__)

LEGACY_ALIASES = {
    "facebook_profile_url": "facebookProfileURL",
    "instagram_profile_url": "instagramProfileURL",
}

SCHOOL_FIELDS = (
    "name",
    "phone_number1",
    "phone_number2",
    "phone_number3",
    "schools_web_site",
    "facebook_profile_url",
    "instagram_profile_url",
    "founder",
    "director",
    "public_relations_manager",
    "parent_relationship_manager",
    "other_programs",
    "description",
    "has_tutor",
    "tutor_description",
    "has_scholarships_grants",
    "scholarships_grants",
    "has_exchange_programs",
    "exchange_programs",
    "has_outdoor_garden",
    "outdoor_garden",
    "established_year",
    "accreditation_status",
    "accreditation_comment",
    "graduation_rate",
    "average_national_exam_score",
)
ADDRESS_FIELDS = ("city", "district", "street", "zip_code")
INFRASTRUCTURE_FIELDS = (
    "buildings",
    "number_of_floors",
    "squareness",
    "stadiums",
    "pools",
    "courtyard",
    "laboratories",
    "library",
    "cafe",
)
LEVEL_FIELDS = (
    "price",
    "duration",
    "discount_and_payment_terms",
    "number_of_students",
    "meals",
    "meals_description",
    "transportation",
    "school_uniform",
    "mandatory_sports_clubs",
    "foreign_languages",
    "teaching_style_books",
    "clubs_and_circles",
    "textbooks_price",
)
LEGACY_LEVEL_TABLES = {"primary": "Primary", "basic": "Basic", "secondary": "Secondary"}


@dataclass
class MigrationSummary:
    migrated: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.migrated + self.skipped + self.failed


def _legacy_key(field_name: str) -> str:
    return LEGACY_ALIASES.get(field_name) or to_camel(field_name)


def _coerce_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _legacy_value(row: Mapping[str, Any], field_name: str) -> Any:
    value = row.get(_legacy_key(field_name))
    if isinstance(value, (list, tuple)):
        return ",".join(str(entry) for entry in value)
    return value


def _copy_fields(row: Mapping[str, Any], fields: Sequence[str]) -> Dict[str, Any]:
    values = {field: _legacy_value(row, field) for field in fields}
    if row.get("id"):
        values["id"] = row["id"]
    return values


def _with_timestamps(values: Dict[str, Any], row: Mapping[str, Any]) -> Dict[str, Any]:
    for field in ("created_at", "updated_at"):
        timestamp = _coerce_datetime(row.get(_legacy_key(field)))
        if timestamp is not None:
            values[field] = timestamp
    return values


def _fetch_one(connection: Connection, table: str, column: str, school_id: str) -> Optional[Mapping[str, Any]]:
    statement = text(f'SELECT * FROM "{table}" WHERE "{column}" = :school_id LIMIT 1')
    return connection.execute(statement, {"school_id": school_id}).mappings().first()


def load_legacy_schools(connection: Connection) -> List[Dict[str, Any]]:
    """Read every legacy school together with its related rows."""

    schools = [dict(row) for row in connection.execute(text('SELECT * FROM "SchoolData"')).mappings()]
    for school in schools:
        school_id = school["id"]
        school["address"] = _fetch_one(connection, "Address", "schoolDataId", school_id)
        school["infrastructure"] = _fetch_one(connection, "Infrastructure", "schoolDataId", school_id)
        for level_key, table in LEGACY_LEVEL_TABLES.items():
            school[level_key] = _fetch_one(connection, table, "schoolId", school_id)
        school["media"] = list(
            connection.execute(
                text('SELECT * FROM "media" WHERE "school_id" = :school_id'),
                {"school_id": school_id},
            ).mappings()
        )
    return schools


def _build_media(row: Mapping[str, Any], school: School) -> Media:
    media = Media(
        **_with_timestamps(
            {
                **_copy_fields(row, ()),
                "media_url": row.get("mediaUrl"),
                "description": row.get("description"),
                "type": MediaType(row.get("type") or MediaType.PHOTO.value),
            },
            row,
        )
    )

    attachment = MediaAttachment(row.get("attachedTo") or MediaAttachment.SCHOOL.value)
    level = getattr(school, attachment.value) if attachment != MediaAttachment.SCHOOL else None
    if level is not None:
        media.attached_to = attachment
        level.media.append(media)
    else:
        media.attached_to = MediaAttachment.SCHOOL
        school.media.append(media)
    return media


def build_school(record: Mapping[str, Any], admin_user_id: str) -> School:
    school = School(
        **_with_timestamps(
            {"created_by": admin_user_id, **_copy_fields(record, SCHOOL_FIELDS)},
            record,
        )
    )

    address = record.get("address")
    if address:
        school.address = Address(**_copy_fields(address, ADDRESS_FIELDS))

    infrastructure = record.get("infrastructure")
    if infrastructure:
        school.infrastructure = Infrastructure(**_copy_fields(infrastructure, INFRASTRUCTURE_FIELDS))

    for level_key, level_model in EDUCATION_LEVEL_MODELS.items():
        level = record.get(level_key)
        if level:
            setattr(school, level_key, level_model(**_copy_fields(level, LEVEL_FIELDS)))

    for media_row in record.get("media") or []:
        _build_media(media_row, school)

    return school


def migrate(source: Engine, target: Database, admin_user_id: str) -> MigrationSummary:
    summary = MigrationSummary()

    with target.session_factory() as session:
        admin = session.get(User, admin_user_id)
        if admin is None:
            raise LookupError(f"Admin user {admin_user_id} not found in target database")
        logger.info("Assigning migrated schools to %s", admin.email or admin_user_id)

    with source.connect() as connection:
        legacy_schools = load_legacy_schools(connection)
    logger.info("Found %d schools in legacy database", len(legacy_schools))

    for record in legacy_schools:
        with target.session_factory() as session:
            if session.get(School, record["id"]) is not None:
                logger.info("Skipping %s: already migrated", record.get("name"))
                summary.skipped += 1
                continue
            try:
                session.add(build_school(record, admin_user_id))
                session.commit()
            except (SQLAlchemyError, ValueError):
                session.rollback()
                logger.exception("Failed to migrate %s", record.get("name"))
                summary.failed += 1
            else:
                logger.info("Migrated %s", record.get("name"))
                summary.migrated += 1

    logger.info(
        "Migration finished: %d migrated, %d skipped, %d failed, %d processed",
        summary.migrated,
        summary.skipped,
        summary.failed,
        summary.processed,
    )
    return summary


def main() -> int:
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    old_database_url = os.environ.get("OLD_DATABASE_URL")
    database_url = os.environ.get("DATABASE_URL")
    admin_user_id = os.environ.get("ADMIN_USER_ID")

    missing = [
        name
        for name, value in (
            ("OLD_DATABASE_URL", old_database_url),
            ("DATABASE_URL", database_url),
            ("ADMIN_USER_ID", admin_user_id),
        )
        if not value
    ]
    if missing:
        logger.error("Missing required environment variables: %s", ", ".join(missing))
        return 1

    source = create_engine(old_database_url)
    target = Database.from_url(database_url)
    try:
        migrate(source, target, admin_user_id)
    except (LookupError, SQLAlchemyError):
        logger.exception("Migration failed")
        return 1
    finally:
        source.dispose()
        target.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
