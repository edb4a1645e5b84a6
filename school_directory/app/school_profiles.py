from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from fastapi import HTTPException
from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session, selectinload

from . import policy
from .models import (
    EDUCATION_LEVEL_MODELS,
    Address,
    BasicLevel,
    Infrastructure,
    Media,
    MediaAttachment,
    MediaType,
    PrimaryLevel,
    School,
    SecondaryLevel,
)
from .policy import Caller
from .sanitize import sanitize_phone, sanitize_string, sanitize_url
from .schemas import (
    Pagination,
    SchoolCreatePayload,
    SchoolDetail,
    SchoolSummary,
    SchoolUpdatePayload,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 50

PHONE_FIELDS = ("phone_number1", "phone_number2", "phone_number3")
URL_FIELDS = ("schools_web_site", "facebook_profile_url", "instagram_profile_url")
CHILD_FIELDS = ("address", "infrastructure", "primary", "basic", "secondary")
PHOTO_URLS_FIELD = "school_uniform_photo_urls"
CHILD_MODELS = {"address": Address, "infrastructure": Infrastructure, **EDUCATION_LEVEL_MODELS}

SchoolListing = Union[List[Dict[str, Any]], Dict[str, Any]]


def _sanitize_value(field_name: str, value: Any) -> Any:
    if value is None:
        return None
    if field_name in PHONE_FIELDS:
        return sanitize_phone(value)
    if field_name in URL_FIELDS:
        return sanitize_url(value)
    if isinstance(value, str):
        return sanitize_string(value)
    return value


def _sanitize_values(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: _sanitize_value(key, value) for key, value in values.items()}


def _sanitize_photo_urls(urls: Optional[List[str]]) -> List[str]:
    cleaned = (sanitize_url(url) for url in urls or [])
    return [url for url in cleaned if url]


def _uniform_photos(level_key: str, urls: Optional[List[str]]) -> List[Media]:
    attachment = MediaAttachment(level_key)
    return [
        Media(media_url=url, type=MediaType.PHOTO, attached_to=attachment)
        for url in _sanitize_photo_urls(urls)
    ]


def parse_page_param(value: Optional[str], default: int) -> int:
    """Parse a positive page number, falling back to ``default`` for anything else."""

    if value is None:
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        return default
    return parsed if parsed >= 1 else default


def _school_query(lightweight: bool = False) -> Select:
    if lightweight:
        return select(School).options(
            selectinload(School.address),
            selectinload(School.creator),
        )

    return select(School).options(
        selectinload(School.address),
        selectinload(School.infrastructure),
        selectinload(School.primary).selectinload(PrimaryLevel.media),
        selectinload(School.basic).selectinload(BasicLevel.media),
        selectinload(School.secondary).selectinload(SecondaryLevel.media),
        selectinload(School.media),
        selectinload(School.creator),
    )


def build_school_from_record(school: School, *, lightweight: bool = False) -> Dict[str, Any]:
    """Serialize an ORM school into the camelCase JSON shape returned by the API."""

    model = SchoolSummary if lightweight else SchoolDetail
    return model.model_validate(school).model_dump(mode="json", by_alias=True)


def list_schools(
    db: Session,
    caller: Caller,
    *,
    page: Optional[str] = None,
    page_size: Optional[str] = None,
    lightweight: bool = False,
) -> SchoolListing:
    owner_filter = policy.visibility_filter(caller)

    statement = _school_query(lightweight)
    count_statement = select(func.count()).select_from(School)
    if not owner_filter.matches_all:
        statement = statement.where(School.created_by == owner_filter.owner_id)
        count_statement = count_statement.where(School.created_by == owner_filter.owner_id)
    statement = statement.order_by(School.created_at.desc(), School.id)

    if page is None and page_size is None:
        schools = db.scalars(statement).all()
        return [build_school_from_record(school, lightweight=lightweight) for school in schools]

    page_number = parse_page_param(page, DEFAULT_PAGE)
    size = parse_page_param(page_size, DEFAULT_PAGE_SIZE)
    total_count = db.scalar(count_statement) or 0
    schools = db.scalars(statement.offset((page_number - 1) * size).limit(size)).all()

    pagination = Pagination(
        page=page_number,
        page_size=size,
        total_count=total_count,
        total_pages=math.ceil(total_count / size),
    )
    return {
        "data": [build_school_from_record(school, lightweight=lightweight) for school in schools],
        "pagination": pagination.model_dump(by_alias=True),
    }


def _load_school(db: Session, school_id: str) -> School:
    school = db.scalars(_school_query().where(School.id == school_id)).first()
    if school is None:
        raise HTTPException(status_code=404, detail="School not found")
    return school


def _ensure_can_modify(caller: Caller, school: School) -> None:
    if not policy.can_modify(caller, school.created_by):
        raise HTTPException(status_code=403, detail="You do not have permission to modify this school")


def get_school(db: Session, caller: Caller, school_id: str) -> Dict[str, Any]:
    school = _load_school(db, school_id)
    if not policy.can_view(caller, school.created_by):
        raise HTTPException(status_code=403, detail="You do not have permission to view this school")
    return build_school_from_record(school)


def create_school_profile(
    db: Session, payload: SchoolCreatePayload, caller: Caller
) -> Dict[str, Any]:
    if not caller.user_id:
        raise HTTPException(status_code=401, detail="Authentication required")

    scalars = _sanitize_values(payload.model_dump(exclude=set(CHILD_FIELDS)))
    if not scalars.get("name"):
        raise HTTPException(status_code=400, detail="Name is required")

    school = School(**scalars, created_by=caller.user_id)
    school.address = Address(**_sanitize_values(payload.address.model_dump()))
    school.infrastructure = Infrastructure(**_sanitize_values(payload.infrastructure.model_dump()))

    for level_key, level_model in EDUCATION_LEVEL_MODELS.items():
        level_values = getattr(payload, level_key).model_dump()
        photo_urls = level_values.pop(PHOTO_URLS_FIELD, [])
        level = level_model(**_sanitize_values(level_values))
        level.media = _uniform_photos(level_key, photo_urls)
        setattr(school, level_key, level)

    db.add(school)
    db.commit()
    logger.info("School %s created by %s", school.id, caller.user_id)

    return build_school_from_record(_load_school(db, school.id))


def _apply_child_updates(school: School, child_key: str, values: Dict[str, Any]) -> None:
    photo_urls = values.pop(PHOTO_URLS_FIELD, None)
    sanitized = _sanitize_values(values)

    child = getattr(school, child_key)
    if child is None:
        child = CHILD_MODELS[child_key](**sanitized)
        setattr(school, child_key, child)
    else:
        for field_name, value in sanitized.items():
            setattr(child, field_name, value)

    if photo_urls and child_key in EDUCATION_LEVEL_MODELS:
        child.media.extend(_uniform_photos(child_key, photo_urls))


def update_school_profile(
    db: Session, school_id: str, payload: SchoolUpdatePayload, caller: Caller
) -> Dict[str, Any]:
    school = _load_school(db, school_id)
    _ensure_can_modify(caller, school)

    updates = payload.model_dump(exclude_unset=True)
    child_updates = {key: updates.pop(key) for key in CHILD_FIELDS if key in updates}

    scalars = _sanitize_values(updates)
    if "name" in scalars and not scalars["name"]:
        raise HTTPException(status_code=400, detail="Name cannot be empty")

    for field_name, value in scalars.items():
        setattr(school, field_name, value)

    for child_key, values in child_updates.items():
        if values is None:
            continue
        _apply_child_updates(school, child_key, values)

    school.updated_by = caller.user_id
    # Column onupdate only fires when the school row itself changes, not for child-only edits.
    school.updated_at = datetime.utcnow()
    db.commit()
    logger.info("School %s updated by %s", school.id, caller.user_id)

    return build_school_from_record(_load_school(db, school.id))


def delete_school_profile(db: Session, school_id: str, caller: Caller) -> Dict[str, Any]:
    school = _load_school(db, school_id)
    _ensure_can_modify(caller, school)

    snapshot = build_school_from_record(school)
    db.delete(school)
    db.commit()
    logger.info("School %s deleted by %s", school_id, caller.user_id)

    return snapshot


__all__ = [
    "DEFAULT_PAGE",
    "DEFAULT_PAGE_SIZE",
    "build_school_from_record",
    "create_school_profile",
    "delete_school_profile",
    "get_school",
    "list_schools",
    "parse_page_param",
    "update_school_profile",
]
