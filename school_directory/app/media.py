"""Batch creation of media rows attached to a school or one of its levels.

A media row has exactly one parent.  Incoming items name the parent with an
``attachedTo`` tag and an ``attachedId``; :func:`media_parent_for` turns that
pair into one of the :data:`MediaParent` variants so the foreign key column is
chosen in one place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional, Union

from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.orm import Session

from .models import Media, MediaAttachment, MediaType
from .sanitize import sanitize_string
from .schemas import MediaItemPayload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchoolParent:
    school_id: str
    attachment: ClassVar[MediaAttachment] = MediaAttachment.SCHOOL

    @property
    def foreign_key(self) -> Dict[str, str]:
        return {"school_id": self.school_id}


@dataclass(frozen=True)
class PrimaryLevelParent:
    primary_level_id: str
    attachment: ClassVar[MediaAttachment] = MediaAttachment.PRIMARY

    @property
    def foreign_key(self) -> Dict[str, str]:
        return {"primary_level_id": self.primary_level_id}


@dataclass(frozen=True)
class BasicLevelParent:
    basic_level_id: str
    attachment: ClassVar[MediaAttachment] = MediaAttachment.BASIC

    @property
    def foreign_key(self) -> Dict[str, str]:
        return {"basic_level_id": self.basic_level_id}


@dataclass(frozen=True)
class SecondaryLevelParent:
    secondary_level_id: str
    attachment: ClassVar[MediaAttachment] = MediaAttachment.SECONDARY

    @property
    def foreign_key(self) -> Dict[str, str]:
        return {"secondary_level_id": self.secondary_level_id}


MediaParent = Union[SchoolParent, PrimaryLevelParent, BasicLevelParent, SecondaryLevelParent]

_PARENT_TYPES = {
    MediaAttachment.SCHOOL: SchoolParent,
    MediaAttachment.PRIMARY: PrimaryLevelParent,
    MediaAttachment.BASIC: BasicLevelParent,
    MediaAttachment.SECONDARY: SecondaryLevelParent,
}


def _normalize_attached_id(value: Union[int, float, str]) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def media_parent_for(attached_to: MediaAttachment, attached_id: Union[int, float, str]) -> MediaParent:
    return _PARENT_TYPES[attached_to](_normalize_attached_id(attached_id))


@dataclass(frozen=True)
class MediaDraft:
    media_url: str
    type: MediaType
    parent: MediaParent
    description: Optional[str] = None

    def to_row(self) -> Media:
        return Media(
            media_url=self.media_url,
            description=self.description,
            type=self.type,
            attached_to=self.parent.attachment,
            **self.parent.foreign_key,
        )


def _describe_first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def parse_media_items(body: Any) -> List[MediaDraft]:
    """Validate every item before anything is written; the first bad item rejects the batch."""

    if not isinstance(body, list):
        raise HTTPException(status_code=400, detail="Invalid input: not an array")

    drafts: List[MediaDraft] = []
    for index, item in enumerate(body):
        try:
            payload = MediaItemPayload.model_validate(item)
        except ValidationError as exc:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid media item at index {index}: {_describe_first_error(exc)}",
            ) from exc

        media_url = payload.media_url.strip()
        attached_id = _normalize_attached_id(payload.attached_id)
        if not media_url or not attached_id:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid media item at index {index}: mediaUrl and attachedId are required",
            )

        drafts.append(
            MediaDraft(
                media_url=media_url,
                type=payload.type,
                parent=media_parent_for(payload.attached_to, attached_id),
                description=sanitize_string(payload.description) or None,
            )
        )

    if not drafts:
        raise HTTPException(status_code=400, detail="No valid media items")
    return drafts


def create_media_batch(db: Session, drafts: List[MediaDraft]) -> int:
    rows = [draft.to_row() for draft in drafts]
    db.add_all(rows)
    db.commit()
    logger.info("Stored %d media item(s)", len(rows))
    return len(rows)


__all__ = [
    "BasicLevelParent",
    "MediaDraft",
    "MediaParent",
    "PrimaryLevelParent",
    "SchoolParent",
    "SecondaryLevelParent",
    "create_media_batch",
    "media_parent_for",
    "parse_media_items",
]
