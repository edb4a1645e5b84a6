from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import school_profiles
from ..auth import optional_authenticate, require_auth
from ..config import _parse_bool
from ..database import get_db
from ..policy import Caller
from ..schemas import SchoolCreatePayload, SchoolUpdatePayload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["schools"])


@contextmanager
def _database_errors(db: Session, action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Database error while trying to %s", action)
        raise HTTPException(status_code=500, detail=f"Failed to {action}") from exc


@router.get("/schools")
def list_schools(
    page: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None, alias="pageSize"),
    lightweight: Optional[str] = Query(None),
    caller: Caller = Depends(optional_authenticate),
    db: Session = Depends(get_db),
):
    with _database_errors(db, "fetch schools"):
        return school_profiles.list_schools(
            db,
            caller,
            page=page,
            page_size=page_size,
            lightweight=_parse_bool(lightweight),
        )


@router.get("/schools/{school_id}")
def get_school(
    school_id: str,
    caller: Caller = Depends(optional_authenticate),
    db: Session = Depends(get_db),
):
    with _database_errors(db, "fetch school"):
        return school_profiles.get_school(db, caller, school_id)


@router.post("/schools", status_code=201)
def create_school(
    payload: SchoolCreatePayload,
    caller: Caller = Depends(require_auth),
    db: Session = Depends(get_db),
):
    with _database_errors(db, "create school"):
        return school_profiles.create_school_profile(db, payload, caller)


@router.put("/schools/{school_id}")
def update_school(
    school_id: str,
    payload: SchoolUpdatePayload,
    caller: Caller = Depends(require_auth),
    db: Session = Depends(get_db),
):
    with _database_errors(db, "update school"):
        return school_profiles.update_school_profile(db, school_id, payload, caller)


@router.delete("/schools/{school_id}")
def delete_school(
    school_id: str,
    caller: Caller = Depends(require_auth),
    db: Session = Depends(get_db),
):
    with _database_errors(db, "delete school"):
        return school_profiles.delete_school_profile(db, school_id, caller)
