from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import media
from ..database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["media"])


@router.post("/media", status_code=201)
def create_media(body: Any = Body(...), db: Session = Depends(get_db)) -> Dict[str, Any]:
    drafts = media.parse_media_items(body)
    try:
        count = media.create_media_batch(db, drafts)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to store %d media item(s)", len(drafts))
        raise HTTPException(status_code=500, detail="Failed to save media") from exc
    return {"message": "Media saved successfully", "count": count}
