"""SQLAlchemy engine and session handling."""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class Database:
    """Owns an engine and the session factory bound to it."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.session_factory = sessionmaker(
            bind=engine, autoflush=False, autocommit=False, expire_on_commit=False
        )

    @classmethod
    def from_url(cls, url: str, *, echo: bool = False, **engine_kwargs: Any) -> "Database":
        engine_kwargs.setdefault("pool_pre_ping", True)
        return cls(create_engine(url, echo=echo, **engine_kwargs))

    def create_all(self) -> None:
        # Import for side effects so every table is registered on ``Base.metadata``.
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.debug("Ensured %d tables exist", len(Base.metadata.tables))

    def session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()


def get_database(request: Request) -> Database:
    database: Optional[Database] = getattr(request.app.state, "database", None)
    if database is None:
        raise RuntimeError("Application was created without a database handle")
    return database


def get_db(request: Request) -> Iterator[Session]:
    yield from get_database(request).session()


__all__ = ["Base", "Database", "get_database", "get_db"]
