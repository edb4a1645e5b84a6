from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from .app import auth
from .app.config import LOG_FORMAT, Settings, load_settings, prepare_cors_settings
from .app.database import Database
from .app.firebase_service import FirebaseIdentityProvider
from .app.routes import media, schools

logger = logging.getLogger(__name__)


def _format_validation_errors(exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append({"field": ".".join(location), "message": error.get("msg", "Invalid value")})
    return errors


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": "Validation failed", "errors": _format_validation_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(
    settings: Optional[Settings] = None,
    *,
    database: Optional[Database] = None,
    identity_provider: Optional[Any] = None,
) -> FastAPI:
    """Build the API application.

    ``database`` and ``identity_provider`` default to handles built from
    ``settings``; tests pass their own.
    """

    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    if database is None:
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is not configured")
        database = Database.from_url(settings.database_url, echo=settings.sql_echo)
    if identity_provider is None:
        identity_provider = FirebaseIdentityProvider.from_settings(settings)

    if settings.auto_create_tables:
        database.create_all()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        database.dispose()

    app = FastAPI(title="School Directory API", lifespan=lifespan)
    app.state.database = database
    app.state.identity_provider = identity_provider

    allowed_origins, origin_regex = prepare_cors_settings(settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_credentials=True,
        allow_origins=allowed_origins,
        allow_origin_regex=origin_regex,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_router = APIRouter(prefix="/api")
    api_router.include_router(schools.router)
    api_router.include_router(media.router)
    api_router.include_router(auth.create_auth_router())
    app.include_router(api_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    _register_exception_handlers(app)

    logger.info("School directory API configured (CORS origins: %s)", allowed_origins or "*")
    return app


__all__ = ["create_app"]
