from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import firebase_admin
from fastapi import HTTPException, Request
from firebase_admin import auth as firebase_auth, credentials
from firebase_admin import exceptions as firebase_exceptions

from .config import Settings

logger = logging.getLogger(__name__)


class IdentityProviderError(Exception):
    """Raised when the identity provider rejects or fails a request."""


class InvalidTokenError(IdentityProviderError):
    pass


class AccountExistsError(IdentityProviderError):
    pass


@dataclass(frozen=True)
class IdentityUser:
    uid: str
    email: Optional[str] = None


def _initialize_firebase_app(settings: Settings) -> firebase_admin.App:
    """Initialize the Firebase Admin SDK using env-based credentials."""

    # Prevent double initialization
    if firebase_admin._apps:
        return firebase_admin.get_app()

    options: Dict[str, Any] = {}
    if settings.firebase_project_id:
        options["projectId"] = settings.firebase_project_id

    if settings.firebase_auth_emulator_host:
        os.environ.setdefault("FIREBASE_AUTH_EMULATOR_HOST", settings.firebase_auth_emulator_host)
        logger.info("Using Firebase Auth emulator at %s", settings.firebase_auth_emulator_host)
        return firebase_admin.initialize_app(options=options or None)

    credentials_path = settings.firebase_credentials_path
    if credentials_path:
        if not os.path.exists(credentials_path):
            raise RuntimeError(f"Firebase credentials not found at {credentials_path}")
        cred = credentials.Certificate(credentials_path)
    else:
        cred = credentials.ApplicationDefault()

    return firebase_admin.initialize_app(cred, options=options or None)


class FirebaseIdentityProvider:
    """Token verification and account management backed by Firebase Auth."""

    def __init__(self, app: firebase_admin.App) -> None:
        self._app = app

    @classmethod
    def from_settings(cls, settings: Settings) -> "FirebaseIdentityProvider":
        return cls(_initialize_firebase_app(settings))

    def verify_token(self, token: str) -> IdentityUser:
        try:
            decoded = firebase_auth.verify_id_token(token, app=self._app)
        except (ValueError, firebase_exceptions.FirebaseError) as exc:
            raise InvalidTokenError("Invalid or expired token") from exc

        uid = decoded.get("uid")
        if not uid:
            raise InvalidTokenError("Token is missing a user id")
        return IdentityUser(uid=uid, email=decoded.get("email"))

    def create_account(self, email: str, password: str) -> IdentityUser:
        try:
            record = firebase_auth.create_user(
                email=email,
                password=password,
                email_verified=True,
                app=self._app,
            )
        except firebase_auth.EmailAlreadyExistsError as exc:
            raise AccountExistsError("An account with this email already exists") from exc
        except (ValueError, firebase_exceptions.FirebaseError) as exc:
            raise IdentityProviderError(str(exc)) from exc
        return IdentityUser(uid=record.uid, email=record.email)

    def delete_account(self, uid: str) -> None:
        try:
            firebase_auth.delete_user(uid, app=self._app)
        except (ValueError, firebase_exceptions.FirebaseError) as exc:
            raise IdentityProviderError(str(exc)) from exc


def get_identity_provider(request: Request):
    provider = getattr(request.app.state, "identity_provider", None)
    if provider is None:
        raise HTTPException(status_code=503, detail="Identity provider is not configured")
    return provider


__all__ = [
    "AccountExistsError",
    "FirebaseIdentityProvider",
    "IdentityProviderError",
    "IdentityUser",
    "InvalidTokenError",
    "get_identity_provider",
]
