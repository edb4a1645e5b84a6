"""Request authentication dependencies and the employee provisioning router."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import policy
from .database import get_db
from .firebase_service import (
    AccountExistsError,
    IdentityProviderError,
    IdentityUser,
    InvalidTokenError,
    get_identity_provider,
)
from .models import Role, User, UserRole
from .policy import Caller
from .sanitize import sanitize_email
from .schemas import EmployeeCreatePayload

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def _extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise HTTPException(status_code=401, detail="Missing or invalid authorization header")

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Missing or invalid authorization header")
    return token


def ensure_user_record(db: Session, identity: IdentityUser) -> User:
    """Create or refresh the local mirror of an identity-provider account."""

    user = db.get(User, identity.uid)
    if user is None:
        user = User(id=identity.uid, email=identity.email)
        db.add(user)
    elif identity.email and user.email != identity.email:
        user.email = identity.email

    try:
        db.commit()
    except IntegrityError:
        # A concurrent first request for the same account inserted the row first.
        db.rollback()
        user = db.get(User, identity.uid)
        if user is None:
            raise
        logger.info("User %s was mirrored by a concurrent request", identity.uid)
    return user


def lookup_role(db: Session, user_id: str) -> Optional[Role]:
    row = db.get(UserRole, user_id)
    return row.role if row is not None else None


def _resolve_caller(authorization: Optional[str], db: Session, provider: Any) -> Caller:
    token = _extract_bearer_token(authorization)

    try:
        identity = provider.verify_token(token)
    except InvalidTokenError as exc:
        logger.info("Rejected bearer token: %s", exc)
        raise HTTPException(status_code=401, detail="Invalid or expired token") from exc

    try:
        ensure_user_record(db, identity)
        role = lookup_role(db, identity.uid)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to load user %s during authentication", identity.uid)
        raise HTTPException(status_code=500, detail="Authentication failed") from exc

    return Caller(user_id=identity.uid, email=identity.email, role=role)


def authenticate(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    provider: Any = Depends(get_identity_provider),
) -> Caller:
    return _resolve_caller(authorization, db, provider)


def optional_authenticate(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    provider: Any = Depends(get_identity_provider),
) -> Caller:
    """Like :func:`authenticate`, but an absent header yields an anonymous caller."""

    if not authorization:
        return Caller.anonymous()
    return _resolve_caller(authorization, db, provider)


def require_auth(caller: Caller = Depends(authenticate)) -> Caller:
    return policy.ensure_role_assigned(caller)


def require_admin(caller: Caller = Depends(authenticate)) -> Caller:
    return policy.ensure_admin(caller)


def _remove_orphaned_account(provider: Any, uid: str) -> None:
    try:
        provider.delete_account(uid)
    except IdentityProviderError:
        logger.exception("Could not remove identity account %s; it is now orphaned", uid)
    else:
        logger.warning("Removed identity account %s after failed role assignment", uid)


def create_auth_router() -> APIRouter:
    """Create and return a router exposing account provisioning endpoints."""

    router = APIRouter(prefix="/auth", tags=["auth"])

    @router.post("/create-employee", status_code=201)
    def create_employee(
        payload: EmployeeCreatePayload,
        caller: Caller = Depends(require_admin),
        db: Session = Depends(get_db),
        provider: Any = Depends(get_identity_provider),
    ) -> Dict[str, Any]:
        """Provision a pre-verified account and assign it a role."""

        if not caller.is_admin:
            raise HTTPException(status_code=403, detail="Admin access required")

        email = sanitize_email(str(payload.email))
        try:
            account = provider.create_account(email, payload.password)
        except AccountExistsError as exc:
            raise HTTPException(status_code=409, detail="User with this email already exists") from exc
        except IdentityProviderError as exc:
            logger.error("Identity provider rejected account for %s: %s", email, exc)
            raise HTTPException(status_code=400, detail="Failed to create user account") from exc

        try:
            if db.get(User, account.uid) is None:
                db.add(User(id=account.uid, email=account.email or email))
            db.add(UserRole(user_id=account.uid, role=payload.role))
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Failed to assign role to new account %s", account.uid)
            _remove_orphaned_account(provider, account.uid)
            raise HTTPException(status_code=500, detail="Failed to assign role to new user") from exc

        logger.info("Admin %s provisioned %s account %s", caller.user_id, payload.role.value, account.uid)
        return {
            "success": True,
            "user": {
                "id": account.uid,
                "email": account.email or email,
                "role": payload.role.value,
            },
        }

    return router


__all__ = [
    "authenticate",
    "create_auth_router",
    "ensure_user_record",
    "lookup_role",
    "optional_authenticate",
    "require_admin",
    "require_auth",
]
