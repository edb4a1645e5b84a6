"""Authorization rules for school records.

Every rule here is a pure function of the calling identity and, where
relevant, the record owner.  Routes and services translate the results into
queries or HTTP errors; nothing in this module touches the database.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException

from .models import Role


@dataclass(frozen=True)
class Caller:
    """The identity attached to a request."""

    user_id: Optional[str] = None
    email: Optional[str] = None
    role: Optional[Role] = None

    @classmethod
    def anonymous(cls) -> "Caller":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == Role.ADMIN

    @property
    def is_employee(self) -> bool:
        return self.is_authenticated and self.role == Role.EMPLOYEE


@dataclass(frozen=True)
class OwnerFilter:
    """Declarative visibility predicate; ``owner_id=None`` matches every record."""

    owner_id: Optional[str] = None

    @property
    def matches_all(self) -> bool:
        return self.owner_id is None

    def allows(self, owner_id: Optional[str]) -> bool:
        return self.matches_all or owner_id == self.owner_id


def visibility_filter(caller: Caller) -> OwnerFilter:
    """Employees list their own schools; everyone else lists every school."""

    if caller.is_employee:
        return OwnerFilter(owner_id=caller.user_id)
    return OwnerFilter()


def can_view(caller: Caller, owner_id: Optional[str]) -> bool:
    return visibility_filter(caller).allows(owner_id)


def can_modify(caller: Caller, owner_id: Optional[str]) -> bool:
    if caller.is_admin:
        return True
    return caller.is_employee and owner_id == caller.user_id


def ensure_role_assigned(caller: Caller) -> Caller:
    if caller.role is None:
        raise HTTPException(status_code=403, detail="User role not assigned")
    return caller


def ensure_admin(caller: Caller) -> Caller:
    if not caller.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return caller


__all__ = [
    "Caller",
    "OwnerFilter",
    "can_modify",
    "can_view",
    "ensure_admin",
    "ensure_role_assigned",
    "visibility_filter",
]
