import pytest
from fastapi import HTTPException

from school_directory.app import policy
from school_directory.app.models import Role
from school_directory.app.policy import Caller, OwnerFilter

ADMIN = Caller(user_id="admin", email="admin@test", role=Role.ADMIN)
EMPLOYEE = Caller(user_id="emp", email="emp@test", role=Role.EMPLOYEE)
NO_ROLE = Caller(user_id="visitor", email="visitor@test")
ANONYMOUS = Caller.anonymous()


@pytest.mark.parametrize("caller", [ANONYMOUS, NO_ROLE, ADMIN])
def test_non_employees_see_every_school(caller):
    assert policy.visibility_filter(caller) == OwnerFilter()
    assert policy.visibility_filter(caller).matches_all


def test_employees_only_see_their_own_schools():
    owner_filter = policy.visibility_filter(EMPLOYEE)

    assert owner_filter == OwnerFilter(owner_id="emp")
    assert owner_filter.allows("emp")
    assert not owner_filter.allows("someone-else")


@pytest.mark.parametrize(
    "caller, owner_id, expected",
    [
        (ADMIN, "emp", True),
        (EMPLOYEE, "emp", True),
        (EMPLOYEE, "other", False),
        (NO_ROLE, "visitor", False),
        (ANONYMOUS, None, False),
    ],
)
def test_can_modify(caller, owner_id, expected):
    assert policy.can_modify(caller, owner_id) is expected


def test_can_view_blocks_only_foreign_employees():
    assert policy.can_view(ANONYMOUS, "emp")
    assert policy.can_view(ADMIN, "emp")
    assert policy.can_view(EMPLOYEE, "emp")
    assert not policy.can_view(EMPLOYEE, "other")


def test_ensure_role_assigned():
    assert policy.ensure_role_assigned(EMPLOYEE) is EMPLOYEE

    with pytest.raises(HTTPException) as excinfo:
        policy.ensure_role_assigned(NO_ROLE)

    assert excinfo.value.status_code == 403
    assert excinfo.value.detail == "User role not assigned"


@pytest.mark.parametrize("caller", [EMPLOYEE, NO_ROLE])
def test_ensure_admin_rejects_non_admins(caller):
    with pytest.raises(HTTPException) as excinfo:
        policy.ensure_admin(caller)

    assert excinfo.value.status_code == 403
    assert excinfo.value.detail == "Admin access required"


def test_ensure_admin_accepts_admin():
    assert policy.ensure_admin(ADMIN) is ADMIN
