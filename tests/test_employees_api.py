from sqlalchemy import select

from school_directory.app.models import Role, User, UserRole

ENDPOINT = "/api/auth/create-employee"


def _payload(**overrides):
    payload = {"email": "New.Hire@Schools.GE", "password": "s3cret-pass", "role": "employee"}
    payload.update(overrides)
    return payload


def test_admin_provisions_employee(client, auth_header, database, identity_provider):
    response = client.post(ENDPOINT, json=_payload(), headers=auth_header("admin-token"))

    assert response.status_code == 201
    assert response.json() == {
        "success": True,
        "user": {"id": "new-user-1", "email": "new.hire@schools.ge", "role": "employee"},
    }
    assert identity_provider.accounts == {"new.hire@schools.ge": "new-user-1"}

    with database.session_factory() as session:
        assert session.get(UserRole, "new-user-1").role == Role.EMPLOYEE
        assert session.get(User, "new-user-1").email == "new.hire@schools.ge"


def test_admin_can_provision_admin(client, auth_header, database):
    response = client.post(ENDPOINT, json=_payload(role="admin"), headers=auth_header("admin-token"))

    assert response.status_code == 201
    with database.session_factory() as session:
        assert session.get(UserRole, "new-user-1").role == Role.ADMIN


def test_new_employee_can_create_schools(client, auth_header, identity_provider, school_payload):
    client.post(ENDPOINT, json=_payload(), headers=auth_header("admin-token"))
    identity_provider.register("new-hire-token", "new-user-1", "new.hire@schools.ge")

    response = client.post("/api/schools", json=school_payload(), headers=auth_header("new-hire-token"))

    assert response.status_code == 201
    assert response.json()["createdBy"] == "new-user-1"


def test_duplicate_account_conflicts(client, auth_header):
    first = client.post(ENDPOINT, json=_payload(), headers=auth_header("admin-token"))
    second = client.post(ENDPOINT, json=_payload(), headers=auth_header("admin-token"))

    assert first.status_code == 201
    assert second.status_code == 409


def test_employee_cannot_provision(client, auth_header, identity_provider):
    response = client.post(ENDPOINT, json=_payload(), headers=auth_header("employee-token"))

    assert response.status_code == 403
    assert response.json()["detail"] == "Admin access required"
    assert identity_provider.accounts == {}


def test_provisioning_requires_token(client):
    response = client.post(ENDPOINT, json=_payload())

    assert response.status_code == 401


def test_provisioning_validates_body(client, auth_header):
    headers = auth_header("admin-token")

    assert client.post(ENDPOINT, json=_payload(role="manager"), headers=headers).status_code == 400
    assert client.post(ENDPOINT, json=_payload(email="not-an-email"), headers=headers).status_code == 400
    assert client.post(ENDPOINT, json=_payload(password=""), headers=headers).status_code == 400
    assert client.post(ENDPOINT, json={"role": "employee"}, headers=headers).status_code == 400


def test_failed_role_write_removes_identity_account(client, auth_header, database, identity_provider):
    with database.session_factory() as session:
        session.add(UserRole(user_id="new-user-1", role=Role.EMPLOYEE))
        session.commit()

    response = client.post(ENDPOINT, json=_payload(), headers=auth_header("admin-token"))

    assert response.status_code == 500
    assert identity_provider.deleted == ["new-user-1"]
    with database.session_factory() as session:
        assert session.scalars(select(User).where(User.id == "new-user-1")).first() is None


def test_failed_compensation_still_reports_error(client, auth_header, database, identity_provider, caplog):
    identity_provider.fail_delete = True
    with database.session_factory() as session:
        session.add(UserRole(user_id="new-user-1", role=Role.EMPLOYEE))
        session.commit()

    response = client.post(ENDPOINT, json=_payload(), headers=auth_header("admin-token"))

    assert response.status_code == 500
    assert identity_provider.deleted == []
    assert "orphaned" in caplog.text
