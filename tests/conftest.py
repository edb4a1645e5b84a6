from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from school_directory.app.config import Settings
from school_directory.app.database import Database
from school_directory.app.firebase_service import (
    AccountExistsError,
    IdentityProviderError,
    IdentityUser,
    InvalidTokenError,
)
from school_directory.app.models import Role, User, UserRole
from school_directory.server import create_app

ADMIN_ID = "admin-uid"
EMPLOYEE_ID = "employee-uid"
OTHER_EMPLOYEE_ID = "other-employee-uid"
NO_ROLE_ID = "no-role-uid"


class FakeIdentityProvider:
    """In-memory stand-in for the Firebase-backed identity provider."""

    def __init__(self) -> None:
        self.tokens: Dict[str, IdentityUser] = {}
        self.accounts: Dict[str, str] = {}
        self.deleted: List[str] = []
        self.fail_delete = False

    def register(self, token: str, uid: str, email: Optional[str] = None) -> None:
        self.tokens[token] = IdentityUser(uid=uid, email=email)

    def verify_token(self, token: str) -> IdentityUser:
        try:
            return self.tokens[token]
        except KeyError:
            raise InvalidTokenError("Unknown token") from None

    def create_account(self, email: str, password: str) -> IdentityUser:
        if email in self.accounts:
            raise AccountExistsError(email)
        uid = f"new-user-{len(self.accounts) + 1}"
        self.accounts[email] = uid
        return IdentityUser(uid=uid, email=email)

    def delete_account(self, uid: str) -> None:
        if self.fail_delete:
            raise IdentityProviderError("delete failed")
        self.deleted.append(uid)


@pytest.fixture
def database():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db = Database(engine)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def identity_provider(database):
    provider = FakeIdentityProvider()
    seeds = [
        ("admin-token", ADMIN_ID, "admin@schools.test", Role.ADMIN),
        ("employee-token", EMPLOYEE_ID, "employee@schools.test", Role.EMPLOYEE),
        ("other-employee-token", OTHER_EMPLOYEE_ID, "other@schools.test", Role.EMPLOYEE),
        ("no-role-token", NO_ROLE_ID, "visitor@schools.test", None),
    ]
    with database.session_factory() as session:
        for token, uid, email, role in seeds:
            provider.register(token, uid, email)
            session.add(User(id=uid, email=email))
            if role is not None:
                session.add(UserRole(user_id=uid, role=role))
        session.commit()
    return provider


@pytest.fixture
def app(database, identity_provider):
    settings = Settings(cors_origins=["*"], auto_create_tables=False)
    return create_app(settings, database=database, identity_provider=identity_provider)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_header():
    def _header(token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    return _header


def _level(**overrides: Any) -> Dict[str, Any]:
    level = {
        "price": "4500",
        "duration": "6 years",
        "numberOfStudents": 120,
        "meals": True,
        "mealsDescription": "Lunch",
        "schoolUniform": False,
        "mandatorySportsClubs": ["Football", "Chess"],
        "foreignLanguages": "English,German",
        "textbooksPrice": "200",
        "schoolUniformPhotoUrls": [],
    }
    level.update(overrides)
    return level


@pytest.fixture
def school_payload():
    def _payload(name: str = "Tbilisi Green School", **overrides: Any) -> Dict[str, Any]:
        payload = {
            "name": name,
            "phoneNumber1": "555123456",
            "schoolsWebSite": "https://green.school.ge",
            "facebookProfileURL": "https://facebook.com/green",
            "instagramProfileURL": "javascript:alert(1)",
            "director": "  Nino <b>Beridze</b>  ",
            "establishedYear": "1998",
            "graduationRate": 97.5,
            "hasTutor": True,
            "address": {"city": "Tbilisi", "district": "Vake", "street": "Chavchavadze 1", "zipCode": 179},
            "infrastructure": {"buildings": "2", "numberOfFloors": "3", "squareness": "1500.5"},
            "primary": _level(schoolUniformPhotoUrls=["https://cdn.test/uniform.jpg", "ftp://bad"]),
            "basic": _level(),
            "secondary": _level(price=""),
        }
        payload.update(overrides)
        return payload

    return _payload


@pytest.fixture
def create_school(client, auth_header, school_payload):
    def _create(token: str = "employee-token", **payload_overrides: Any) -> Dict[str, Any]:
        response = client.post(
            "/api/schools", json=school_payload(**payload_overrides), headers=auth_header(token)
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create
