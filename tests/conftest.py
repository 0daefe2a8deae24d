"""
Hostel Tracker - test configuration and fixtures
"""
import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Set testing environment before the app reads its config
os.environ["JWT_SECRET"] = "test-jwt-secret-key-for-testing"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DATABASE_URL"] = "sqlite://"

from hostel_tracker.db.db import get_session, init_db  # noqa: E402
from hostel_tracker.main import app  # noqa: E402
from hostel_tracker.models.user import User  # noqa: E402
from hostel_tracker.services.policy import Actor  # noqa: E402
from hostel_tracker.utils.auth_helper import create_access_token, hash_password  # noqa: E402
from hostel_tracker.utils.form_validator import ValidatedCreateIssue, ValidatedCreateItem  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make_user(role="student", hostel="H1", block="A", room_number="101", name=None):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"{role.title()} {n}",
            email=f"{role}{n}@example.com",
            password_hash=hash_password("password123"),
            phone=f"98765{n:05d}",
            role=role,
            hostel=hostel,
            block=block,
            room_number=room_number,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_actor(make_user):
    def _make_actor(role="student", **kwargs):
        return Actor.from_user(make_user(role=role, **kwargs))

    return _make_actor


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


def issue_form(**overrides) -> ValidatedCreateIssue:
    data = {
        "title": "Leaking tap",
        "description": "The tap in the second floor washroom keeps leaking.",
        "category": "plumbing",
        "priority": "medium",
        "is_public": True,
    }
    data.update(overrides)
    return ValidatedCreateIssue(**data)


def item_form(**overrides) -> ValidatedCreateItem:
    data = {
        "item_name": "Blue water bottle",
        "description": "Steel bottle with a dented cap",
        "location": "Mess hall",
        "status": "lost",
    }
    data.update(overrides)
    return ValidatedCreateItem(**data)
