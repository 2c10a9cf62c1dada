"""
Newsroom - Test Configuration

Pytest fixtures for the API test suite.
Provides a fresh in-memory database per test, a client bound to it,
and one seeded account per role.
"""

import os

# Settings are read at import time; these must be set before newsroom loads
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret-0123456789")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret-9876543210")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_WORK_FACTOR", "4")
os.environ.setdefault("APP_ENV", "test")

from typing import Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from newsroom.app import app
from newsroom.auth import accounts
from newsroom.auth.models import Role, User
from newsroom.database import get_engine, get_session_factory, init_db


API = "/api/v1"
PASSWORD = "Password123"


@pytest.fixture(scope="function")
def test_engine():
    """Create a fresh test database engine for each test."""
    engine = get_engine("sqlite://")
    init_db(engine)

    yield engine

    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a database session for testing."""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(scope="function")
def client(test_engine) -> Generator[TestClient, None, None]:
    """Create a test client with fresh database."""
    with TestClient(app) as c:
        # The lifespan installs its own engine; point requests at the test one
        app.state.db_engine = test_engine
        app.state.db_session_factory = get_session_factory(test_engine)
        yield c


@pytest.fixture(scope="function")
def make_user(db_session):
    """Factory for accounts with a known password."""

    def _make(username: str, role: Role = Role.USER, blocked: bool = False) -> User:
        user = accounts.create_account(
            db_session,
            username=username,
            email=f"{username}@test.com",
            full_name=username.title(),
            password=PASSWORD,
            role=role,
        )
        if blocked:
            user = accounts.set_blocked(db_session, user.id, True)
        return user

    return _make


@pytest.fixture(scope="function")
def test_admin(make_user) -> User:
    return make_user("admin", Role.ADMIN)


@pytest.fixture(scope="function")
def test_editor(make_user) -> User:
    return make_user("editor", Role.EDITOR)


@pytest.fixture(scope="function")
def test_reporter(make_user) -> User:
    return make_user("reporter", Role.REPORTER)


@pytest.fixture(scope="function")
def test_reader(make_user) -> User:
    return make_user("reader", Role.USER)


def login_user(client: TestClient, username: str, password: str = PASSWORD) -> Optional[dict]:
    """Helper function to login and return the response data."""
    response = client.post(f"{API}/users/login", json={"username": username, "password": password})
    return response.json()["data"] if response.status_code == 200 else None


def auth_headers(access_token: str) -> dict:
    """Create authorization headers for authenticated requests."""
    return {"Authorization": f"Bearer {access_token}"}


def headers_for(client: TestClient, username: str) -> dict:
    """Log in and return bearer headers in one step."""
    data = login_user(client, username)
    assert data is not None, f"login failed for {username}"
    return auth_headers(data["access_token"])
