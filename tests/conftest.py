"""Pytest configuration and fixtures."""

import os
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src import models  # noqa: F401
from src.database import Base, get_db
from src.main import app


class AuthHeaders(dict):
    """Dict subclass that also stores user_id and email."""

    def __init__(self, *args, user_id: int | None = None, email: str | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.user_id = user_id
        self.email = email


# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace("/sake_shelf", "/sake_shelf_test")
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        # Create test database if it doesn't exist
        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(scope="function", autouse=True)
def photo_delay():
    """Keep photo cleanup off the Celery broker; tests assert on the mock instead."""
    with patch("src.tasks.cleanup.delete_photo.delay") as mock_delay:
        yield mock_delay


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client, email: str, display_name: str) -> AuthHeaders:
    """Register a user and return their auth headers."""
    response = client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": "testpass123", "display_name": display_name},
    )
    assert response.status_code == 201
    data = response.json()
    return AuthHeaders(
        {"Authorization": f"Bearer {data['access_token']}"},
        user_id=data["user"]["id"],
        email=email,
    )


@pytest.fixture
def auth_headers(client):
    """Create a user and return auth headers with user info."""
    return register(client, "test@example.com", "Test User")


@pytest.fixture
def friend_headers(client):
    """A second user, not yet connected to the first."""
    return register(client, "friend@example.com", "Friend")


@pytest.fixture
def stranger_headers(client):
    """A third user."""
    return register(client, "stranger@example.com", "Stranger")


@pytest.fixture
def make_friends(client):
    """Connect two users through an invite code."""

    def _make_friends(owner: AuthHeaders, joiner: AuthHeaders) -> None:
        code = client.post("/api/v1/shares/invite", headers=owner).json()["code"]
        response = client.post("/api/v1/shares/join", headers=joiner, json={"code": code})
        assert response.status_code == 200

    return _make_friends


@pytest.fixture
def add_entry(client):
    """Save a new bottle with the given name and return the created entry."""

    def _add_entry(headers: AuthHeaders, name: str, rating: int, **kwargs) -> dict:
        payload = {
            "alcohol_info": {"name": name, "type": kwargs.pop("type", "日本酒")},
            "rating": rating,
            **kwargs,
        }
        response = client.post("/api/v1/collection", headers=headers, json=payload)
        assert response.status_code == 201, response.text
        return response.json()

    return _add_entry
