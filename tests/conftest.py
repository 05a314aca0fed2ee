"""
Pytest configuration and fixtures for HeartSpace API tests.
"""
import os
import tempfile

_MEDIA_ROOT = tempfile.mkdtemp(prefix="heartspace-media-")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("MEDIA_ROOT", _MEDIA_ROOT)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from heartspace.database import Base, configure_sqlite, get_db
from heartspace.limiter import limiter
from heartspace.main import app
from heartspace.models.user import User
from heartspace.auth import get_password_hash, create_access_token
from heartspace.storage import LocalObjectStore, get_object_store

# Disable rate limiting for tests
limiter.enabled = False

# Use in-memory SQLite for tests with shared connection
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = configure_sqlite(
    create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Global session for sharing across requests
_test_session = None


def get_test_db():
    """Get the shared test database session."""
    yield _test_session


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    global _test_session

    Base.metadata.create_all(bind=engine)
    _test_session = TestingSessionLocal()

    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_object_store] = lambda: LocalObjectStore(_MEDIA_ROOT, "/media")

    yield _test_session

    app.dependency_overrides.clear()
    _test_session.close()
    _test_session = None

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Create a test client."""
    with TestClient(app) as c:
        yield c


@pytest.fixture(scope="function")
def make_user(db):
    """Factory creating users with a known password."""

    def _make_user(email: str, name: str, password: str = "testpassword123") -> User:
        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            display_name=name,
            is_active=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture(scope="function")
def test_user(make_user):
    """Create a test user."""
    return make_user("test@example.com", "Test User")


@pytest.fixture(scope="function")
def other_user(make_user):
    return make_user("other@example.com", "Other User")


def headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture(scope="function")
def auth_headers(test_user):
    """Get auth headers for the test user."""
    return headers_for(test_user)


@pytest.fixture(scope="function")
def other_headers(other_user):
    return headers_for(other_user)


@pytest.fixture(scope="function")
def auth_for():
    """Build auth headers for any user."""
    return headers_for
