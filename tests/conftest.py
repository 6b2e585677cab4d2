"""Shared test fixtures for the DeepVest test suite.

Tests run against a throwaway SQLite file created for the session. Every
table is emptied before each test, so tests never see each other's rows.
The app creates its tables on import.
"""

import os
import tempfile
import uuid

# Point the app at the test database before any app imports.
_DB_DIR = tempfile.mkdtemp(prefix="deepvest-tests-")
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}",
)
os.environ["ENVIRONMENT"] = "test"
os.environ["WALLET_VERIFIER"] = "accept_all"
os.environ["WALLET_PROVIDER_SECRET"] = "test-wallet-secret"
os.environ["LOG_FORMAT"] = "text"
os.environ["AI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient
from passlib.hash import bcrypt

from deepvest.core.auth import AuthContext
from deepvest.core.config import settings
from deepvest.core.token_factory import create_token
from deepvest.database import Base, SessionLocal, engine, get_db
from deepvest.main import app
from deepvest.middleware.request_context import _rate_buckets
from deepvest.models import User


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty every table before each test.

    Runs before the test (not after) so a failing test leaves its rows
    behind for inspection.
    """
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    _rate_buckets.clear()  # Reset rate limiter so tests don't hit 429
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_user(db, email: str = None, display_name: str = "Test User", password: str = None) -> User:
    """Insert an active user directly."""
    user = User(
        user_id=str(uuid.uuid4()),
        display_name=display_name,
        email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
        password_hash=bcrypt.hash(password) if password else None,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_for(user: User) -> AuthContext:
    return AuthContext(user_id=user.user_id, email=user.email)


def headers_for(user: User) -> dict:
    """Bearer headers carrying a valid session token for *user*."""
    token = create_token(
        subject=user.user_id,
        secret=settings.jwt_secret_key,
        claims={"email": user.email},
    )
    return {"Authorization": f"Bearer {token}"}


def make_project(
    slug: str = "acme",
    name: str = "Acme Solar",
    description: str = "Community-owned solar installations.",
    **overrides,
) -> dict:
    """Factory for project creation payloads."""
    payload = {
        "name": name,
        "slug": slug,
        "description": description,
        "status": "idea",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def owner(db) -> User:
    return make_user(db, email="alice@example.com", display_name="Alice")


@pytest.fixture()
def other(db) -> User:
    return make_user(db, email="bob@example.com", display_name="Bob")
