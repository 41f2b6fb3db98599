import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure predictable environment variables for tests before importing the app.
BASE_DIR = Path(__file__).resolve().parents[1]
TEST_DB_PATH = BASE_DIR / "test.db"

if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DATABASE_URL", f"sqlite:///{TEST_DB_PATH}")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("API_AUTH_TOKEN", "test-api-key")
os.environ.setdefault("ADMIN_EMAILS", "admin@example.com, ops@example.com")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "test")

import pinmap.main as main  # noqa: E402  (import after env vars are set)
from pinmap.database import SessionLocal  # noqa: E402
from pinmap.models.location_update import LocationUpdate  # noqa: E402
from pinmap.models.user import User  # noqa: E402

API_KEY = os.environ["API_AUTH_TOKEN"]
ADMIN_EMAIL = "admin@example.com"


@pytest.fixture(autouse=True)
def clean_database():
    session = SessionLocal()
    try:
        session.query(LocationUpdate).delete()
        session.query(User).delete()
        session.commit()
    finally:
        session.close()
    yield


@pytest.fixture()
def client(monkeypatch):
    """Provide a TestClient with startup seeding patched out for isolation."""
    monkeypatch.setattr(main, "run_seed", lambda: None)

    with TestClient(main.app) as test_client:
        yield test_client


@pytest.fixture()
def register(client):
    """Register a user and return ``(user, token)``."""

    def _register(name="Alice", email="alice@example.com", password="secret1"):
        response = client.post("/auth/register", json={"name": name, "email": email, "password": password})
        assert response.status_code == 201, response.json()
        data = response.json()["data"]
        return data["user"], data["token"]

    return _register


@pytest.fixture()
def admin(register):
    return register(name="Admin", email=ADMIN_EMAIL, password="admin123")


def bearer(credential: str) -> dict:
    return {"Authorization": f"Bearer {credential}"}
