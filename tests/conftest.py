import os
import sys
from pathlib import Path

# Configure the app for tests before anything imports app.core.config or
# app.database: in-memory SQLite, throwaway secrets, cheap bcrypt, no SMTP
# and no auth rate limit (tests that need one install their own limiter).
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-access-secret-do-not-use-in-production"
os.environ["REFRESH_SECRET_KEY"] = "test-refresh-secret-do-not-use-in-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SMTP_HOST"] = ""
os.environ["AUTH_RATE_LIMIT"] = "0"
os.environ["REDIS_URL"] = ""
os.environ["ENVIRONMENT"] = "test"

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.database import Base, SessionLocal, engine  # noqa: E402
from app import models  # noqa: E402,F401
from main import app  # noqa: E402

PASSWORD = "Aa1!aaaa"


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    """Create a test client for the API."""
    return TestClient(app)


@pytest.fixture
def register(client):
    """Register through the API; returns the response JSON."""
    def _register(email, password=PASSWORD, **extra):
        response = client.post(
            "/api/auth/register",
            json={"email": email, "password": password, **extra},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


def bearer(access_token):
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def auth_headers():
    return bearer
