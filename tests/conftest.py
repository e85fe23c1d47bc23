"""Shared fixtures: an app on in-memory SQLite with a temporary upload dir."""

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app

TEST_SECRET = "test-secret"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="sqlite://",
        jwt_secret=TEST_SECRET,
        upload_dir=str(tmp_path / "uploads"),
        bcrypt_rounds=4,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Registers a user through the API and returns the response body."""

    def _register(name="Ada", email="ada@example.com", password="s3cret-pass"):
        response = client.post(
            "/api/auth/register", json={"name": name, "email": email, "password": password}
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def auth_headers(register):
    token = register()["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_headers(register):
    token = register(name="Grace", email="grace@example.com")["token"]
    return {"Authorization": f"Bearer {token}"}
