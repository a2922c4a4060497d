"""Pytest fixtures: a fresh app and SQLite file database per test."""

import pytest

from api import create_app
from models import storage

ALICE = {
    "username": "alice",
    "email": "alice@x.com",
    "password": "Abc123!@#",
    "first_name": "Alice",
    "last_name": "Liddell",
}

BOB = {
    "username": "bob",
    "email": "bob@x.com",
    "password": "Bob456$%^",
    "first_name": "Bob",
    "last_name": "Builder",
}


@pytest.fixture
def app(tmp_path):
    app = create_app("testing", {"DATABASE_URL": f"sqlite:///{tmp_path / 'test.db'}"})
    yield app
    storage.close()
    storage.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def manager(app):
    """SessionManager used directly, inside one app context."""
    with app.app_context():
        yield app.extensions["session_manager"]


def auth_header(access_token):
    return {"Authorization": f"Bearer {access_token}"}


def register(client, **overrides):
    payload = dict(ALICE, **overrides)
    response = client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 201, response.get_json()
    return response.get_json()["data"]


def login(client, email=ALICE["email"], password=ALICE["password"]):
    return client.post("/api/v1/auth/login", json={"email": email, "password": password})


def set_cookie_header(response, name="refresh_token"):
    for header in response.headers.getlist("Set-Cookie"):
        if header.startswith(f"{name}="):
            return header
    return None


def cookie_value(response, name="refresh_token"):
    header = set_cookie_header(response, name)
    if header is None:
        return None
    return header.split(";", 1)[0].split("=", 1)[1]


@pytest.fixture
def limited_client(tmp_path):
    """Client for an app with the auth rate limit switched on."""
    app = create_app(
        "testing",
        {"DATABASE_URL": f"sqlite:///{tmp_path / 'limited.db'}", "RATELIMIT_ENABLED": True},
    )
    yield app.test_client()
    storage.close()
    storage.engine.dispose()
