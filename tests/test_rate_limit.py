from api import create_app
from models import storage
from tests.conftest import ALICE, login, register

WRONG = "Wrong123!@#"


def test_sixth_failed_login_is_rejected(limited_client):
    register(limited_client)

    for _ in range(5):
        assert login(limited_client, password=WRONG).status_code == 401

    response = login(limited_client, password=WRONG)
    assert response.status_code == 429
    body = response.get_json()
    assert body["status"] == 429
    assert body["error"] == "TOO_MANY_REQUESTS"
    assert "Too many authentication attempts" in body["message"]

    # the correct password is refused too until the window passes
    assert login(limited_client).status_code == 429


def test_successful_logins_are_not_counted(limited_client):
    register(limited_client)

    for _ in range(8):
        assert login(limited_client).status_code == 200
    assert login(limited_client, password=WRONG).status_code == 401


def test_register_and_login_share_the_budget(limited_client):
    for _ in range(3):
        response = limited_client.post(
            "/api/v1/auth/register", json=dict(ALICE, email="not-an-email")
        )
        assert response.status_code == 400
    for _ in range(2):
        assert login(limited_client, password=WRONG).status_code == 401

    response = limited_client.post("/api/v1/auth/register", json=ALICE)
    assert response.status_code == 429


def test_refresh_is_not_rate_limited(limited_client):
    register(limited_client)
    for _ in range(5):
        login(limited_client, password=WRONG)

    response = limited_client.post("/api/v1/auth/refresh", json={"refresh_token": "garbage"})
    assert response.status_code == 401


def test_auth_rate_limit_is_configurable(tmp_path):
    app = create_app(
        "testing",
        {
            "DATABASE_URL": f"sqlite:///{tmp_path / 'strict.db'}",
            "RATELIMIT_ENABLED": True,
            "AUTH_RATE_LIMIT": "2 per minute",
        },
    )
    client = app.test_client()
    try:
        assert login(client, password=WRONG).status_code == 401
        assert login(client, password=WRONG).status_code == 401
        assert login(client, password=WRONG).status_code == 429
    finally:
        storage.close()
        storage.engine.dispose()
