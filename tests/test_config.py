import pytest

from api import create_app
from api.config import DevelopmentConfig, ProductionConfig, TestingConfig, get_config


def test_get_config_by_name():
    assert get_config("prod") is ProductionConfig
    assert get_config("testing") is TestingConfig
    assert get_config("dev") is DevelopmentConfig


def test_refresh_and_access_expiries_are_configurable(tmp_path):
    app = create_app(
        "testing",
        {"DATABASE_URL": f"sqlite:///{tmp_path / 'cfg.db'}", "MAX_SESSIONS_PER_USER": 2},
    )
    manager = app.extensions["session_manager"]
    assert manager.codec.access_expires == TestingConfig.JWT_ACCESS_EXPIRES
    assert manager.max_sessions == 2


def test_production_refuses_default_secrets(tmp_path):
    with pytest.raises(RuntimeError):
        create_app(
            "production",
            {
                "DATABASE_URL": f"sqlite:///{tmp_path / 'prod.db'}",
                "JWT_ACCESS_SECRET": "dev-access-secret-change-me",
                "JWT_REFRESH_SECRET": "dev-refresh-secret-change-me",
            },
        )


def test_auth_rate_limit_defaults():
    assert DevelopmentConfig.AUTH_RATE_LIMIT == "5 per 15 minutes"
    assert DevelopmentConfig.RATELIMIT_ENABLED is True
    assert TestingConfig.RATELIMIT_ENABLED is False
