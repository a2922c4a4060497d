"""
Environment-aware configuration.
Values come from the process environment (and .env via python-dotenv);
expiries are given in seconds.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present

DEV_ACCESS_SECRET = "dev-access-secret-change-me"
DEV_REFRESH_SECRET = "dev-refresh-secret-change-me"


def _seconds(name: str, default: int) -> timedelta:
    return timedelta(seconds=int(os.getenv(name, str(default))))


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///blog-platform.db")
    SQL_ECHO = _flag("SQL_ECHO")

    # Tokens: distinct secrets per kind, shared issuer/audience
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", DEV_ACCESS_SECRET)
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", DEV_REFRESH_SECRET)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_EXPIRES = _seconds("JWT_ACCESS_EXPIRES_SECONDS", 15 * 60)
    JWT_REFRESH_EXPIRES = _seconds("JWT_REFRESH_EXPIRES_SECONDS", 30 * 24 * 60 * 60)
    JWT_ISSUER = os.getenv("JWT_ISSUER", "blog-platform")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "blog-platform-users")

    # Refresh token cookie (httpOnly, SameSite=Strict)
    REFRESH_COOKIE_NAME = os.getenv("REFRESH_COOKIE_NAME", "refresh_token")
    REFRESH_COOKIE_PATH = os.getenv("REFRESH_COOKIE_PATH", "/api/v1/auth")
    REFRESH_COOKIE_SECURE = _flag("REFRESH_COOKIE_SECURE")

    # 0 = unbounded; otherwise oldest sessions are evicted first
    MAX_SESSIONS_PER_USER = int(os.getenv("MAX_SESSIONS_PER_USER", "0"))
    SESSION_WRITE_RETRIES = int(os.getenv("SESSION_WRITE_RETRIES", "3"))

    # Brake on register/login attempts per client address; successful requests are not counted
    RATELIMIT_ENABLED = _flag("RATELIMIT_ENABLED", "1")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    AUTH_RATE_LIMIT = os.getenv("AUTH_RATE_LIMIT", "5 per 15 minutes")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    LOG_LEVEL = "WARNING"
    JWT_ACCESS_SECRET = "test-access-secret"
    JWT_REFRESH_SECRET = "test-refresh-secret"
    REFRESH_COOKIE_SECURE = False
    RATELIMIT_ENABLED = False


class ProductionConfig(BaseConfig):
    DEBUG = False
    REFRESH_COOKIE_SECURE = _flag("REFRESH_COOKIE_SECURE", "1")


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    if name:
        name = name.lower()
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig


def check_secrets(config) -> None:
    """Refuse to run outside dev/test with the built-in token secrets."""
    if config.get("DEBUG") or config.get("TESTING"):
        return
    if config["JWT_ACCESS_SECRET"] == DEV_ACCESS_SECRET or config["JWT_REFRESH_SECRET"] == DEV_REFRESH_SECRET:
        raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be set in production")
    if config["JWT_ACCESS_SECRET"] == config["JWT_REFRESH_SECRET"]:
        raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ")
