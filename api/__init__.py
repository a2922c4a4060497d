from flask import Flask
from flask_cors import CORS
import logging

from .config import get_config, check_secrets
from .errors import register_error_handlers
from .extensions import limiter
from models import storage  # DBStorage singleton (scoped_session)
from services import SessionManager


def configure_logging(level: str) -> None:
    numeric = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    # basicConfig is a no-op once handlers exist, so set the level explicitly
    logging.getLogger().setLevel(numeric)


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    `overrides` is applied on top of the selected config class (handy in tests).
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)
    check_secrets(app.config)
    configure_logging(app.config["LOG_LEVEL"])

    # The SPA sends the refresh cookie cross-origin, so credentials must be allowed
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)
    limiter.init_app(app)

    storage.reload(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))
    app.extensions["session_manager"] = SessionManager.from_config(storage, app.config)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp, url_prefix="/api/v1")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # This calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Blog Platform API",
            "health": "/api/v1/health",
        }, 200

    return app
