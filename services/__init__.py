from flask import current_app

from services.sessions import AuthResult, SessionManager


def get_session_manager() -> SessionManager:
    """SessionManager bound to the current app (set up in create_app)."""
    return current_app.extensions["session_manager"]
