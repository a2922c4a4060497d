"""
`python -m api` serves the blog platform with Flask's built-in server.

Only meant for local work; deploy create_app() behind gunicorn or another
WSGI server.
"""
import os

from . import create_app

app = create_app()  # config class picked from APP_ENV


def _debug_enabled() -> bool:
    default = "1" if app.config.get("DEBUG") else "0"
    return os.getenv("FLASK_DEBUG", default).lower() in ("1", "true", "yes")


if __name__ == "__main__":
    app.run(
        host=os.getenv("FLASK_RUN_HOST", "127.0.0.1"),
        port=int(os.getenv("FLASK_RUN_PORT", "5000")),
        debug=_debug_enabled(),
    )
