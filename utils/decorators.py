from __future__ import annotations
import logging
from functools import wraps
from flask import request, g
from services import get_session_manager
from utils.exceptions import (
    INSUFFICIENT_ROLE,
    MISSING_TOKEN,
    AuthenticationError,
    AuthorizationError,
)

logger = logging.getLogger(__name__)


def bearer_token() -> str:
    """Token from `Authorization: Bearer <token>`, or MISSING_TOKEN."""
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    token = token.strip()
    if scheme != "Bearer" or not token:
        raise AuthenticationError("No valid token provided", code=MISSING_TOKEN)
    return token


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user, claims = get_session_manager().authenticate(bearer_token())
            g.current_user = user
            g.token_claims = claims
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def optional_auth():
    """
    Like jwt_required, but any authentication failure leaves the caller
    anonymous (g.current_user is None) instead of rejecting the request.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            g.current_user = None
            g.token_claims = None
            if request.headers.get("Authorization"):
                try:
                    g.current_user, g.token_claims = get_session_manager().authenticate(bearer_token())
                except AuthenticationError as exc:
                    logger.debug("Proceeding anonymously: %s", exc.code)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def roles_required(required_roles: list[str]):
    """
    Allow access if the authenticated user's role is one of required_roles.
    """
    req = set(required_roles or [])

    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            if g.current_user.role not in req:
                raise AuthorizationError(
                    f"Access denied. Required roles: {', '.join(sorted(req))}",
                    code=INSUFFICIENT_ROLE,
                )
            return fn(*args, **kwargs)

        return wrapper

    return decorator
