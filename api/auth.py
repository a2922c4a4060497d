"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout
- POST /auth/logout-all
- PUT  /auth/change-password
- GET  /auth/me
- PUT  /auth/profile
- GET  /auth/status

The refresh token travels in an httpOnly, SameSite=Strict cookie scoped to
the auth routes; /auth/refresh also accepts it in the JSON body. Every
refresh consumes the presented token and sets a new cookie.

Register and login share one rate limit per client address (AUTH_RATE_LIMIT);
only failed attempts count against it.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, g, current_app

from models.schemas.user import (
    ChangePasswordSchema,
    ProfileUpdateSchema,
    UserLoginSchema,
    UserRegisterSchema,
)
from services import get_session_manager
from .extensions import limiter
from utils.decorators import jwt_required, optional_auth
from utils.exceptions import MISSING_REFRESH_TOKEN, AuthenticationError

bp = Blueprint("auth", __name__)

register_schema = UserRegisterSchema()
login_schema = UserLoginSchema()
profile_schema = ProfileUpdateSchema()
change_password_schema = ChangePasswordSchema()


def _auth_rate_limit() -> str:
    return current_app.config["AUTH_RATE_LIMIT"]


# One budget shared by register and login; only failed attempts use it up
auth_limit = limiter.shared_limit(
    _auth_rate_limit,
    scope="auth",
    deduct_when=lambda response: response.status_code >= 400,
    error_message="Too many authentication attempts, please try again later.",
)


def _set_refresh_cookie(response, token: str):
    cfg = current_app.config
    response.set_cookie(
        cfg["REFRESH_COOKIE_NAME"],
        token,
        max_age=int(cfg["JWT_REFRESH_EXPIRES"].total_seconds()),
        path=cfg["REFRESH_COOKIE_PATH"],
        secure=cfg["REFRESH_COOKIE_SECURE"],
        httponly=True,
        samesite="Strict",
    )
    return response


def _clear_refresh_cookie(response):
    cfg = current_app.config
    response.delete_cookie(
        cfg["REFRESH_COOKIE_NAME"],
        path=cfg["REFRESH_COOKIE_PATH"],
        secure=cfg["REFRESH_COOKIE_SECURE"],
        httponly=True,
        samesite="Strict",
    )
    return response


def _presented_refresh_token() -> str | None:
    """Cookie first, then the JSON body field."""
    token = request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"])
    if not token:
        payload = request.get_json(silent=True) or {}
        token = payload.get("refresh_token") if isinstance(payload, dict) else None
    return token or None


@bp.post("/register")
@auth_limit
def register():
    """
    Register a new user. Body: username, email, password, first_name, last_name.
    201 with the user and both tokens; 400 on validation errors; 409 on duplicates.
    """
    payload = request.get_json(silent=True) or {}
    data = register_schema.load(payload)
    result = get_session_manager().register(data)
    return jsonify(
        {
            "message": "User registered successfully",
            "data": {
                "user": result.user,
                "tokens": {
                    "access_token": result.access_token,
                    "refresh_token": result.refresh_token,
                },
            },
        }
    ), 201


@bp.post("/login")
@auth_limit
def login():
    """
    Login: access token in the body, refresh token in the cookie.
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)
    result = get_session_manager().login(data["email"], data["password"])

    response = jsonify(
        {
            "message": "Login successful",
            "data": {"user": result.user, "access_token": result.access_token},
        }
    )
    return _set_refresh_cookie(response, result.refresh_token), 200


@bp.post("/refresh")
def refresh():
    """
    Use the refresh token to obtain a new access token and a rotated refresh token.
    """
    token = _presented_refresh_token()
    if not token:
        raise AuthenticationError("Refresh token not provided", code=MISSING_REFRESH_TOKEN)

    result = get_session_manager().refresh(token)
    response = jsonify(
        {
            "message": "Token refreshed successfully",
            "data": {"user": result.user, "access_token": result.access_token},
        }
    )
    return _set_refresh_cookie(response, result.refresh_token), 200


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: revokes the presented refresh token (if any) and clears the cookie.
    """
    get_session_manager().logout(g.current_user.id, _presented_refresh_token())
    response = jsonify({"message": "Logout successful"})
    return _clear_refresh_cookie(response), 200


@bp.post("/logout-all")
@jwt_required()
def logout_all():
    get_session_manager().logout_all(g.current_user.id)
    response = jsonify({"message": "Logged out from all devices"})
    return _clear_refresh_cookie(response), 200


@bp.put("/change-password")
@jwt_required()
def change_password():
    """
    Change password. Every session is revoked, the caller must log in again.
    """
    payload = request.get_json(silent=True) or {}
    data = change_password_schema.load(payload)
    get_session_manager().change_password(
        g.current_user.id, data["current_password"], data["new_password"]
    )
    response = jsonify({"message": "Password changed successfully"})
    return _clear_refresh_cookie(response), 200


@bp.get("/me")
@jwt_required()
def me():
    user = get_session_manager().get_current_user(g.current_user.id)
    return jsonify({"data": {"user": user}}), 200


@bp.put("/profile")
@jwt_required()
def update_profile():
    payload = request.get_json(silent=True) or {}
    data = profile_schema.load(payload)
    user = get_session_manager().update_profile(g.current_user.id, data)
    return jsonify({"message": "Profile updated successfully", "data": {"user": user}}), 200


@bp.get("/status")
@optional_auth()
def status():
    """Whether the caller's access token is currently good. Never 401s."""
    user = g.current_user
    if user is None:
        return jsonify({"data": {"authenticated": False}}), 200
    return jsonify(
        {
            "data": {
                "authenticated": True,
                "user_id": user.id,
                "role": g.token_claims.get("role"),
            }
        }
    ), 200
