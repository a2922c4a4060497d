"""
Session manager: registration, login, refresh-token rotation, logout.

The only code allowed to change User.refresh_tokens. A refresh token mints a
new pair only if it verifies (signature, expiry, issuer, audience) AND is
still registered on its user. A token that verifies but is no longer
registered has already been rotated out or revoked; presenting it revokes
every session of that user.

Each operation is one read-modify-write of a single user row. The row is
versioned (User.version), so a write based on a stale read fails with
StaleDataError instead of silently overwriting a concurrent one; the
manager then reloads the row and applies the change again.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, NamedTuple, Optional, Tuple, TypeVar

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from models.session_set import SessionSet
from models.schemas.user import UserOutSchema
from models.user import User
from utils.exceptions import (
    EMAIL_TAKEN,
    INVALID_CREDENTIALS,
    INVALID_REFRESH_TOKEN,
    USER_NOT_FOUND,
    USERNAME_TAKEN,
    WRONG_CURRENT_PASSWORD,
    AuthenticationError,
    ConflictError,
    NotFoundError,
)
from utils.security import TokenCodec, dummy_password_hash, hash_password, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
PROFILE_FIELDS = ("first_name", "last_name", "bio", "avatar")

user_out_schema = UserOutSchema()

T = TypeVar("T")


class AuthResult(NamedTuple):
    user: dict
    access_token: str
    refresh_token: str


class SessionManager:

    def __init__(self, storage, codec: TokenCodec,
                 max_sessions: Optional[int] = None, write_retries: int = 3):
        self.storage = storage
        self.codec = codec
        self.max_sessions = max_sessions or None
        self.write_retries = max(1, write_retries)

    @classmethod
    def from_config(cls, storage, config: Mapping[str, Any]) -> "SessionManager":
        return cls(
            storage,
            TokenCodec.from_config(config),
            max_sessions=config.get("MAX_SESSIONS_PER_USER"),
            write_retries=config.get("SESSION_WRITE_RETRIES", 3),
        )

    # -- operations ---------------------------------------------------------

    def register(self, data: Mapping[str, Any]) -> AuthResult:
        """Create a user (always role `user`) and issue its first token pair.

        `data` is the output of UserRegisterSchema: username, email,
        password, first_name, last_name.
        """
        email = data["email"]
        username = data["username"]
        self._check_available(email, username)

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(data["password"]),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            role="user",
        )
        self.storage.new(user)
        pair = self._mint_pair(user, user.sessions)
        try:
            self.storage.save()
        except IntegrityError:
            # Lost a race with a concurrent registration
            self._check_available(email, username)
            raise
        logger.info("New user registered: %s", user.id)
        return AuthResult(user_out_schema.dump(user), *pair)

    def login(self, email: str, password: str) -> AuthResult:
        session = self.storage.get_session()
        user = session.query(User).filter(User.email == email).first()

        # Same error whether the email is unknown or the password is wrong
        if user is None or not user.is_active:
            verify_password(password, dummy_password_hash())
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE, code=INVALID_CREDENTIALS)
        if not verify_password(password, user.password_hash):
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE, code=INVALID_CREDENTIALS)

        def sign_in(user, attempt):
            user.last_login = datetime.now(timezone.utc)
            return self._mint_pair(user, user.sessions)

        pair = self._write_user(user.id, sign_in)
        logger.info("User logged in: %s", user.id)
        return self._auth_result(user.id, pair)

    def refresh(self, token: str) -> AuthResult:
        """Rotate: consume `token` and return a brand-new access/refresh pair.

        The rotation commits only while `token` is still registered. If the
        row changed underneath us the user is reloaded: a token that is
        still there is rotated again, one that is gone means a concurrent
        refresh of the same token won and this caller loses without any
        revocation.
        """
        claims = self.codec.verify_refresh_token(token)
        user_id = claims.get("user_id")

        def rotate(user, attempt):
            if user is None or not user.is_active:
                raise AuthenticationError("User not found or inactive", code=USER_NOT_FOUND)
            sessions = user.sessions
            if token in sessions:
                return self._mint_pair(user, sessions.remove_one(token))
            if attempt > 1:
                logger.warning("Concurrent refresh for user %s rejected", user.id)
                raise AuthenticationError("Invalid refresh token", code=INVALID_REFRESH_TOKEN)
            return None

        pair = self._write_user(user_id, rotate)
        if pair is None:
            logger.warning("Refresh token reuse detected for user %s, revoking all sessions", user_id)
            self._update_sessions(user_id, lambda s: s.clear())
            raise AuthenticationError("Invalid refresh token", code=INVALID_REFRESH_TOKEN)
        return self._auth_result(user_id, pair)

    def logout(self, user_id: str, token: Optional[str]) -> None:
        """Drop one refresh token. Unknown users/tokens are a no-op."""
        if token:
            self._update_sessions(user_id, lambda s: s.remove_one(token))
        logger.info("User logged out: %s", user_id)

    def logout_all(self, user_id: str) -> None:
        self._update_sessions(user_id, lambda s: s.clear())
        logger.info("User logged out from all devices: %s", user_id)

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        """Replace the password hash and revoke every session in the same write."""

        def replace(user, attempt):
            if user is None:
                raise NotFoundError("User not found", code=USER_NOT_FOUND)
            if not verify_password(current_password, user.password_hash):
                # 400 rather than 401: the caller's session is still valid
                raise AuthenticationError(
                    "Current password is incorrect", code=WRONG_CURRENT_PASSWORD, status_code=400
                )
            user.password_hash = hash_password(new_password)
            user.sessions = user.sessions.clear()

        self._write_user(user_id, replace)
        logger.info("Password changed for user: %s", user_id)

    def authenticate(self, access_token: str) -> Tuple[User, dict]:
        """Resolve a bearer access token to an active user."""
        claims = self.codec.verify_access_token(access_token)
        user = self.storage.get(User, claims.get("user_id"))
        if user is None or not user.is_active:
            raise AuthenticationError("User not found or inactive", code=USER_NOT_FOUND)
        return user, claims

    def get_current_user(self, user_id: str) -> dict:
        return user_out_schema.dump(self._get_active_user(user_id))

    def update_profile(self, user_id: str, data: Mapping[str, Any]) -> dict:

        def edit(user, attempt):
            if user is None or not user.is_active:
                raise NotFoundError("User not found", code=USER_NOT_FOUND)
            for field in PROFILE_FIELDS:
                if field in data:
                    setattr(user, field, data[field])

        self._write_user(user_id, edit)
        logger.info("Profile updated for user: %s", user_id)
        return user_out_schema.dump(self.storage.get(User, user_id))

    def set_role(self, user_id: str, role: str) -> dict:
        """Admin-only elevation/demotion; callers must check the acting role."""

        def assign(user, attempt):
            if user is None:
                raise NotFoundError("User not found", code=USER_NOT_FOUND)
            user.role = role

        self._write_user(user_id, assign)
        logger.info("Role of user %s set to %s", user_id, role)
        return user_out_schema.dump(self.storage.get(User, user_id))

    # -- helpers -------------------------------------------------------------

    def _check_available(self, email: str, username: str) -> None:
        session = self.storage.get_session()
        existing = session.query(User).filter(
            or_(User.email == email, User.username == username)
        ).all()
        # Email collision wins over username collision
        if any(u.email == email for u in existing):
            raise ConflictError("Email already registered", code=EMAIL_TAKEN)
        if existing:
            raise ConflictError("Username already taken", code=USERNAME_TAKEN)

    def _get_active_user(self, user_id: str) -> User:
        user = self.storage.get(User, user_id)
        if user is None or not user.is_active:
            raise NotFoundError("User not found", code=USER_NOT_FOUND)
        return user

    def _mint_pair(self, user: User, sessions: SessionSet) -> Tuple[str, str]:
        """Mint a pair and register the refresh token on `user` (not committed)."""
        access_token = self.codec.issue_access_token({
            "user_id": user.id,
            "username": user.username,
            "email": user.email,
            "role": user.role,
        })
        refresh_token = self.codec.issue_refresh_token({"user_id": user.id})
        user.sessions = sessions.add(refresh_token, limit=self.max_sessions)
        return access_token, refresh_token

    def _auth_result(self, user_id: str, pair: Tuple[str, str]) -> AuthResult:
        return AuthResult(user_out_schema.dump(self.storage.get(User, user_id)), *pair)

    def _write_user(self, user_id: Optional[str], change: Callable[[Optional[User], int], T]) -> T:
        """Load the user, apply `change(user, attempt)` and commit.

        A commit based on a stale read raises StaleDataError and is rolled
        back; the user is then reloaded and `change` runs again on the fresh
        row, up to `write_retries` attempts. Nothing is written when the
        user does not exist.
        """
        for attempt in range(1, self.write_retries + 1):
            user = self.storage.get(User, user_id)
            result = change(user, attempt)
            if user is None:
                return result
            self.storage.new(user)
            try:
                self.storage.save()
                return result
            except StaleDataError:
                if attempt == self.write_retries:
                    raise
                logger.warning(
                    "User %s changed concurrently, retrying (attempt %d)", user_id, attempt
                )

    def _update_sessions(self, user_id: str, mutate: Callable[[SessionSet], SessionSet]) -> None:
        """Apply `mutate` to the stored set of `user_id`."""

        def apply(user, attempt):
            if user is None:
                return
            updated = mutate(user.sessions)
            if updated != user.sessions:
                user.sessions = updated

        self._write_user(user_id, apply)
