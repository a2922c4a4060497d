"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT creation/verification via PyJWT (TokenCodec)
- JTI generation for token identifiers

Access and refresh tokens are signed with different secrets, so a token of
one kind never verifies as the other even before the `type` claim is read.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Mapping

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerifyMismatchError

from utils.exceptions import (
    ACCESS_TOKEN_EXPIRED,
    INVALID_ACCESS_TOKEN,
    INVALID_REFRESH_TOKEN,
    REFRESH_TOKEN_EXPIRED,
    TokenExpiredError,
    TokenInvalidError,
)

ph = PasswordHasher()

ACCESS = "access"
REFRESH = "refresh"

# Claims added by the codec itself; everything else round-trips untouched
REGISTERED_CLAIMS = frozenset({"iss", "aud", "iat", "exp", "jti", "type"})

_ERRORS = {
    ACCESS: (("Access token has expired", ACCESS_TOKEN_EXPIRED),
             ("Invalid access token", INVALID_ACCESS_TOKEN)),
    REFRESH: (("Refresh token has expired", REFRESH_TOKEN_EXPIRED),
              ("Invalid refresh token", INVALID_REFRESH_TOKEN)),
}


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerifyMismatchError, InvalidHashError):
        return False


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """Hash compared against when no user matched, so lookups cost the same."""
    return ph.hash(uuid.uuid4().hex)


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """Issues and verifies the access/refresh JWT pair."""

    def __init__(self, access_secret: str, refresh_secret: str,
                 access_expires: timedelta, refresh_expires: timedelta,
                 issuer: str, audience: str, algorithm: str = "HS256"):
        if not access_secret or not refresh_secret:
            raise ValueError("Access and refresh token secrets are required")
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh tokens must use different secrets")
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.access_expires = access_expires
        self.refresh_expires = refresh_expires
        self.issuer = issuer
        self.audience = audience
        self.algorithm = algorithm

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "TokenCodec":
        return cls(
            access_secret=config["JWT_ACCESS_SECRET"],
            refresh_secret=config["JWT_REFRESH_SECRET"],
            access_expires=config["JWT_ACCESS_EXPIRES"],
            refresh_expires=config["JWT_REFRESH_EXPIRES"],
            issuer=config["JWT_ISSUER"],
            audience=config["JWT_AUDIENCE"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
        )

    def issue_access_token(self, claims: Mapping[str, Any]) -> str:
        """Sign {user_id, username, email, role} with the access secret."""
        return self._encode(claims, ACCESS, self.access_secret, self.access_expires)

    def issue_refresh_token(self, claims: Mapping[str, Any]) -> str:
        """Sign {user_id} with the refresh secret."""
        return self._encode(claims, REFRESH, self.refresh_secret, self.refresh_expires)

    def verify_access_token(self, token: str) -> Dict[str, Any]:
        return self._decode(token, ACCESS, self.access_secret)

    def verify_refresh_token(self, token: str) -> Dict[str, Any]:
        return self._decode(token, REFRESH, self.refresh_secret)

    def _encode(self, claims, token_type, secret, expires) -> str:
        now = _now()
        payload = {k: v for k, v in claims.items() if k not in REGISTERED_CLAIMS}
        payload.update({
            "iss": self.issuer,
            "aud": self.audience,
            "iat": int(now.timestamp()),
            "exp": int((now + expires).timestamp()),
            # unique per token, so two tokens minted in the same second still differ
            "jti": generate_jti(),
            "type": token_type,
        })
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def _decode(self, token, token_type, secret) -> Dict[str, Any]:
        (expired_msg, expired_code), (invalid_msg, invalid_code) = _ERRORS[token_type]
        if not isinstance(token, str) or not token:
            raise TokenInvalidError(invalid_msg, code=invalid_code)
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                audience=self.audience,
                options={"require": ["exp", "iat", "iss", "aud", "jti"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError(expired_msg, code=expired_code)
        except jwt.InvalidTokenError:
            raise TokenInvalidError(invalid_msg, code=invalid_code)

        if decoded.get("type") != token_type:
            raise TokenInvalidError(invalid_msg, code=invalid_code)
        return decoded
