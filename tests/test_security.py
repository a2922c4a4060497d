from datetime import timedelta

import jwt
import pytest

from utils.exceptions import (
    ACCESS_TOKEN_EXPIRED,
    INVALID_ACCESS_TOKEN,
    INVALID_REFRESH_TOKEN,
    REFRESH_TOKEN_EXPIRED,
    TokenExpiredError,
    TokenInvalidError,
)
from utils.security import TokenCodec, hash_password, verify_password

CLAIMS = {"user_id": "u-1", "username": "alice", "email": "alice@x.com", "role": "user"}


def make_codec(**overrides):
    params = dict(
        access_secret="access-secret",
        refresh_secret="refresh-secret",
        access_expires=timedelta(minutes=15),
        refresh_expires=timedelta(days=30),
        issuer="blog-platform",
        audience="blog-platform-users",
    )
    params.update(overrides)
    return TokenCodec(**params)


def test_password_hash_is_not_plaintext_and_verifies():
    hashed = hash_password("Abc123!@#")
    assert hashed != "Abc123!@#"
    assert verify_password("Abc123!@#", hashed)
    assert not verify_password("wrong", hashed)


def test_verify_password_rejects_garbage_hash():
    assert not verify_password("Abc123!@#", "not-a-hash")


def test_access_token_roundtrip_preserves_claims():
    codec = make_codec()
    decoded = codec.verify_access_token(codec.issue_access_token(CLAIMS))

    assert {k: decoded[k] for k in CLAIMS} == CLAIMS
    assert decoded["iss"] == "blog-platform"
    assert decoded["aud"] == "blog-platform-users"
    assert decoded["type"] == "access"


def test_refresh_token_carries_user_id():
    codec = make_codec()
    decoded = codec.verify_refresh_token(codec.issue_refresh_token({"user_id": "u-1"}))
    assert decoded["user_id"] == "u-1"
    assert decoded["type"] == "refresh"


def test_tokens_issued_back_to_back_differ():
    codec = make_codec()
    assert codec.issue_refresh_token({"user_id": "u-1"}) != codec.issue_refresh_token({"user_id": "u-1"})


def test_access_token_is_not_a_refresh_token():
    codec = make_codec()
    with pytest.raises(TokenInvalidError) as exc:
        codec.verify_refresh_token(codec.issue_access_token(CLAIMS))
    assert exc.value.code == INVALID_REFRESH_TOKEN


def test_refresh_token_is_not_an_access_token():
    codec = make_codec()
    with pytest.raises(TokenInvalidError) as exc:
        codec.verify_access_token(codec.issue_refresh_token({"user_id": "u-1"}))
    assert exc.value.code == INVALID_ACCESS_TOKEN


def test_type_claim_checked_even_with_correct_secret():
    codec = make_codec()
    forged = jwt.encode(
        {"user_id": "u-1", "iss": codec.issuer, "aud": codec.audience,
         "iat": 0, "exp": 4102444800, "jti": "x", "type": "access"},
        codec.refresh_secret,
        algorithm="HS256",
    )
    with pytest.raises(TokenInvalidError):
        codec.verify_refresh_token(forged)


def test_expired_tokens_report_expiry():
    codec = make_codec(access_expires=timedelta(seconds=-10), refresh_expires=timedelta(seconds=-10))

    with pytest.raises(TokenExpiredError) as exc:
        codec.verify_access_token(codec.issue_access_token(CLAIMS))
    assert exc.value.code == ACCESS_TOKEN_EXPIRED
    assert exc.value.message == "Access token has expired"

    with pytest.raises(TokenExpiredError) as exc:
        codec.verify_refresh_token(codec.issue_refresh_token({"user_id": "u-1"}))
    assert exc.value.code == REFRESH_TOKEN_EXPIRED


@pytest.mark.parametrize("field, value", [("issuer", "someone-else"), ("audience", "other-users")])
def test_issuer_and_audience_mismatch_is_invalid(field, value):
    token = make_codec(**{field: value}).issue_access_token(CLAIMS)
    with pytest.raises(TokenInvalidError) as exc:
        make_codec().verify_access_token(token)
    assert exc.value.code == INVALID_ACCESS_TOKEN


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c", None])
def test_malformed_tokens_are_invalid(token):
    with pytest.raises(TokenInvalidError):
        make_codec().verify_refresh_token(token)


def test_secrets_must_differ():
    with pytest.raises(ValueError):
        make_codec(refresh_secret="access-secret")
