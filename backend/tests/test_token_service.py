"""Tests for session token issuing and verification."""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from notekeep.exceptions import InvalidTokenError
from notekeep.services.token_service import TokenService


@pytest.fixture
def tokens():
    return TokenService(secret="unit-test-secret-0123456789abcdefgh", algorithm="HS256", expire_days=3)


def test_round_trip(tokens):
    user_id = uuid.uuid4()
    claims = tokens.verify_token(tokens.create_token(user_id, "a@example.com"))
    assert claims.user_id == user_id
    assert claims.email == "a@example.com"


def test_expiry_is_three_days(tokens):
    issued = datetime.now(timezone.utc).replace(microsecond=0)
    claims = tokens.verify_token(tokens.create_token(uuid.uuid4(), "a@example.com", now=issued))
    assert claims.expires_at == issued + timedelta(days=3)


def test_expired_token_rejected(tokens):
    token = tokens.create_token(
        uuid.uuid4(), "a@example.com", now=datetime.now(timezone.utc) - timedelta(days=4)
    )
    with pytest.raises(InvalidTokenError, match="Token has expired"):
        tokens.verify_token(token)


def test_wrong_secret_rejected(tokens):
    forger = TokenService(secret="someone-else-0123456789abcdefghijkl", algorithm="HS256", expire_days=3)
    token = forger.create_token(uuid.uuid4(), "a@example.com")
    with pytest.raises(InvalidTokenError):
        tokens.verify_token(token)


def test_garbage_rejected(tokens):
    with pytest.raises(InvalidTokenError):
        tokens.verify_token("not.a.token")


def test_missing_identity_claims_rejected(tokens):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"iat": int(now.timestamp()), "exp": int((now + timedelta(hours=1)).timestamp())},
        "unit-test-secret-0123456789abcdefgh",
        algorithm="HS256",
    )
    with pytest.raises(InvalidTokenError):
        tokens.verify_token(token)
