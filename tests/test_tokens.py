"""
Unit tests for auth/tokens.py -- JWT issuance/verification and authenticate_user().

Covers:
  - issued token decodes back to the same subject
  - validity window: accepted just inside 7 days, rejected at/after 7 days
  - tampered, foreign-key, garbage and subject-less tokens are rejected
  - authenticate_user() for correct, wrong and unknown credentials
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.models import User
from auth.passwords import hash_password
from auth.tokens import authenticate_user, create_access_token, decode_access_token
from core.config import get_settings

SEVEN_DAYS = timedelta(days=7)


def test_token_round_trip_subject():
    claims = decode_access_token(create_access_token(42))
    assert claims is not None
    assert claims.user_id == 42
    assert claims.expires_at - claims.issued_at == int(SEVEN_DAYS.total_seconds())


def test_tokens_issued_back_to_back_differ():
    assert create_access_token(1) != create_access_token(1)


def test_token_accepted_just_before_expiry():
    issued = datetime.now(timezone.utc) - SEVEN_DAYS + timedelta(minutes=1)
    assert decode_access_token(create_access_token(7, issued_at=issued)) is not None


def test_token_rejected_after_expiry():
    issued = datetime.now(timezone.utc) - SEVEN_DAYS - timedelta(seconds=1)
    assert decode_access_token(create_access_token(7, issued_at=issued)) is None


def test_token_rejected_at_exact_expiry_second():
    issued = datetime.now(timezone.utc).replace(microsecond=0) - SEVEN_DAYS
    assert decode_access_token(create_access_token(7, issued_at=issued)) is None


def test_tampered_signature_rejected():
    token = create_access_token(5)
    header, payload, signature = token.split(".")
    flipped = signature[:-2] + ("AA" if signature[-2:] != "AA" else "BB")
    assert decode_access_token(f"{header}.{payload}.{flipped}") is None


def test_token_signed_with_other_key_rejected():
    now = datetime.now(timezone.utc)
    forged = jwt.encode({"sub": "5", "iat": now, "exp": now + SEVEN_DAYS}, "some-other-secret", algorithm="HS256")
    assert decode_access_token(forged) is None


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "Bearer xyz"])
def test_malformed_token_rejected(token):
    assert decode_access_token(token) is None


@pytest.mark.parametrize("sub", [None, "alice", "-1"])
def test_token_without_numeric_subject_rejected(sub):
    now = datetime.now(timezone.utc)
    payload = {"iat": now, "exp": now + SEVEN_DAYS}
    if sub is not None:
        payload["sub"] = sub
    token = jwt.encode(payload, get_settings().jwt_secret, algorithm="HS256")
    assert decode_access_token(token) is None


def test_other_algorithm_rejected():
    now = datetime.now(timezone.utc)
    other = jwt.encode({"sub": "1", "exp": now + SEVEN_DAYS}, get_settings().jwt_secret, algorithm="HS512")
    assert decode_access_token(other) is None


# ---------------------------------------------------------------------------
# authenticate_user
# ---------------------------------------------------------------------------


@pytest.fixture
def alice(user_store):
    uid = user_store.create_user(User(username="alice", email="alice@x.com", hashed_password=hash_password("secret1")))
    return uid


def test_authenticate_correct_password(user_store, alice):
    user = authenticate_user(user_store, "alice", "secret1")
    assert user is not None
    assert user.id == alice


def test_authenticate_wrong_password(user_store, alice):
    assert authenticate_user(user_store, "alice", "wrong") is None


def test_authenticate_unknown_user_runs_dummy_check(user_store, monkeypatch):
    calls = []

    import auth.tokens as tokens

    real_verify = tokens.verify_password

    def spy(plain, hashed):
        calls.append(hashed)
        return real_verify(plain, hashed)

    monkeypatch.setattr(tokens, "verify_password", spy)
    assert authenticate_user(user_store, "ghost", "secret1") is None
    assert calls == [tokens.DUMMY_HASH]
