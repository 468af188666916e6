"""
Unit tests for backend.services.auth

Covers session token creation from an external JWT, decoding, external
token recovery, and failure modes (expired, tampered, wrong type).
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from backend.config import get_settings
from backend.services.auth import (
    create_session_token,
    decode_session_token,
    extract_external_token,
)
from integrations.token_exchange import TokenDecodeError
from tests.factories import make_external_token

settings = get_settings()


# ---------------------------------------------------------------------------
# 1. Session token carries the operator identity
# ---------------------------------------------------------------------------

def test_session_token_claims():
    token, identity = create_session_token(make_external_token())
    payload = jwt.decode(token, settings.secret_key, algorithms=["HS256"])

    assert payload["sub"] == "user-1"
    assert payload["name"] == "Laura Operadora"
    assert payload["email"] == "laura@example.com"
    assert payload["worker_relation_id"] == "w-1"
    assert payload["company_ids"] == ["c-1"]
    assert payload["type"] == "access"
    assert "iat" in payload
    assert "exp" in payload
    assert identity["sub"] == payload["sub"]


def test_session_token_does_not_expose_external_token():
    external = make_external_token()
    token, identity = create_session_token(external)
    payload = jwt.decode(token, settings.secret_key, algorithms=["HS256"])

    assert payload["ext"] != external
    assert "ext" not in identity


# ---------------------------------------------------------------------------
# 2. Expiry follows the configured minutes
# ---------------------------------------------------------------------------

def test_session_token_expiry():
    before = datetime.now(timezone.utc).replace(microsecond=0)
    token, _ = create_session_token(make_external_token())

    payload = jwt.decode(token, settings.secret_key, algorithms=["HS256"])
    exp = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    iat = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)

    assert exp - iat == timedelta(minutes=settings.access_token_expire_minutes)
    assert exp > before


# ---------------------------------------------------------------------------
# 3. Identity fallbacks
# ---------------------------------------------------------------------------

def test_subject_falls_back_to_worker_relation():
    external = jwt.encode({"workerId": "w-9", "username": "laura"}, "x", algorithm="HS256")
    _, identity = create_session_token(external)

    assert identity["sub"] == "w-9"
    assert identity["name"] == "laura"
    assert identity["email"] is None
    assert identity["company_ids"] == []


def test_unreadable_external_token():
    with pytest.raises(TokenDecodeError):
        create_session_token("not-a-jwt")


# ---------------------------------------------------------------------------
# 4. Round trip and external token recovery
# ---------------------------------------------------------------------------

def test_decode_and_extract_roundtrip():
    external = make_external_token()
    token, _ = create_session_token(external)

    payload = decode_session_token(token)

    assert payload["sub"] == "user-1"
    assert extract_external_token(payload) == external


def test_extract_without_external_token():
    with pytest.raises(jwt.InvalidTokenError):
        extract_external_token({"sub": "user-1"})


def test_extract_tampered_external_token():
    with pytest.raises(TokenDecodeError):
        extract_external_token({"ext": "garbage"})


# ---------------------------------------------------------------------------
# 5. Failure modes
# ---------------------------------------------------------------------------

def test_decode_expired_token():
    now = datetime.now(timezone.utc)
    payload = {
        "sub": "user-1",
        "type": "access",
        "iat": now - timedelta(hours=2),
        "exp": now - timedelta(hours=1),
    }
    token = jwt.encode(payload, settings.secret_key, algorithm="HS256")

    with pytest.raises(jwt.ExpiredSignatureError):
        decode_session_token(token)


def test_decode_wrong_secret():
    now = datetime.now(timezone.utc)
    payload = {"sub": "user-1", "type": "access", "iat": now, "exp": now + timedelta(hours=1)}
    token = jwt.encode(payload, "completely-different-secret", algorithm="HS256")

    with pytest.raises(jwt.InvalidSignatureError):
        decode_session_token(token)


def test_decode_rejects_non_access_token():
    now = datetime.now(timezone.utc)
    payload = {"sub": "user-1", "type": "refresh", "iat": now, "exp": now + timedelta(hours=1)}
    token = jwt.encode(payload, settings.secret_key, algorithm="HS256")

    with pytest.raises(jwt.InvalidTokenError):
        decode_session_token(token)


def test_decode_invalid_string():
    with pytest.raises(jwt.InvalidTokenError):
        decode_session_token("this.is.not.a.valid.jwt")
