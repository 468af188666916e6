"""
Authentication Service

Turns an external workforce API token into a backend session JWT and back.
The external token travels Fernet-encrypted inside the session token so the
backend can call the workforce API on the operator's behalf.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from backend.config import get_settings
from integrations.normalizers import pick_string
from integrations.token_exchange import (
    TokenEncryption,
    decode_unverified,
    resolve_company_ids,
    resolve_worker_relation_id,
)

settings = get_settings()


def _encryption() -> TokenEncryption:
    return TokenEncryption(settings.fernet_key)


def create_session_token(external_token: str) -> tuple[str, dict[str, Any]]:
    """
    Create a backend session token wrapping an external JWT.

    Claims:
      - sub: external user id (falls back to the worker relation id)
      - name, email: display identity from the external token
      - worker_relation_id: worker parameter id of the operator
      - company_ids: companies the operator belongs to
      - ext: Fernet-encrypted external token
      - type: "access"

    Returns the encoded token and the identity claims. Raises
    TokenDecodeError when the external token is not a readable JWT.
    """
    payload = decode_unverified(external_token)
    worker_relation_id = resolve_worker_relation_id(payload)
    identity = {
        "sub": pick_string(
            payload.get("sub"), payload.get("userId"), payload.get("id"), worker_relation_id
        ) or "unknown",
        "name": pick_string(payload.get("name"), payload.get("username"), payload.get("userName")),
        "email": pick_string(payload.get("email")),
        "worker_relation_id": worker_relation_id,
        "company_ids": resolve_company_ids(payload),
    }

    now = datetime.now(timezone.utc)
    claims = {
        **identity,
        "ext": _encryption().encrypt(external_token),
        "type": "access",
        "iat": now,
        "exp": now + timedelta(minutes=settings.access_token_expire_minutes),
    }
    return jwt.encode(claims, settings.secret_key, algorithm="HS256"), identity


def decode_session_token(token: str) -> dict[str, Any]:
    """Decode and validate a session token. Raises jwt.InvalidTokenError on failure."""
    payload = jwt.decode(token, settings.secret_key, algorithms=["HS256"])
    if payload.get("type") != "access":
        raise jwt.InvalidTokenError("Not an access token")
    return payload


def extract_external_token(payload: dict[str, Any]) -> str:
    """Decrypt the external token carried by a decoded session token."""
    encrypted = payload.get("ext")
    if not encrypted:
        raise jwt.InvalidTokenError("Session token carries no external token")
    return _encryption().decrypt(encrypted)
