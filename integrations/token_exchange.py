"""
External Token Exchange

Reads the claims of the workforce API JWT and keeps the token encrypted
while it travels inside the backend session token.
"""

import base64
import hashlib
import json
import logging
from typing import Any

import jwt
from cryptography.fernet import Fernet, InvalidToken

from integrations.base import COMPANY_RELATION_TYPE, WORKER_RELATION_TYPE
from integrations.normalizers import parse_relation_type, pick_string

logger = logging.getLogger(__name__)

WORKER_RELATION_FALLBACKS = (
    "workerIdRelation",
    "worker_id_relation",
    "workerId",
    "worker_id",
)


class TokenDecodeError(ValueError):
    """Raised when an external token is not a readable JWT."""


def decode_unverified(token: str) -> dict[str, Any]:
    """
    Payload of an external JWT.

    The signing key belongs to the workforce API, so the signature is not
    checked here; the token is only trusted as far as the API accepts it.
    """
    try:
        payload = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
            algorithms=["HS256", "HS512", "RS256"],
        )
    except jwt.PyJWTError as e:
        raise TokenDecodeError(f"Invalid external token: {e}") from e
    if not isinstance(payload, dict):
        raise TokenDecodeError("External token payload is not an object")
    return payload


def _relations(payload: dict[str, Any]) -> list[dict]:
    relations = payload.get("parameterRelations")
    if not isinstance(relations, list):
        return []
    return [relation for relation in relations if isinstance(relation, dict)]


def resolve_worker_relation_id(payload: dict[str, Any]) -> str | None:
    """
    Worker parameter id of the token owner.

    Taken from the first relation of type 5, then from the flat
    worker id claims, then from the token `id`.
    """
    for relation in _relations(payload):
        if parse_relation_type(relation.get("type")) == WORKER_RELATION_TYPE:
            relation_id = pick_string(relation.get("id"), relation.get("parameterId"))
            if relation_id:
                return relation_id

    candidates = [payload.get(key) for key in WORKER_RELATION_FALLBACKS]
    worker = payload.get("worker")
    if isinstance(worker, dict):
        candidates.append(worker.get("id"))
    candidates.append(payload.get("id"))
    return pick_string(*candidates)


def resolve_company_ids(payload: dict[str, Any]) -> list[str]:
    """Companies of the token owner: type 1 relations, else the `companies` claim."""
    company_ids = [
        relation_id
        for relation in _relations(payload)
        if parse_relation_type(relation.get("type")) == COMPANY_RELATION_TYPE
        and (relation_id := pick_string(relation.get("id")))
    ]
    if company_ids:
        return company_ids

    companies = payload.get("companies")
    if isinstance(companies, str):
        try:
            companies = json.loads(companies)
        except json.JSONDecodeError:
            logger.debug("Unparseable companies claim in external token")
            return []
    if isinstance(companies, list):
        return [value for value in (pick_string(item) for item in companies) if value]
    return []


def derive_fernet_key(secret: str) -> str:
    """Fernet key derived from an arbitrary secret string."""
    digest = hashlib.sha256(secret.encode()).digest()
    return base64.urlsafe_b64encode(digest).decode()


class TokenEncryption:
    """Handles encryption/decryption of external tokens."""

    def __init__(self, encryption_key: str | bytes):
        if isinstance(encryption_key, str):
            encryption_key = encryption_key.encode()
        self.cipher = Fernet(encryption_key)

    def encrypt(self, token: str) -> str:
        """Encrypt a token string into URL-safe text."""
        return self.cipher.encrypt(token.encode()).decode()

    def decrypt(self, encrypted_token: str) -> str:
        """Decrypt a token; raises TokenDecodeError when tampered or foreign."""
        try:
            return self.cipher.decrypt(encrypted_token.encode()).decode()
        except InvalidToken as e:
            raise TokenDecodeError("External token could not be decrypted") from e
