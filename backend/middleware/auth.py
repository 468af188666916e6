"""
Session Authentication Dependency

Resolves the operator behind a request from the backend session token.
"""

import logging

import jwt
from fastapi import HTTPException, Request
from pydantic import BaseModel, Field

from backend.services.auth import decode_session_token, extract_external_token
from integrations.token_exchange import TokenDecodeError

logger = logging.getLogger(__name__)


class CurrentUser(BaseModel):
    """Authenticated operator context."""

    id: str
    name: str | None = None
    email: str | None = None
    worker_relation_id: str | None = None
    company_ids: list[str] = Field(default_factory=list)
    external_token: str = Field(..., repr=False)

    def belongs_to_company(self, company_id: str) -> bool:
        return company_id in self.company_ids


async def get_current_user(request: Request) -> CurrentUser:
    """
    Extract and validate the current operator from the Bearer token.

    Also stores the identity on request.state for the audit log.
    """
    auth_header = request.headers.get("authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Authentication required")

    token = auth_header.split(" ", 1)[1]
    try:
        payload = decode_session_token(token)
        external_token = extract_external_token(payload)
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=f"Invalid token: {e}")
    except TokenDecodeError as e:
        logger.warning(f"Session token with unreadable external token: {e}")
        raise HTTPException(status_code=401, detail="Invalid token")

    user = CurrentUser(
        id=str(payload["sub"]),
        name=payload.get("name"),
        email=payload.get("email"),
        worker_relation_id=payload.get("worker_relation_id"),
        company_ids=payload.get("company_ids") or [],
        external_token=external_token,
    )
    request.state.user_id = user.id
    request.state.user_email = user.email
    return user
