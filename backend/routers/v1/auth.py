"""
Auth Router

Exchanges workforce API credentials (or an external token) for a backend
session token, and returns the current operator profile.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from backend.config import get_settings
from backend.middleware.auth import CurrentUser, get_current_user
from backend.schemas.auth import LoginRequest, TokenResponse, UserResponse
from backend.services.auth import create_session_token
from backend.services.workforce import external_error_to_http, get_login_client
from integrations.base import ExternalAPIError
from integrations.token_exchange import TokenDecodeError
from integrations.workforce_api import ExternalWorkforceClient

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    client: ExternalWorkforceClient = Depends(get_login_client),
) -> TokenResponse:
    """
    Log in against the workforce API.

    With username/password the external token is obtained from the API;
    with external_token it is used as given. Either way the token is wrapped
    into a backend session token.
    """
    external_token = body.external_token
    if not external_token:
        try:
            external_token = await client.login(body.username, body.password)
        except ExternalAPIError as e:
            if e.status_code in (400, 401, 403):
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid credentials",
                ) from e
            raise external_error_to_http(e) from e

    try:
        access_token, identity = create_session_token(external_token)
    except TokenDecodeError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        ) from e

    logger.info(f"Operator {identity['sub']} logged in")
    return TokenResponse(
        access_token=access_token,
        expires_in=get_settings().access_token_expire_minutes * 60,
        user=UserResponse(id=identity["sub"], **{k: v for k, v in identity.items() if k != "sub"}),
    )


@router.get("/me", response_model=UserResponse)
async def get_me(
    user: CurrentUser = Depends(get_current_user),
) -> UserResponse:
    """Return the current operator's identity."""
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        worker_relation_id=user.worker_relation_id,
        company_ids=user.company_ids,
    )
