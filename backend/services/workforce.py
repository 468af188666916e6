"""
Workforce API Service

FastAPI dependencies that build workforce API clients from settings, plus
the cached worker directory lookup used by the routers.
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException

from backend.config import get_settings
from backend.middleware.auth import CurrentUser, get_current_user
from backend.services import cache
from integrations.base import ExternalAPIError, WorkerData, WorkerDirectory, WorkforceIntegration
from integrations.workforce_api import ExternalWorkforceClient

logger = logging.getLogger(__name__)


def build_client(token: str | None = None) -> ExternalWorkforceClient:
    settings = get_settings()
    return ExternalWorkforceClient(
        base_url=settings.external_api_base_url,
        token=token,
        timeout=settings.external_api_timeout,
        retry_attempts=settings.external_api_retry_attempts,
        enable_users_lookup=settings.enable_users_lookup,
        timezone_offset_hours=settings.schedule_timezone_offset_hours,
        app_source=settings.external_api_app_source,
    )


async def get_login_client() -> AsyncGenerator[ExternalWorkforceClient, None]:
    """Anonymous client used only to exchange credentials for a token."""
    client = build_client()
    try:
        yield client
    finally:
        await client.close()


async def get_workforce(
    user: CurrentUser = Depends(get_current_user),
) -> AsyncGenerator[WorkforceIntegration, None]:
    """Client authenticated with the operator's external token."""
    client = build_client(user.external_token)
    try:
        yield client
    finally:
        await client.close()


def external_error_to_http(error: ExternalAPIError) -> HTTPException:
    """Map a workforce API failure onto a gateway error."""
    logger.warning(f"Workforce API error: {error.message} (status={error.status_code})")
    return HTTPException(status_code=502, detail=f"Workforce API error: {error.message}")


async def load_worker_directory(
    workforce: WorkforceIntegration,
    user: CurrentUser,
    refresh: bool = False,
) -> WorkerDirectory:
    """Worker directory for the operator, served from cache when possible."""
    if not refresh:
        cached = await cache.get_worker_directory(user.external_token)
        if cached is not None:
            return cached

    try:
        directory = await workforce.fetch_workers()
    except ExternalAPIError as e:
        raise external_error_to_http(e) from e

    await cache.set_worker_directory(user.external_token, directory)
    return directory


async def load_worker(
    workforce: WorkforceIntegration,
    user: CurrentUser,
    worker_id: str,
) -> tuple[WorkerData, WorkerDirectory]:
    directory = await load_worker_directory(workforce, user)
    worker = directory.get(worker_id)
    if worker is None:
        raise HTTPException(status_code=404, detail="Worker not found")
    return worker, directory
