"""
Salary Desk - Main Application Entry Point

Salary calculation, company allocation and PDF reporting on top of the
workforce REST API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from backend.config import get_settings
from backend.db.session import engine
from backend.middleware.audit_log import AuditLogMiddleware
from backend.routers.v1 import auth, calculations, reports, templates, workers

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize Sentry for error monitoring
if settings.sentry_dsn:
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=f"salary-desk@{settings.app_version}",
        traces_sample_rate=0.1 if settings.environment == "production" else 1.0,
        integrations=[
            FastApiIntegration(),
            SqlalchemyIntegration(),
        ],
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown events."""
    logger.info(f"Starting {settings.app_name} {settings.app_version} ({settings.environment})")
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description=(
        "Salary Desk computes a worker's payable amount from calendar hours, "
        "allocates it across companies and payment tiers, and exports it "
        "through editable PDF templates."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.debug else None,
    redoc_url="/api/redoc" if settings.debug else None,
    openapi_url="/api/openapi.json" if settings.debug else None,
)

# Audit logging middleware (outermost, captures all requests)
app.add_middleware(AuditLogMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check endpoints
@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "salary-desk-api"}


@app.get("/health/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check with database connectivity."""
    database = "ok"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        database = "unavailable"

    return {
        "status": "ready" if database == "ok" else "degraded",
        "service": "salary-desk-api",
        "version": settings.app_version,
        "environment": settings.environment,
        "database": database,
    }


# API v1 routes
app.include_router(
    auth.router,
    prefix=f"{settings.api_v1_prefix}/auth",
    tags=["Auth"],
)
app.include_router(
    workers.router,
    prefix=f"{settings.api_v1_prefix}/workers",
    tags=["Workers"],
)
app.include_router(
    calculations.router,
    prefix=f"{settings.api_v1_prefix}/calculations",
    tags=["Calculations"],
)
app.include_router(
    reports.router,
    prefix=f"{settings.api_v1_prefix}/reports",
    tags=["Reports"],
)
app.include_router(
    templates.router,
    prefix=f"{settings.api_v1_prefix}/templates",
    tags=["Templates"],
)
