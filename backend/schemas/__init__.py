"""Pydantic API Schemas for Salary Desk."""

from backend.schemas.auth import LoginRequest, TokenResponse, UserResponse
from backend.schemas.calculation import (
    CalculationPreviewRequest,
    CalculationPreviewResponse,
    SalaryCalculationCreate,
    SalaryCalculationListResponse,
    SalaryCalculationResponse,
    SalaryCalculationSummary,
    SalaryReport,
)
from backend.schemas.template import (
    TemplateRenderRequest,
    TemplateResponse,
    TemplateSummary,
)
from backend.schemas.worker import (
    WorkerDetailResponse,
    WorkerListResponse,
    WorkerSummary,
)

__all__ = [
    "LoginRequest",
    "TokenResponse",
    "UserResponse",
    "CalculationPreviewRequest",
    "CalculationPreviewResponse",
    "SalaryCalculationCreate",
    "SalaryCalculationListResponse",
    "SalaryCalculationResponse",
    "SalaryCalculationSummary",
    "SalaryReport",
    "TemplateRenderRequest",
    "TemplateResponse",
    "TemplateSummary",
    "WorkerDetailResponse",
    "WorkerListResponse",
    "WorkerSummary",
]
