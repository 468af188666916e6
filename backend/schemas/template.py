"""
Template Pydantic Schemas

API request/response models for report template endpoints.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from engines.schemas.salary import CalculationInput
from reporting.schemas import ReportTemplate


class TemplateResponse(BaseModel):
    """Stored template with its layout."""

    id: UUID
    template: ReportTemplate
    created_by: str | None
    created_at: datetime
    updated_at: datetime


class TemplateSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    updated_at: datetime


class TemplateRenderRequest(BaseModel):
    """Data sources for rendering a template into a PDF."""

    worker_id: str
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    include_hours: bool = Field(default=True, description="Fetch the worker's hours calendar")
    calculation_id: UUID | None = Field(default=None, description="Saved calculation to embed")
    calculation: CalculationInput | None = Field(
        default=None,
        description="Unsaved calculation to compute and embed",
    )
