"""
Calculation Pydantic Schemas

API request/response models for Calculation endpoints.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from engines.schemas.payment_tiers import (
    CompanyPaymentSplit,
    PaymentSplitResult,
    PaymentTierRule,
)
from engines.schemas.salary import CalculationInput, CalculationPeriod, CalculationResult


class CalculationPreviewRequest(BaseModel):
    """Calculate without saving, optionally splitting the result into tiers."""

    input: CalculationInput
    payment_rules: list[PaymentTierRule] = Field(
        default_factory=list,
        description="Tier rules applied to the total and to each company share",
    )


class CalculationPreviewResponse(BaseModel):
    result: CalculationResult
    payment_split: PaymentSplitResult | None = None
    company_splits: list[CompanyPaymentSplit] = Field(default_factory=list)


class SalaryCalculationCreate(BaseModel):
    """Schema for saving a calculation."""

    worker_name: str | None = Field(default=None, max_length=255)
    year: int | None = Field(default=None, ge=2000, le=2100)
    month: int | None = Field(default=None, ge=1, le=12)
    input: CalculationInput


class SalaryCalculationResponse(BaseModel):
    """Schema for a saved calculation."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    worker_id: str
    worker_name: str | None
    period: CalculationPeriod
    year: int | None
    month: int | None
    total_amount: Decimal
    total_hours: Decimal
    uses_calendar_hours: bool
    input_data: dict
    result_data: dict
    notes: str | None
    created_by: str | None
    created_at: datetime
    updated_at: datetime


class SalaryCalculationSummary(BaseModel):
    """Summary schema for saved calculation listing."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    worker_id: str
    worker_name: str | None
    period: CalculationPeriod
    year: int | None
    month: int | None
    total_amount: Decimal
    total_hours: Decimal
    created_at: datetime


class SalaryCalculationListResponse(BaseModel):
    """Schema for paginated calculation list."""

    items: list[SalaryCalculationSummary]
    total: int
    page: int
    page_size: int
    pages: int


class SalaryReport(BaseModel):
    """Aggregates over a worker's saved calculations."""

    worker_id: str
    worker_name: str | None = None
    total_calculations: int = 0
    average_gross_salary: Decimal = Decimal("0")
    average_net_salary: Decimal = Decimal("0")
    total_hours_worked: Decimal = Decimal("0")
    last_calculation_date: datetime | None = None
