"""
Calculation API Routes

Stateless calculation endpoints (simple estimate, preview, tier split,
hours auto-fill) and CRUD for saved calculations.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import get_settings
from backend.db.session import get_db
from backend.middleware.auth import CurrentUser, get_current_user
from backend.models.salary_calculation import SalaryCalculation
from backend.schemas.calculation import (
    CalculationPreviewRequest,
    CalculationPreviewResponse,
    SalaryCalculationCreate,
    SalaryCalculationListResponse,
    SalaryCalculationResponse,
    SalaryCalculationSummary,
)
from engines.schemas.autofill import AutoFillRequest, AutoFillResponse
from engines.schemas.payment_tiers import PaymentSplitRequest, PaymentSplitResult
from engines.schemas.salary import (
    BatchSalaryRequest,
    BatchSalaryResult,
    CalculationInput,
    CalculationResult,
    SimpleSalaryInput,
    SimpleSalaryResult,
)
from engines.services.autofill import AutoFillError, apply_action
from engines.services.payment_splitter import PaymentTierError, split_allocations, split_payment
from engines.services.salary_calculator import (
    calculate_batch_salaries,
    calculate_salary,
    calculate_simple_salary,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def run_calculation(input_data: CalculationInput) -> CalculationResult:
    """Calculate with the configured overtime multiplier."""
    return calculate_salary(input_data, overtime_multiplier=get_settings().overtime_multiplier)


async def get_calculation_or_404(calculation_id: UUID, db: AsyncSession) -> SalaryCalculation:
    """Helper to get a saved calculation or raise 404."""
    result = await db.execute(
        select(SalaryCalculation).where(SalaryCalculation.id == calculation_id)
    )
    calculation = result.scalar_one_or_none()
    if not calculation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Calculation {calculation_id} not found",
        )
    return calculation


# ── Stateless Calculations ────────────────────────────


@router.post(
    "/simple",
    response_model=SimpleSalaryResult,
    summary="Gross-to-net estimate",
)
async def simple_salary(
    request: SimpleSalaryInput,
    user: CurrentUser = Depends(get_current_user),
) -> SimpleSalaryResult:
    settings = get_settings()
    return calculate_simple_salary(
        request,
        overtime_multiplier=settings.overtime_multiplier,
        standard_monthly_hours=settings.standard_monthly_hours,
        tax_rate=settings.tax_rate,
        social_security_rate=settings.social_security_rate,
    )


@router.post(
    "/simple/batch",
    response_model=BatchSalaryResult,
    summary="Gross-to-net estimates for several workers",
    description="Multi-worker calculator: one estimate per worker, with per-worker increase and decrease operations.",
)
async def batch_simple_salary(
    request: BatchSalaryRequest,
    user: CurrentUser = Depends(get_current_user),
) -> BatchSalaryResult:
    settings = get_settings()
    return calculate_batch_salaries(
        request.workers,
        overtime_multiplier=settings.overtime_multiplier,
        standard_monthly_hours=settings.standard_monthly_hours,
        tax_rate=settings.tax_rate,
        social_security_rate=settings.social_security_rate,
    )


@router.post(
    "/preview",
    response_model=CalculationPreviewResponse,
    summary="Preview a calculation",
    description="Calculate a worker's pay and company breakdown without saving it.",
)
async def preview_calculation(
    request: CalculationPreviewRequest,
    user: CurrentUser = Depends(get_current_user),
) -> CalculationPreviewResponse:
    result = run_calculation(request.input)

    if not request.payment_rules:
        return CalculationPreviewResponse(result=result)

    try:
        payment_split = split_payment(result.total_amount, request.payment_rules)
        company_splits = split_allocations(result.company_breakdown, request.payment_rules)
    except PaymentTierError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return CalculationPreviewResponse(
        result=result,
        payment_split=payment_split,
        company_splits=company_splits,
    )


@router.post(
    "/split",
    response_model=PaymentSplitResult,
    summary="Split an amount into payment tiers",
)
async def split_amount(
    request: PaymentSplitRequest,
    user: CurrentUser = Depends(get_current_user),
) -> PaymentSplitResult:
    try:
        return split_payment(request.total, request.rules)
    except PaymentTierError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


@router.post(
    "/autofill",
    response_model=AutoFillResponse,
    summary="Apply an hours auto-fill action",
    description="Fill contract hours from the calendar, toggle groups or record manual hours.",
)
async def autofill_hours(
    request: AutoFillRequest,
    user: CurrentUser = Depends(get_current_user),
) -> AutoFillResponse:
    try:
        return apply_action(request)
    except AutoFillError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e


# ── Saved Calculations ────────────────────────────────


@router.post(
    "/",
    response_model=SalaryCalculationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save calculation",
)
async def create_calculation(
    request: SalaryCalculationCreate,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> SalaryCalculationResponse:
    """Calculate and store a snapshot of input and result."""
    result = run_calculation(request.input)

    calculation = SalaryCalculation(
        worker_id=request.input.worker_id,
        worker_name=request.worker_name,
        period=request.input.period,
        year=request.year,
        month=request.month,
        total_amount=result.total_amount,
        total_hours=result.total_hours,
        uses_calendar_hours=result.uses_calendar_hours,
        input_data=request.input.model_dump(mode="json"),
        result_data=result.model_dump(mode="json"),
        notes=request.input.notes,
        created_by=user.id,
    )
    db.add(calculation)
    await db.flush()
    await db.refresh(calculation)

    logger.info(
        f"Saved calculation {calculation.id} for worker {calculation.worker_id}: "
        f"{calculation.total_amount}"
    )
    return SalaryCalculationResponse.model_validate(calculation)


@router.get(
    "/",
    response_model=SalaryCalculationListResponse,
    summary="List saved calculations",
)
async def list_calculations(
    worker_id: str | None = None,
    year: int | None = None,
    month: int | None = Query(None, ge=1, le=12),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> SalaryCalculationListResponse:
    query = select(SalaryCalculation)
    if worker_id:
        query = query.where(SalaryCalculation.worker_id == worker_id)
    if year:
        query = query.where(SalaryCalculation.year == year)
    if month:
        query = query.where(SalaryCalculation.month == month)

    # Get total count
    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    # Apply pagination
    offset = (page - 1) * page_size
    query = query.order_by(SalaryCalculation.created_at.desc())
    query = query.offset(offset).limit(page_size)

    result = await db.execute(query)
    calculations = result.scalars().all()

    return SalaryCalculationListResponse(
        items=[SalaryCalculationSummary.model_validate(c) for c in calculations],
        total=total,
        page=page,
        page_size=page_size,
        pages=(total + page_size - 1) // page_size,
    )


@router.get(
    "/{calculation_id}",
    response_model=SalaryCalculationResponse,
    summary="Get saved calculation",
)
async def get_calculation(
    calculation_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> SalaryCalculationResponse:
    calculation = await get_calculation_or_404(calculation_id, db)
    return SalaryCalculationResponse.model_validate(calculation)


@router.delete(
    "/{calculation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete saved calculation",
)
async def delete_calculation(
    calculation_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> None:
    calculation = await get_calculation_or_404(calculation_id, db)
    await db.delete(calculation)
    await db.flush()
    logger.info(f"Deleted calculation {calculation_id}")
