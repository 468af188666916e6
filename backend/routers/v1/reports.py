"""
Report API Routes

Aggregates over saved calculations.
"""

from decimal import Decimal

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.db.session import get_db
from backend.middleware.auth import CurrentUser, get_current_user
from backend.models.salary_calculation import SalaryCalculation
from backend.schemas.calculation import SalaryReport
from engines.services.salary_calculator import ZERO, to_cents

router = APIRouter()


def _gross_amount(result_data: dict) -> Decimal:
    """Base pay plus overtime and bonuses of a stored result."""
    return sum(
        (Decimal(str(result_data.get(field) or "0")) for field in ("base_amount", "overtime_pay", "bonuses")),
        ZERO,
    )


@router.get(
    "/workers/{worker_id}/summary",
    response_model=SalaryReport,
    summary="Worker salary report",
    description="Count, averages and hours over a worker's saved calculations.",
)
async def worker_summary(
    worker_id: str,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> SalaryReport:
    result = await db.execute(
        select(SalaryCalculation)
        .where(SalaryCalculation.worker_id == worker_id)
        .order_by(SalaryCalculation.created_at.desc())
    )
    calculations = result.scalars().all()

    if not calculations:
        return SalaryReport(worker_id=worker_id)

    count = Decimal(len(calculations))
    gross_total = sum((_gross_amount(c.result_data) for c in calculations), ZERO)
    net_total = sum((c.total_amount for c in calculations), ZERO)
    hours_total = sum((c.total_hours for c in calculations), ZERO)
    latest = calculations[0]

    return SalaryReport(
        worker_id=worker_id,
        worker_name=next((c.worker_name for c in calculations if c.worker_name), None),
        total_calculations=len(calculations),
        average_gross_salary=to_cents(gross_total / count),
        average_net_salary=to_cents(net_total / count),
        total_hours_worked=hours_total,
        last_calculation_date=latest.created_at,
    )
