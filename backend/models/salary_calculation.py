"""
SalaryCalculation Model

Saved snapshot of one worker salary calculation: the input as entered,
the computed result and the headline figures used for reporting.
"""

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backend.models.base import Base, OwnedMixin, TimestampMixin


class SalaryCalculation(TimestampMixin, OwnedMixin, Base):
    """Persisted salary calculation for a worker and period."""

    __tablename__ = "salary_calculations"

    id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=uuid4,
    )

    # Worker (owned by the workforce API)
    worker_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Worker parameter id in the external system",
    )
    worker_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    # Period
    period: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="monthly",
        comment="Period type: monthly|weekly|daily",
    )
    year: Mapped[int | None] = mapped_column(nullable=True)
    month: Mapped[int | None] = mapped_column(nullable=True)

    # Headline figures
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Payable amount after all adjustments",
    )
    total_hours: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0"),
    )
    uses_calendar_hours: Mapped[bool] = mapped_column(default=False)

    # Snapshots
    input_data: Mapped[dict] = mapped_column(
        nullable=False,
        comment="CalculationInput as submitted",
    )
    result_data: Mapped[dict] = mapped_column(
        nullable=False,
        comment="CalculationResult as computed",
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_salary_calculations_worker_created", "worker_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<SalaryCalculation(id={self.id}, worker={self.worker_id}, "
            f"total={self.total_amount})>"
        )
