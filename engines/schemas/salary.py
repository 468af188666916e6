"""
Salary Engine Schemas

Input/output models for salary calculation and company allocation.
"""

from decimal import Decimal
from enum import Enum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator


class OtherPaymentCategory(str, Enum):
    """Categories of manual adjustments entered next to a calculation."""

    SUPPLEMENTS = "supplements"
    BONUSES = "bonuses"
    DISCOUNTS = "discounts"
    DEBTS = "debts"
    DEDUCTIONS = "deductions"

    @property
    def is_credit(self) -> bool:
        """Supplements and bonuses add to the payable amount."""
        return self in (OtherPaymentCategory.SUPPLEMENTS, OtherPaymentCategory.BONUSES)


class PaymentMethod(str, Enum):
    """How an amount is paid out."""

    BANK = "bank"
    CASH = "cash"


CalculationPeriod = Literal["monthly", "weekly", "daily"]


def company_key_for(company_id: str | None, company_name: str | None) -> str:
    """`id:<company_id>`, else `name:<trimmed company name>`."""
    if company_id:
        return f"id:{company_id}"
    return f"name:{(company_name or '').strip()}"


class OtherPayment(BaseModel):
    """
    A supplement, bonus, discount, debt or deduction.

    `amount` is entered unsigned; the category decides whether it is
    added to or subtracted from the payable amount. `company_key` tags the
    payment to one company (`id:<company_id>` or `name:<company_name>`);
    untagged payments are spread across all companies by weight.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    label: str = ""
    amount: Decimal = Field(default=Decimal("0"), ge=0)
    category: OtherPaymentCategory
    company_key: str | None = Field(
        default=None,
        description="Company the payment is tagged to (id:<id> or name:<name>)",
    )
    payment_method: PaymentMethod = PaymentMethod.BANK

    @field_validator("company_key")
    @classmethod
    def normalize_company_key(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        v = v.strip()
        if v.startswith("name:"):
            return company_key_for(None, v[len("name:"):])
        return v

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.category.is_credit else -self.amount


class OtherPaymentDetail(BaseModel):
    """Signed detail line of an other payment, as reported in results."""

    id: str
    label: str
    amount: Decimal
    category: OtherPaymentCategory
    type: Literal["income", "expense"]
    payment_method: PaymentMethod


class ContractInput(BaseModel):
    """Hours and pay entered (or auto-filled) for one worker contract."""

    contract_key: str
    company_id: str | None = None
    company_name: str
    label: str | None = None
    has_contract: bool = True
    hours: Decimal = Field(default=Decimal("0"), ge=0)
    base_amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Explicit base pay; takes precedence over hours x rate",
    )
    hourly_rate: Decimal | None = Field(default=None, ge=0)

    @property
    def company_key(self) -> str:
        return company_key_for(self.company_id, self.company_name)


class CalculationInput(BaseModel):
    """Input for a single-worker salary calculation."""

    worker_id: str = Field(..., description="Worker identifier in the external API")
    period: CalculationPeriod = "monthly"

    # Used when no contract entries carry hours or pay
    base_salary: Decimal = Field(default=Decimal("0"), ge=0)
    hours_worked: Decimal = Field(default=Decimal("0"), ge=0)

    overtime_hours: Decimal = Field(default=Decimal("0"), ge=0)
    bonuses: Decimal = Field(default=Decimal("0"), ge=0)
    deductions: Decimal = Field(default=Decimal("0"), ge=0)

    contracts: list[ContractInput] = Field(default_factory=list)
    other_payments: list[OtherPayment] = Field(default_factory=list)
    notes: str | None = None


class CompanyAggregate(BaseModel):
    """Contract hours and base pay summed per company."""

    company_key: str
    company_id: str | None = None
    company_name: str
    hours: Decimal = Decimal("0")
    base_amount: Decimal = Decimal("0")


class ContractAggregates(BaseModel):
    has_entries: bool = False
    total_hours: Decimal = Decimal("0")
    total_base_amount: Decimal = Decimal("0")
    companies: list[CompanyAggregate] = Field(default_factory=list)


class CompanyAllocation(BaseModel):
    """Share of the payable amount attributed to one company."""

    company_key: str
    company_id: str | None = None
    name: str | None = None
    hours: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")
    other_payments: list[OtherPaymentDetail] = Field(default_factory=list)


class CompanyOtherPaymentsSummary(BaseModel):
    company_key: str
    company_name: str
    company_id: str | None = None
    incomes: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    details: list[OtherPaymentDetail] = Field(default_factory=list)


class UnassignedOtherPaymentsSummary(BaseModel):
    incomes: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    total: Decimal = Decimal("0")
    details: list[OtherPaymentDetail] = Field(default_factory=list)


class OtherPaymentsSummary(BaseModel):
    by_company: list[CompanyOtherPaymentsSummary] = Field(default_factory=list)
    unassigned: UnassignedOtherPaymentsSummary = Field(
        default_factory=UnassignedOtherPaymentsSummary
    )


class CalculationResult(BaseModel):
    """
    Output of a salary calculation.

    `company_breakdown` is empty when the calculation was made from a plain
    base salary rather than per-contract entries.
    """

    worker_id: str
    period: CalculationPeriod

    total_amount: Decimal = Field(..., description="Payable amount after all adjustments")
    base_amount: Decimal = Field(..., description="Base pay before overtime and adjustments")
    overtime_pay: Decimal
    bonuses: Decimal = Field(..., description="Bonuses including credit other payments")
    deductions: Decimal = Field(..., description="Deductions including debit other payments")

    total_hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal

    company_breakdown: list[CompanyAllocation] = Field(default_factory=list)
    uses_calendar_hours: bool = False
    other_payments_summary: OtherPaymentsSummary = Field(default_factory=OtherPaymentsSummary)
    calculation_notes: list[str] = Field(default_factory=list)


class SimpleSalaryInput(BaseModel):
    """Input for the gross-to-net estimate of the single worker page."""

    base_salary: Decimal = Field(default=Decimal("0"), ge=0)
    overtime_hours: Decimal = Field(default=Decimal("0"), ge=0)
    bonuses: Decimal = Field(default=Decimal("0"), ge=0)
    deductions: Decimal = Field(default=Decimal("0"), ge=0)


class SimpleSalaryResult(BaseModel):
    base_salary: Decimal
    overtime_pay: Decimal
    bonuses: Decimal
    gross_salary: Decimal
    taxes: Decimal
    social_security: Decimal
    deductions: Decimal
    net_salary: Decimal


class WorkerOperation(BaseModel):
    """Extra amount added to (increase) or discounted from (decrease) one worker."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    label: str = ""
    amount: Decimal = Field(default=Decimal("0"), ge=0)
    type: Literal["increase", "decrease"] = "increase"


class BatchWorkerInput(SimpleSalaryInput):
    """One row of the multi-worker calculator."""

    worker_id: str
    worker_name: str | None = None
    operations: list[WorkerOperation] = Field(default_factory=list)


class BatchSalaryRequest(BaseModel):
    workers: list[BatchWorkerInput] = Field(..., min_length=1)


class BatchWorkerResult(SimpleSalaryResult):
    worker_id: str
    worker_name: str | None = None
    operation_increase: Decimal
    operation_decrease: Decimal


class BatchSalaryTotals(BaseModel):
    gross_salary: Decimal = Decimal("0")
    net_salary: Decimal = Decimal("0")
    taxes: Decimal = Decimal("0")
    social_security: Decimal = Decimal("0")
    overtime_pay: Decimal = Decimal("0")
    bonuses: Decimal = Decimal("0")
    deductions: Decimal = Decimal("0")
    operation_increase: Decimal = Decimal("0")
    operation_decrease: Decimal = Decimal("0")


class BatchSalaryResult(BaseModel):
    """Per-worker estimates in request order plus their column totals."""

    items: list[BatchWorkerResult] = Field(default_factory=list)
    totals: BatchSalaryTotals = Field(default_factory=BatchSalaryTotals)
