"""
Payment Tier Schemas

Rules for splitting a payable amount across payment methods.
"""

from decimal import Decimal
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

from engines.schemas.salary import PaymentMethod


class PaymentTierRule(BaseModel):
    """
    One ordered tier of a payment split.

    A rule claims either a fixed amount or a percentage of the total, capped
    at what is still unclaimed. A remainder rule takes whatever is left once
    every other rule has been evaluated.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    label: str = ""
    payment_method: PaymentMethod = PaymentMethod.BANK
    kind: Literal["fixed", "percentage"] = "fixed"
    value: Decimal = Field(default=Decimal("0"), ge=0)
    applies_to_remainder: bool = False


class PaymentTierAmount(BaseModel):
    rule_id: str
    label: str
    payment_method: PaymentMethod
    amount: Decimal
    applies_to_remainder: bool = False


class PaymentSplitResult(BaseModel):
    total: Decimal
    tiers: list[PaymentTierAmount] = Field(default_factory=list)
    unassigned: Decimal = Field(
        default=Decimal("0"),
        description="Amount left unclaimed when no remainder rule exists",
    )
    by_method: dict[PaymentMethod, Decimal] = Field(default_factory=dict)


class CompanyPaymentSplit(BaseModel):
    company_key: str
    name: str | None = None
    split: PaymentSplitResult


class PaymentSplitRequest(BaseModel):
    total: Decimal
    rules: list[PaymentTierRule] = Field(default_factory=list)
