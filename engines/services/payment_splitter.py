"""
Payment Splitter

Splits a payable amount into ordered payment-method tiers.
"""

from decimal import Decimal

from engines.schemas.payment_tiers import (
    CompanyPaymentSplit,
    PaymentSplitResult,
    PaymentTierAmount,
    PaymentTierRule,
)
from engines.schemas.salary import CompanyAllocation, PaymentMethod
from engines.services.salary_calculator import ZERO, to_cents

HUNDRED = Decimal("100")


class PaymentTierError(ValueError):
    """Raised when a set of tier rules cannot be evaluated."""


def _claim(rule: PaymentTierRule, total: Decimal) -> Decimal:
    if rule.kind == "percentage":
        return total * rule.value / HUNDRED
    return rule.value


def split_payment(total: Decimal, rules: list[PaymentTierRule]) -> PaymentSplitResult:
    """
    Evaluate tier rules in order over `total`.

    Each non-remainder rule claims min(claim, remaining), rounded to cents.
    The single remainder rule, wherever it sits in the order, receives what
    is left after all other rules. Without a remainder rule the leftover is
    reported as `unassigned`. A non-positive total yields zero tiers and is
    reported whole as `unassigned`.
    """
    remainder_rules = [rule for rule in rules if rule.applies_to_remainder]
    if len(remainder_rules) > 1:
        raise PaymentTierError(
            f"Only one tier may apply to the remainder, got {len(remainder_rules)}"
        )

    total = to_cents(total)
    remaining = total if total > 0 else ZERO
    # Parallel to `rules`; ids are caller supplied and need not be unique
    amounts: list[Decimal] = [ZERO] * len(rules)

    for index, rule in enumerate(rules):
        if rule.applies_to_remainder:
            continue
        claim = to_cents(_claim(rule, total)) if total > 0 else ZERO
        claim = max(min(claim, remaining), ZERO)
        amounts[index] = claim
        remaining -= claim

    unassigned = ZERO
    if total <= 0:
        unassigned = total
    elif remainder_rules:
        remainder_index = next(i for i, rule in enumerate(rules) if rule.applies_to_remainder)
        amounts[remainder_index] = remaining
    else:
        unassigned = remaining

    tiers: list[PaymentTierAmount] = []
    by_method: dict[PaymentMethod, Decimal] = {}
    for rule, amount in zip(rules, amounts):
        tiers.append(
            PaymentTierAmount(
                rule_id=rule.id,
                label=rule.label,
                payment_method=rule.payment_method,
                amount=amount,
                applies_to_remainder=rule.applies_to_remainder,
            )
        )
        by_method[rule.payment_method] = by_method.get(rule.payment_method, ZERO) + amount

    return PaymentSplitResult(
        total=total,
        tiers=tiers,
        unassigned=unassigned,
        by_method=by_method,
    )


def split_allocations(
    breakdown: list[CompanyAllocation],
    rules: list[PaymentTierRule],
) -> list[CompanyPaymentSplit]:
    """Apply the same tier rules to every company share."""
    return [
        CompanyPaymentSplit(
            company_key=allocation.company_key,
            name=allocation.name,
            split=split_payment(allocation.amount, rules),
        )
        for allocation in breakdown
    ]
