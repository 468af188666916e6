"""
Payment Split MCP Tool

Tiered payment-method splitting exposed as an MCP tool.
"""

from decimal import Decimal

from engines.schemas.payment_tiers import PaymentTierRule
from engines.services.payment_splitter import split_payment

# Use the same MCP instance as salary_engine
from engines.tools.salary_engine import mcp


@mcp.tool()
async def split_payment_tiers(total: float, rules: list[dict]) -> dict:
    """
    Split an amount into ordered payment tiers.

    Each rule claims a fixed amount or a percentage of the total, capped at
    what remains. One rule may set applies_to_remainder to take whatever is
    left after all other rules.

    Args:
        total: Amount to split
        rules: Ordered rules, each with kind ("fixed" or "percentage"),
            value, payment_method ("bank" or "cash"), label, and
            applies_to_remainder

    Returns:
        Dictionary with per-tier amounts, unassigned remainder and totals
        per payment method
    """
    result = split_payment(
        Decimal(str(total)),
        [PaymentTierRule.model_validate(rule) for rule in rules],
    )
    return result.model_dump(mode="json")
