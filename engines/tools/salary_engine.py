"""
Salary Engine MCP Tool

Salary calculation and company allocation exposed as MCP tools.
"""

from decimal import Decimal

from fastmcp import FastMCP

from engines.schemas.salary import (
    CalculationInput,
    ContractInput,
    OtherPayment,
    SimpleSalaryInput,
)
from engines.services.salary_calculator import calculate_salary, calculate_simple_salary

# Initialize MCP server (will be started from server.py)
mcp = FastMCP("Salary Desk Salary Engine")


@mcp.tool()
async def calculate_gross_to_net(
    base_salary: float,
    overtime_hours: float = 0.0,
    bonuses: float = 0.0,
    deductions: float = 0.0,
) -> dict:
    """
    Estimate net salary from a monthly base salary.

    Overtime is paid at 1.5x the hourly equivalent of the base salary over
    a 160-hour month. Income tax (21%) and social security (6.3%) are flat
    rates over the gross amount.

    Args:
        base_salary: Monthly base salary
        overtime_hours: Overtime hours in the month
        bonuses: Bonuses added to gross
        deductions: Deductions subtracted after taxes

    Returns:
        Dictionary with gross, taxes, social security and net salary
    """
    result = calculate_simple_salary(
        SimpleSalaryInput(
            base_salary=Decimal(str(base_salary)),
            overtime_hours=Decimal(str(overtime_hours)),
            bonuses=Decimal(str(bonuses)),
            deductions=Decimal(str(deductions)),
        )
    )
    return {key: float(value) for key, value in result.model_dump().items()}


@mcp.tool()
async def calculate_worker_salary(
    worker_id: str,
    contracts: list[dict] | None = None,
    other_payments: list[dict] | None = None,
    base_salary: float = 0.0,
    hours_worked: float = 0.0,
    overtime_hours: float = 0.0,
    bonuses: float = 0.0,
    deductions: float = 0.0,
) -> dict:
    """
    Calculate a worker's payable amount and attribute it to companies.

    With contract entries, base pay is the sum of contract amounts (explicit
    base pay, or hours x hourly rate) and the total is split across
    companies by share of hours. Other payments tagged with a company key
    are netted into that company only.

    Args:
        worker_id: Worker identifier in the workforce API
        contracts: Contract entries, each with contract_key, company_name,
            and optionally company_id, hours, base_amount, hourly_rate
        other_payments: Adjustments, each with category (supplements,
            bonuses, discounts, debts, deductions), amount, and optionally
            label, company_key, payment_method
        base_salary: Base salary used when no contract has hours or pay
        hours_worked: Regular hours used when no contract has hours or pay
        overtime_hours: Overtime hours
        bonuses: Bonuses added to the total
        deductions: Deductions subtracted from the total

    Returns:
        Dictionary with totals, per-company breakdown and notes

    Example:
        Two companies with 100 and 60 hours at 10/h, 150 of bonuses:
        - Base: 1600, total 1750
        - Company A: 1750 x 100/160 = 1093.75
        - Company B: 1750 x 60/160 = 656.25
    """
    input_data = CalculationInput(
        worker_id=worker_id,
        base_salary=Decimal(str(base_salary)),
        hours_worked=Decimal(str(hours_worked)),
        overtime_hours=Decimal(str(overtime_hours)),
        bonuses=Decimal(str(bonuses)),
        deductions=Decimal(str(deductions)),
        contracts=[ContractInput.model_validate(c) for c in contracts or []],
        other_payments=[OtherPayment.model_validate(p) for p in other_payments or []],
    )

    result = calculate_salary(input_data)

    # JSON-safe output
    return result.model_dump(mode="json")
