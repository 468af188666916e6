"""
Salary Calculator

Pure calculation logic for a worker's payable amount and its attribution
to the companies the worker holds contracts with.
"""

from decimal import ROUND_HALF_UP, Decimal

from engines.schemas.salary import (
    BatchSalaryResult,
    BatchSalaryTotals,
    BatchWorkerInput,
    BatchWorkerResult,
    CalculationInput,
    CalculationResult,
    CompanyAggregate,
    CompanyAllocation,
    CompanyOtherPaymentsSummary,
    ContractAggregates,
    ContractInput,
    OtherPayment,
    OtherPaymentCategory,
    OtherPaymentDetail,
    OtherPaymentsSummary,
    SimpleSalaryInput,
    SimpleSalaryResult,
    UnassignedOtherPaymentsSummary,
)

OVERTIME_MULTIPLIER = Decimal("1.5")
STANDARD_MONTHLY_HOURS = Decimal("160")
TAX_RATE = Decimal("0.21")
SOCIAL_SECURITY_RATE = Decimal("0.063")

CENT = Decimal("0.01")
ZERO = Decimal("0")

PLACEHOLDER_COMPANY_NAMES = {"sin empresa", "empresa sin nombre"}


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def is_valid_company_name(name: str | None) -> bool:
    """Reject blank names and the placeholders the workforce API uses."""
    normalized = (name or "").strip().lower()
    if not normalized:
        return False
    return normalized not in PLACEHOLDER_COMPANY_NAMES


def _name_sort_key(name: str | None) -> str:
    return (name or "").casefold()


def calculate_simple_salary(
    input_data: SimpleSalaryInput,
    overtime_multiplier: Decimal = OVERTIME_MULTIPLIER,
    standard_monthly_hours: Decimal = STANDARD_MONTHLY_HOURS,
    tax_rate: Decimal = TAX_RATE,
    social_security_rate: Decimal = SOCIAL_SECURITY_RATE,
) -> SimpleSalaryResult:
    """
    Gross-to-net estimate for a monthly salary.

    Overtime is paid at `overtime_multiplier` times the hourly equivalent of
    the base salary over a standard month. Taxes and social security are
    flat rates over the gross amount.
    """
    overtime_pay = ZERO
    if input_data.overtime_hours > 0 and standard_monthly_hours > 0:
        hourly = input_data.base_salary / standard_monthly_hours
        overtime_pay = input_data.overtime_hours * hourly * overtime_multiplier

    gross = input_data.base_salary + overtime_pay + input_data.bonuses
    taxes = gross * tax_rate
    social_security = gross * social_security_rate
    net = gross - taxes - social_security - input_data.deductions

    return SimpleSalaryResult(
        base_salary=to_cents(input_data.base_salary),
        overtime_pay=to_cents(overtime_pay),
        bonuses=to_cents(input_data.bonuses),
        gross_salary=to_cents(gross),
        taxes=to_cents(taxes),
        social_security=to_cents(social_security),
        deductions=to_cents(input_data.deductions),
        net_salary=to_cents(net),
    )


def calculate_batch_salaries(
    workers: list[BatchWorkerInput],
    **rates: Decimal,
) -> BatchSalaryResult:
    """
    Gross-to-net estimates for several workers at once.

    Each worker's increase operations are added to its bonuses and its
    decrease operations to its deductions before the estimate. `rates` are
    passed through to `calculate_simple_salary`.
    """
    items: list[BatchWorkerResult] = []
    totals = BatchSalaryTotals()

    for worker in workers:
        increase = sum((op.amount for op in worker.operations if op.type == "increase"), ZERO)
        decrease = sum((op.amount for op in worker.operations if op.type == "decrease"), ZERO)
        estimate = calculate_simple_salary(
            SimpleSalaryInput(
                base_salary=worker.base_salary,
                overtime_hours=worker.overtime_hours,
                bonuses=worker.bonuses + increase,
                deductions=worker.deductions + decrease,
            ),
            **rates,
        )
        item = BatchWorkerResult(
            **estimate.model_dump(),
            worker_id=worker.worker_id,
            worker_name=worker.worker_name,
            operation_increase=to_cents(increase),
            operation_decrease=to_cents(decrease),
        )
        items.append(item)

        for name in BatchSalaryTotals.model_fields:
            setattr(totals, name, getattr(totals, name) + getattr(item, name))

    return BatchSalaryResult(items=items, totals=totals)


def resolve_contract_base_amount(contract: ContractInput) -> Decimal:
    """Explicit base pay wins; otherwise hours x hourly rate when both are set."""
    if contract.base_amount > 0:
        return contract.base_amount
    rate = contract.hourly_rate or ZERO
    if contract.hours > 0 and rate > 0:
        return contract.hours * rate
    return ZERO


def aggregate_contracts(contracts: list[ContractInput]) -> ContractAggregates:
    """
    Sum contract hours and base pay per company, ordered by company name.

    Entries without a formal contract (`has_contract=False`) are not counted.
    """
    per_company: dict[str, CompanyAggregate] = {}
    total_hours = ZERO
    total_base = ZERO
    has_entries = False

    for contract in contracts:
        if not contract.has_contract:
            continue
        base_amount = resolve_contract_base_amount(contract)
        if contract.hours != 0 or base_amount != 0:
            has_entries = True

        total_hours += contract.hours
        total_base += base_amount

        key = contract.company_key
        aggregate = per_company.get(key)
        if aggregate is None:
            aggregate = CompanyAggregate(
                company_key=key,
                company_id=contract.company_id,
                company_name=contract.company_name.strip(),
            )
            per_company[key] = aggregate
        aggregate.hours += contract.hours
        aggregate.base_amount += base_amount

    companies = sorted(per_company.values(), key=lambda c: _name_sort_key(c.company_name))
    return ContractAggregates(
        has_entries=has_entries,
        total_hours=total_hours,
        total_base_amount=total_base,
        companies=companies,
    )


def _payment_detail(payment: OtherPayment) -> OtherPaymentDetail:
    return OtherPaymentDetail(
        id=payment.id,
        label=payment.label,
        amount=payment.signed_amount,
        category=payment.category,
        type="income" if payment.category.is_credit else "expense",
        payment_method=payment.payment_method,
    )


def _company_name_from_key(company_key: str) -> str:
    if company_key.startswith("name:"):
        return company_key[len("name:"):]
    return company_key


def summarize_other_payments(
    payments: list[OtherPayment],
    company_names: dict[str, str] | None = None,
) -> OtherPaymentsSummary:
    """Group other payments by tagged company, in category order."""
    company_names = company_names or {}
    by_company: dict[str, CompanyOtherPaymentsSummary] = {}
    unassigned = UnassignedOtherPaymentsSummary()

    for category in OtherPaymentCategory:
        for payment in payments:
            if payment.category != category or payment.amount == 0:
                continue
            detail = _payment_detail(payment)

            if payment.company_key is None:
                target = unassigned
            else:
                target = by_company.get(payment.company_key)
                if target is None:
                    company_id = None
                    if payment.company_key.startswith("id:"):
                        company_id = payment.company_key[len("id:"):]
                    target = CompanyOtherPaymentsSummary(
                        company_key=payment.company_key,
                        company_name=company_names.get(
                            payment.company_key, _company_name_from_key(payment.company_key)
                        ),
                        company_id=company_id,
                    )
                    by_company[payment.company_key] = target

            if detail.type == "income":
                target.incomes += payment.amount
            else:
                target.expenses += payment.amount
            target.total += detail.amount
            target.details.append(detail)

    return OtherPaymentsSummary(
        by_company=sorted(by_company.values(), key=lambda s: _name_sort_key(s.company_name)),
        unassigned=unassigned,
    )


def allocate_to_companies(
    companies: list[CompanyAggregate],
    total_amount: Decimal,
    other_payments: OtherPaymentsSummary,
) -> list[CompanyAllocation]:
    """
    Attribute `total_amount` to companies.

    Weight per company is its share of regular hours, or an equal split when
    no hours were recorded. Payments tagged to a company are netted into that
    company only; everything else (base pay, overtime, bonuses, deductions
    and untagged payments) is spread by weight. Amounts are rounded to cents
    and the rounding residue goes entirely to the last company in breakdown
    order.

    Breakdown order: companies with contract entries (already name ordered),
    then companies that only appear as payment tags, by name.
    """
    base_map = {company.company_key: company for company in companies}
    tagged = {summary.company_key: summary for summary in other_payments.by_company}

    additional_keys = [
        summary.company_key
        for summary in other_payments.by_company
        if summary.company_key not in base_map
    ]
    ordered_keys = [company.company_key for company in companies] + additional_keys
    if not ordered_keys:
        return []

    regular_hours = sum((company.hours for company in companies), ZERO)
    tagged_total = sum((summary.total for summary in other_payments.by_company), ZERO)
    distributable = total_amount - tagged_total
    company_count = len(ordered_keys)

    breakdown: list[CompanyAllocation] = []
    for key in ordered_keys:
        base_entry = base_map.get(key)
        tag_entry = tagged.get(key)
        hours = base_entry.hours if base_entry else ZERO

        if regular_hours > 0:
            weight = hours / regular_hours
        else:
            weight = Decimal(1) / Decimal(company_count)

        amount = distributable * weight
        company_id = None
        name = None
        details: list[OtherPaymentDetail] = []
        if tag_entry is not None:
            amount += tag_entry.total
            company_id = tag_entry.company_id
            name = tag_entry.company_name
            details = tag_entry.details
        if base_entry is not None:
            company_id = base_entry.company_id
            name = base_entry.company_name

        breakdown.append(
            CompanyAllocation(
                company_key=key,
                company_id=company_id,
                name=name,
                hours=hours,
                amount=to_cents(amount),
                other_payments=details,
            )
        )

    residual = to_cents(total_amount) - sum((item.amount for item in breakdown), ZERO)
    if residual != 0:
        breakdown[-1].amount += residual

    return breakdown


def calculate_salary(
    input_data: CalculationInput,
    overtime_multiplier: Decimal = OVERTIME_MULTIPLIER,
) -> CalculationResult:
    """
    Calculate a worker's payable amount for a period.

    Two modes:
    1. Contract mode (any contract carries hours or pay): base pay is the
       sum of contract base amounts, overtime is paid at the average contract
       rate times `overtime_multiplier`, and the total is allocated to
       companies.
    2. Base salary mode: overtime is paid at base_salary / hours_worked times
       `overtime_multiplier`; no company breakdown is produced.

    Credit other payments (supplements, bonuses) are added to bonuses and
    debit ones (discounts, debts, deductions) to deductions in both modes.
    """
    notes: list[str] = []

    credits = sum(
        (p.amount for p in input_data.other_payments if p.category.is_credit), ZERO
    )
    debits = sum(
        (p.amount for p in input_data.other_payments if not p.category.is_credit), ZERO
    )
    bonuses = input_data.bonuses + credits
    deductions = input_data.deductions + debits
    overtime_hours = input_data.overtime_hours

    aggregates = aggregate_contracts(input_data.contracts)

    if not aggregates.has_entries:
        base_salary = input_data.base_salary
        regular_hours = input_data.hours_worked
        overtime_pay = ZERO
        if overtime_hours > 0 and regular_hours > 0:
            overtime_pay = base_salary / regular_hours * overtime_hours * overtime_multiplier
        elif overtime_hours > 0:
            notes.append("Overtime not paid: no regular hours to derive an hourly rate")

        total_amount = base_salary + overtime_pay + bonuses - deductions

        return CalculationResult(
            worker_id=input_data.worker_id,
            period=input_data.period,
            total_amount=to_cents(total_amount),
            base_amount=to_cents(base_salary),
            overtime_pay=to_cents(overtime_pay),
            bonuses=to_cents(bonuses),
            deductions=to_cents(deductions),
            total_hours=regular_hours + overtime_hours,
            regular_hours=regular_hours,
            overtime_hours=overtime_hours,
            company_breakdown=[],
            uses_calendar_hours=False,
            other_payments_summary=summarize_other_payments(input_data.other_payments),
            calculation_notes=notes,
        )

    companies = [c for c in aggregates.companies if is_valid_company_name(c.company_name)]
    dropped = len(aggregates.companies) - len(companies)
    if dropped:
        notes.append(f"Ignored {dropped} contract group(s) without a company name")

    regular_hours = sum((c.hours for c in companies), ZERO)
    base_total = sum((c.base_amount for c in companies), ZERO)

    average_rate = ZERO
    if regular_hours > 0 and base_total > 0:
        average_rate = base_total / regular_hours

    overtime_pay = ZERO
    if overtime_hours > 0 and average_rate > 0:
        overtime_pay = overtime_hours * average_rate * overtime_multiplier
    elif overtime_hours > 0:
        notes.append("Overtime not paid: no contract rate to derive an hourly rate")

    total_amount = base_total + overtime_pay + bonuses - deductions

    company_names = {c.company_key: c.company_name for c in companies}
    payments_summary = summarize_other_payments(input_data.other_payments, company_names)
    breakdown = allocate_to_companies(companies, total_amount, payments_summary)
    if not breakdown:
        notes.append("No company to allocate the amount to")

    return CalculationResult(
        worker_id=input_data.worker_id,
        period=input_data.period,
        total_amount=to_cents(total_amount),
        base_amount=to_cents(base_total),
        overtime_pay=to_cents(overtime_pay),
        bonuses=to_cents(bonuses),
        deductions=to_cents(deductions),
        total_hours=regular_hours + overtime_hours,
        regular_hours=regular_hours,
        overtime_hours=overtime_hours,
        company_breakdown=breakdown,
        uses_calendar_hours=regular_hours > 0,
        other_payments_summary=payments_summary,
        calculation_notes=notes,
    )
