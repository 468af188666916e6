"""
Salary Calculator Unit Tests

Gross-to-net estimate, contract aggregation and company allocation.
"""

from decimal import Decimal

import pytest

from engines.schemas.salary import (
    BatchWorkerInput,
    CalculationInput,
    CompanyAggregate,
    ContractInput,
    OtherPayment,
    OtherPaymentsSummary,
    SimpleSalaryInput,
    WorkerOperation,
)
from engines.services.salary_calculator import (
    aggregate_contracts,
    allocate_to_companies,
    calculate_batch_salaries,
    calculate_salary,
    calculate_simple_salary,
    is_valid_company_name,
    resolve_contract_base_amount,
    summarize_other_payments,
)
from tests.factories import make_calculation_input, make_contract_input


class TestSimpleSalary:
    """Test the gross-to-net estimate."""

    def test_overtime_taxes_and_net(self):
        result = calculate_simple_salary(
            SimpleSalaryInput(base_salary=Decimal("2000"), overtime_hours=Decimal("10"))
        )

        # 2000 / 160 = 12.50/h, x 1.5 x 10h
        assert result.overtime_pay == Decimal("187.50")
        assert result.gross_salary == Decimal("2187.50")
        assert result.taxes == Decimal("459.38")
        assert result.social_security == Decimal("137.81")
        assert result.net_salary == Decimal("1590.31")

    def test_deductions_reduce_net_only(self):
        result = calculate_simple_salary(
            SimpleSalaryInput(base_salary=Decimal("1000"), deductions=Decimal("100"))
        )

        assert result.gross_salary == Decimal("1000.00")
        assert result.net_salary == Decimal("1000") - Decimal("210") - Decimal("63") - Decimal("100")

    def test_custom_rates(self):
        result = calculate_simple_salary(
            SimpleSalaryInput(base_salary=Decimal("1000")),
            tax_rate=Decimal("0"),
            social_security_rate=Decimal("0"),
        )
        assert result.net_salary == Decimal("1000.00")


class TestBatchSalaries:
    """Test the multi-worker gross-to-net calculator."""

    def _workers(self):
        return [
            BatchWorkerInput(
                worker_id="w-1",
                worker_name="Ana García",
                base_salary=Decimal("2000"),
                operations=[
                    WorkerOperation(label="Plus", amount=Decimal("100"), type="increase"),
                    WorkerOperation(label="Anticipo", amount=Decimal("50"), type="decrease"),
                ],
            ),
            BatchWorkerInput(
                worker_id="w-2",
                base_salary=Decimal("1600"),
                overtime_hours=Decimal("10"),
            ),
        ]

    def test_operations_feed_bonuses_and_deductions(self):
        result = calculate_batch_salaries(self._workers())

        ana = result.items[0]
        assert ana.worker_name == "Ana García"
        assert ana.bonuses == Decimal("100.00")
        assert ana.deductions == Decimal("50.00")
        assert ana.gross_salary == Decimal("2100.00")
        assert ana.taxes == Decimal("441.00")
        assert ana.social_security == Decimal("132.30")
        assert ana.net_salary == Decimal("1476.70")
        assert ana.operation_increase == Decimal("100.00")
        assert ana.operation_decrease == Decimal("50.00")

    def test_matches_single_estimate_without_operations(self):
        result = calculate_batch_salaries(self._workers())

        single = calculate_simple_salary(
            SimpleSalaryInput(base_salary=Decimal("1600"), overtime_hours=Decimal("10"))
        )
        assert result.items[1].net_salary == single.net_salary == Decimal("1272.25")
        assert result.items[1].operation_increase == Decimal("0.00")

    def test_totals_sum_every_worker(self):
        result = calculate_batch_salaries(self._workers())

        assert [item.worker_id for item in result.items] == ["w-1", "w-2"]
        assert result.totals.gross_salary == Decimal("3850.00")
        assert result.totals.net_salary == Decimal("2748.95")
        assert result.totals.taxes == Decimal("808.50")
        assert result.totals.social_security == Decimal("242.55")
        assert result.totals.overtime_pay == Decimal("150.00")
        assert result.totals.operation_increase == Decimal("100.00")
        assert result.totals.operation_decrease == Decimal("50.00")

    def test_custom_rates_are_passed_through(self):
        result = calculate_batch_salaries(
            self._workers(), tax_rate=Decimal("0"), social_security_rate=Decimal("0")
        )
        assert result.items[0].net_salary == Decimal("2050.00")


class TestCompanyNames:
    @pytest.mark.parametrize("name", [None, "", "   ", "Sin empresa", "EMPRESA SIN NOMBRE"])
    def test_placeholder_names_are_invalid(self, name):
        assert is_valid_company_name(name) is False

    def test_real_name_is_valid(self):
        assert is_valid_company_name("Acme Servicios") is True


class TestContractAggregation:
    """Test per-company aggregation of contract entries."""

    def test_explicit_base_amount_wins_over_rate(self):
        contract = make_contract_input(base_amount=Decimal("300"), hours=Decimal("10"))
        assert resolve_contract_base_amount(contract) == Decimal("300")

    def test_hours_times_rate(self):
        contract = make_contract_input(hours=Decimal("7.5"), hourly_rate=Decimal("10"))
        assert resolve_contract_base_amount(contract) == Decimal("75.0")

    def test_no_rate_gives_zero_base(self):
        contract = make_contract_input(hourly_rate=None)
        assert resolve_contract_base_amount(contract) == Decimal("0")

    def test_groups_by_company_and_orders_by_name(self):
        contracts = [
            make_contract_input(company_id="c-2", company_name="Zeta", hours=Decimal("2")),
            make_contract_input(company_id="c-1", company_name="Acme", hours=Decimal("3")),
            make_contract_input(company_id="c-1", company_name="Acme", hours=Decimal("4")),
        ]

        aggregates = aggregate_contracts(contracts)

        assert aggregates.has_entries is True
        assert [c.company_name for c in aggregates.companies] == ["Acme", "Zeta"]
        assert aggregates.companies[0].hours == Decimal("7")
        assert aggregates.companies[0].base_amount == Decimal("84")
        assert aggregates.total_hours == Decimal("9")

    def test_empty_entries(self):
        contracts = [make_contract_input(hours=Decimal("0"))]
        assert aggregate_contracts(contracts).has_entries is False

    def test_entries_without_contract_are_skipped(self):
        contracts = [
            make_contract_input(company_id="c-1", company_name="Acme", hours=Decimal("3")),
            make_contract_input(
                company_id="c-2",
                company_name="Beta",
                hours=Decimal("8"),
                base_amount=Decimal("500"),
                has_contract=False,
            ),
        ]

        aggregates = aggregate_contracts(contracts)

        assert [c.company_name for c in aggregates.companies] == ["Acme"]
        assert aggregates.total_hours == Decimal("3")
        assert aggregates.total_base_amount == Decimal("36")

    def test_only_entries_without_contract_fall_back_to_base_salary(self):
        input_data = make_calculation_input(
            base_salary=Decimal("1000"),
            contracts=[make_contract_input(has_contract=False)],
            other_payments=[],
            bonuses=Decimal("0"),
        )

        result = calculate_salary(input_data)

        assert result.total_amount == Decimal("1000.00")
        assert result.company_breakdown == []

    def test_name_keys_are_trimmed(self):
        contracts = [
            make_contract_input(company_id=None, company_name="  Gamma ", hours=Decimal("2")),
            make_contract_input(company_id=None, company_name="Gamma", hours=Decimal("1")),
        ]

        aggregates = aggregate_contracts(contracts)

        assert len(aggregates.companies) == 1
        assert aggregates.companies[0].company_key == "name:Gamma"
        assert aggregates.companies[0].company_name == "Gamma"
        assert aggregates.companies[0].hours == Decimal("3")


class TestOtherPaymentsSummary:
    def test_tagged_and_unassigned(self):
        payments = [
            OtherPayment(label="Plus", amount=Decimal("30"), category="supplements", company_key="id:c-1"),
            OtherPayment(label="Anticipo", amount=Decimal("10"), category="debts", company_key="id:c-1"),
            OtherPayment(label="Multa", amount=Decimal("5"), category="discounts"),
            OtherPayment(label="Vacío", amount=Decimal("0"), category="bonuses"),
        ]

        summary = summarize_other_payments(payments, {"id:c-1": "Acme"})

        assert len(summary.by_company) == 1
        acme = summary.by_company[0]
        assert acme.company_name == "Acme"
        assert acme.company_id == "c-1"
        assert acme.incomes == Decimal("30")
        assert acme.expenses == Decimal("10")
        assert acme.total == Decimal("20")
        assert [d.type for d in acme.details] == ["income", "expense"]

        assert summary.unassigned.total == Decimal("-5")
        assert len(summary.unassigned.details) == 1

    def test_name_key_without_lookup_uses_name(self):
        payments = [
            OtherPayment(amount=Decimal("15"), category="bonuses", company_key="name:Gamma"),
        ]
        summary = summarize_other_payments(payments)
        assert summary.by_company[0].company_name == "Gamma"
        assert summary.by_company[0].company_id is None


class TestAllocation:
    """Test distribution of the payable amount across companies."""

    def _companies(self, *rows):
        return [
            CompanyAggregate(
                company_key=f"id:{company_id}",
                company_id=company_id,
                company_name=name,
                hours=Decimal(hours),
            )
            for company_id, name, hours in rows
        ]

    def test_weighted_by_hours(self):
        companies = self._companies(("c-1", "Acme", "10"), ("c-2", "Beta", "5"))

        breakdown = allocate_to_companies(companies, Decimal("220"), OtherPaymentsSummary())

        assert [b.amount for b in breakdown] == [Decimal("146.67"), Decimal("73.33")]

    def test_rounding_residue_goes_to_last_company(self):
        companies = self._companies(("a", "A", "1"), ("b", "B", "1"), ("c", "C", "1"))

        breakdown = allocate_to_companies(companies, Decimal("100"), OtherPaymentsSummary())

        assert [b.amount for b in breakdown] == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
        assert sum(b.amount for b in breakdown) == Decimal("100.00")

    def test_equal_split_without_hours(self):
        companies = self._companies(("a", "A", "0"), ("b", "B", "0"))

        breakdown = allocate_to_companies(companies, Decimal("150"), OtherPaymentsSummary())

        assert [b.amount for b in breakdown] == [Decimal("75.00"), Decimal("75.00")]

    def test_no_companies(self):
        assert allocate_to_companies([], Decimal("100"), OtherPaymentsSummary()) == []


class TestCalculateSalary:
    """Test the full calculation in both modes."""

    def test_base_salary_mode(self):
        result = calculate_salary(
            CalculationInput(
                worker_id="w-1",
                base_salary=Decimal("1000"),
                hours_worked=Decimal("160"),
                overtime_hours=Decimal("10"),
            )
        )

        assert result.overtime_pay == Decimal("93.75")
        assert result.total_amount == Decimal("1093.75")
        assert result.company_breakdown == []
        assert result.uses_calendar_hours is False

    def test_base_salary_overtime_without_hours_is_noted(self):
        result = calculate_salary(
            CalculationInput(worker_id="w-1", base_salary=Decimal("1000"), overtime_hours=Decimal("5"))
        )
        assert result.overtime_pay == Decimal("0.00")
        assert result.calculation_notes

    def test_contract_mode_breakdown(self):
        result = calculate_salary(make_calculation_input())

        assert result.base_amount == Decimal("170.00")
        assert result.bonuses == Decimal("50.00")
        assert result.total_amount == Decimal("220.00")
        assert result.uses_calendar_hours is True
        assert [a.name for a in result.company_breakdown] == ["Acme Servicios", "Beta Logística"]
        assert sum(a.amount for a in result.company_breakdown) == result.total_amount

    def test_contract_mode_overtime_at_average_rate(self):
        result = calculate_salary(make_calculation_input(other_payments=[], overtime_hours=Decimal("3")))

        # 170 / 15h average rate x 1.5 x 3h
        assert result.overtime_pay == Decimal("51.00")
        assert result.total_amount == Decimal("221.00")

    def test_tagged_payment_only_affects_its_company(self):
        input_data = make_calculation_input(
            other_payments=[
                OtherPayment(label="Plus", amount=Decimal("30"), category="bonuses", company_key="id:c-2"),
            ]
        )

        result = calculate_salary(input_data)

        acme, beta = result.company_breakdown
        assert acme.amount == Decimal("113.33")
        assert beta.amount == Decimal("86.67")
        assert beta.other_payments[0].amount == Decimal("30")
        assert result.other_payments_summary.by_company[0].company_name == "Beta Logística"

    def test_tag_only_company_is_appended(self):
        input_data = make_calculation_input(
            other_payments=[
                OtherPayment(label="Extra", amount=Decimal("20"), category="supplements", company_key="name:Gamma"),
            ]
        )

        result = calculate_salary(input_data)

        assert [a.company_key for a in result.company_breakdown][-1] == "name:Gamma"
        gamma = result.company_breakdown[-1]
        assert gamma.hours == Decimal("0")
        assert gamma.amount == Decimal("20.00")
        assert sum(a.amount for a in result.company_breakdown) == Decimal("190.00")

    def test_name_tag_matches_company_with_padded_name(self):
        """A `name:` tag reaches the company even when the contract name carries whitespace."""
        input_data = make_calculation_input(
            contracts=[
                make_contract_input(company_id=None, company_name=" Gamma  ", hours=Decimal("10")),
                make_contract_input(company_id="c-2", company_name="Beta", hours=Decimal("10")),
            ],
            other_payments=[
                OtherPayment(label="Plus", amount=Decimal("40"), category="bonuses", company_key="name: Gamma"),
            ],
        )

        result = calculate_salary(input_data)

        assert [a.company_key for a in result.company_breakdown] == ["id:c-2", "name:Gamma"]
        beta, gamma = result.company_breakdown
        assert beta.amount == Decimal("120.00")
        assert gamma.amount == Decimal("160.00")
        assert gamma.other_payments[0].amount == Decimal("40")

    def test_debit_payments_reduce_total(self):
        input_data = make_calculation_input(
            other_payments=[OtherPayment(label="Anticipo", amount=Decimal("20"), category="debts")]
        )

        result = calculate_salary(input_data)

        assert result.deductions == Decimal("20.00")
        assert result.total_amount == Decimal("150.00")

    def test_placeholder_companies_are_dropped(self):
        input_data = make_calculation_input(
            contracts=[
                make_contract_input(company_id=None, company_name="Sin empresa", hours=Decimal("4")),
                make_contract_input(contract_key="c-1-k-1"),
            ],
            other_payments=[],
        )

        result = calculate_salary(input_data)

        assert len(result.company_breakdown) == 1
        assert result.total_amount == Decimal("120.00")
        assert any("without a company name" in note for note in result.calculation_notes)

    def test_allocation_sums_to_total_within_a_cent(self):
        input_data = CalculationInput(
            worker_id="w-1",
            contracts=[
                ContractInput(
                    contract_key=f"c-{i}",
                    company_id=f"c-{i}",
                    company_name=f"Empresa {i}",
                    hours=Decimal("3.33"),
                    hourly_rate=Decimal("11.11"),
                )
                for i in range(7)
            ],
        )

        result = calculate_salary(input_data)

        drift = abs(sum(a.amount for a in result.company_breakdown) - result.total_amount)
        assert drift <= Decimal("0.01")
