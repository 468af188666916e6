"""
PDF Generator Unit Tests
"""

from decimal import Decimal

from engines.schemas.salary import CalculationResult, CompanyAllocation
from reporting.pdf_generator import generate_template_pdf
from reporting.schemas import ReportTemplate, TemplateSection, default_template
from reporting.template_renderer import build_render_context
from tests.factories import make_hours_summary, make_worker


def make_context(with_salary: bool = False):
    calculation = None
    if with_salary:
        calculation = CalculationResult(
            worker_id="w-1",
            period="monthly",
            total_amount=Decimal("1234.56"),
            base_amount=Decimal("1234.56"),
            overtime_pay=Decimal("0"),
            bonuses=Decimal("0"),
            deductions=Decimal("0"),
            total_hours=Decimal("18"),
            regular_hours=Decimal("18"),
            overtime_hours=Decimal("0"),
            company_breakdown=[
                CompanyAllocation(company_key="id:c-1", name="Acme Servicios", hours=Decimal("18"), amount=Decimal("1234.56")),
            ],
        )
    return build_render_context(make_worker(), 2025, 1, make_hours_summary(), calculation)


class TestGenerateTemplatePdf:
    """Test PDF output for different template layouts."""

    def test_default_template(self):
        pdf = generate_template_pdf(default_template(), make_context())

        assert pdf.startswith(b"%PDF")
        assert len(pdf) > 1000

    def test_landscape_two_column_with_salary(self):
        template = ReportTemplate(
            name="Horizontal",
            page_size="A5",
            orientation="landscape",
            accent_color="#10b981",
            sections=[
                TemplateSection(
                    title="Resumen de {{ worker.name }}",
                    body="Horas: {{ totals.totalHours }}\n\nImporte: {{ salary.totalAmount }} <b>",
                    layout="two-column",
                )
            ],
            include_salary_breakdown=True,
        )

        pdf = generate_template_pdf(template, make_context(with_salary=True))

        assert pdf.startswith(b"%PDF")

    def test_empty_template(self):
        template = ReportTemplate(
            name="Vacía",
            header={"title": None, "subtitle": None, "show_worker_info": False, "show_period_summary": False},
            include_daily_breakdown=False,
            include_company_totals=False,
        )

        pdf = generate_template_pdf(template, build_render_context(None, 2025, 1))

        assert pdf.startswith(b"%PDF")
