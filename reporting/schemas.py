"""
Report Template Schemas

User-editable PDF template definition and the catalogue of tokens a
template may reference.
"""

from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

PageSize = Literal["A3", "A4", "A5", "letter", "legal"]
Orientation = Literal["portrait", "landscape"]

DEFAULT_ACCENT_COLOR = "#2563eb"


class TemplateHeader(BaseModel):
    title: str | None = "Resumen mensual"
    subtitle: str | None = "Reporte automático generado por Salary Desk"
    show_worker_info: bool = True
    show_period_summary: bool = True


class TemplateSection(BaseModel):
    """Free-text block; title and body may contain {{ tokens }}."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str | None = None
    body: str = ""
    layout: Literal["single", "two-column"] = "single"


class TemplateFooter(BaseModel):
    text: str | None = None


class ReportTemplate(BaseModel):
    """Layout and content of a generated PDF report."""

    name: str = Field("Nueva plantilla", min_length=1, max_length=255)
    description: str | None = "Diseña el PDF utilizando los datos de horas y trabajadores"
    page_size: PageSize = "A4"
    orientation: Orientation = "portrait"
    accent_color: str = Field(DEFAULT_ACCENT_COLOR, pattern=r"^#[0-9a-fA-F]{6}$")
    header: TemplateHeader = Field(default_factory=TemplateHeader)
    sections: list[TemplateSection] = Field(default_factory=list)
    include_daily_breakdown: bool = True
    include_company_totals: bool = True
    include_salary_breakdown: bool = False
    footer: TemplateFooter = Field(default_factory=TemplateFooter)


def default_template() -> ReportTemplate:
    return ReportTemplate(
        sections=[
            TemplateSection(
                title="Introducción",
                body=(
                    "Este documento resume las horas trabajadas durante "
                    "{{period.monthName}} del {{period.year}}."
                ),
            )
        ],
        footer=TemplateFooter(
            text="Documento generado automáticamente. Revisar antes de compartir."
        ),
    )


class TemplateToken(BaseModel):
    token: str
    description: str


class TokenCategory(BaseModel):
    category: str
    items: list[TemplateToken]


AVAILABLE_TOKENS: list[TokenCategory] = [
    TokenCategory(
        category="Trabajador",
        items=[
            TemplateToken(token="worker.name", description="Nombre completo"),
            TemplateToken(token="worker.email", description="Correo principal"),
            TemplateToken(token="worker.secondaryEmail", description="Correo secundario"),
            TemplateToken(token="worker.phone", description="Teléfono"),
            TemplateToken(token="worker.department", description="Departamento"),
            TemplateToken(token="worker.position", description="Puesto"),
        ],
    ),
    TokenCategory(
        category="Periodo",
        items=[
            TemplateToken(token="period.monthName", description="Nombre del mes"),
            TemplateToken(token="period.year", description="Año"),
            TemplateToken(token="period.label", description="Mes y año formateado"),
            TemplateToken(token="period.start", description="Fecha inicial"),
            TemplateToken(token="period.end", description="Fecha final"),
        ],
    ),
    TokenCategory(
        category="Totales",
        items=[
            TemplateToken(token="totals.totalHours", description="Horas totales"),
            TemplateToken(token="totals.totalTrackedDays", description="Días con horas"),
            TemplateToken(token="totals.averageHours", description="Promedio diario"),
            TemplateToken(token="totals.noteCount", description="Número de notas"),
        ],
    ),
    TokenCategory(
        category="Salario",
        items=[
            TemplateToken(token="salary.totalAmount", description="Importe total"),
            TemplateToken(token="salary.baseAmount", description="Importe base"),
            TemplateToken(token="salary.overtimePay", description="Horas extra"),
            TemplateToken(token="salary.companyNames", description="Empresas del reparto"),
        ],
    ),
]
