"""
PDF Report Generator

Renders a report template against a worker's monthly context into a PDF.
Uses ReportLab platypus for layout.
"""

import io
import logging
from typing import Any
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A3, A4, A5, landscape, legal, letter, portrait
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import (
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from engines.services.formatting import format_currency, format_hours
from reporting.schemas import ReportTemplate, TemplateSection
from reporting.template_renderer import format_long_date, replace_tokens

logger = logging.getLogger(__name__)

PAGE_SIZES = {"A3": A3, "A4": A4, "A5": A5, "letter": letter, "legal": legal}

TEXT_DARK = colors.HexColor("#0f172a")
TEXT_MUTED = colors.HexColor("#64748b")
LIGHT_GRAY = colors.HexColor("#f8fafc")
BORDER_GRAY = colors.HexColor("#e2e8f0")

EMPTY_CELL = "—"


def _get_styles(accent: colors.Color):
    """Get PDF paragraph styles tinted with the template accent colour."""
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        "ReportTitle",
        parent=styles["Title"],
        fontSize=22,
        alignment=0,
        spaceAfter=6,
        textColor=TEXT_DARK,
    ))
    styles.add(ParagraphStyle(
        "ReportSubtitle",
        parent=styles["Normal"],
        fontSize=12,
        spaceAfter=6,
        textColor=TEXT_MUTED,
    ))
    styles.add(ParagraphStyle(
        "SectionHeader",
        parent=styles["Heading2"],
        fontSize=14,
        textColor=accent,
        spaceBefore=16,
        spaceAfter=8,
    ))
    styles.add(ParagraphStyle(
        "Body",
        parent=styles["Normal"],
        fontSize=10.5,
        leading=16,
        textColor=TEXT_DARK,
    ))
    styles.add(ParagraphStyle(
        "Footer",
        parent=styles["Normal"],
        fontSize=9,
        alignment=1,
        textColor=TEXT_MUTED,
        spaceBefore=18,
    ))
    return styles


def _table_style(accent: colors.Color) -> TableStyle:
    return TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), accent),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("GRID", (0, 0), (-1, -1), 0.5, BORDER_GRAY),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, LIGHT_GRAY]),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
    ])


def _text(value: str) -> str:
    """Escape for Paragraph markup, keeping line breaks."""
    return escape(value).replace("\n", "<br/>")


def _page_size(template: ReportTemplate) -> tuple[float, float]:
    size = PAGE_SIZES.get(template.page_size, A4)
    return landscape(size) if template.orientation == "landscape" else portrait(size)


def _section_flowables(section: TemplateSection, context: dict[str, Any], styles, width: float) -> list:
    flowables = []
    title = replace_tokens(section.title, context)
    if title:
        flowables.append(Paragraph(_text(title), styles["SectionHeader"]))

    body = replace_tokens(section.body, context)
    if section.layout == "two-column":
        paragraphs = [chunk for chunk in body.split("\n\n") if chunk.strip()] or [""]
        middle = (len(paragraphs) + 1) // 2
        left = Paragraph(_text("\n\n".join(paragraphs[:middle])), styles["Body"])
        right = Paragraph(_text("\n\n".join(paragraphs[middle:])), styles["Body"])
        columns = Table([[left, right]], colWidths=[width / 2, width / 2])
        columns.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LEFTPADDING", (0, 0), (0, 0), 0),
            ("RIGHTPADDING", (-1, 0), (-1, 0), 0),
        ]))
        flowables.append(columns)
    else:
        flowables.append(Paragraph(_text(body), styles["Body"]))
    return flowables


def generate_template_pdf(template: ReportTemplate, context: dict[str, Any]) -> bytes:
    """
    Render a template as a PDF.

    `context` is the output of build_render_context. Returns the PDF as
    bytes ready for streaming.
    """
    accent = colors.HexColor(template.accent_color)
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=_page_size(template),
        rightMargin=2 * cm,
        leftMargin=2 * cm,
        topMargin=2 * cm,
        bottomMargin=2 * cm,
        title=replace_tokens(template.header.title, context) or template.name,
    )
    styles = _get_styles(accent)
    width = doc.width
    story = []

    # ── Header ─────────────────────────────────────
    title = replace_tokens(template.header.title, context)
    if title:
        story.append(Paragraph(_text(title), styles["ReportTitle"]))
    subtitle = replace_tokens(template.header.subtitle, context)
    if subtitle:
        story.append(Paragraph(_text(subtitle), styles["ReportSubtitle"]))

    info_rows = []
    worker = context.get("worker")
    if template.header.show_worker_info and worker:
        info_rows.append([
            "Trabajador",
            f"{worker.get('name') or ''}  {worker.get('email') or ''}".strip(),
        ])
    period = context["period"]
    totals = context["totals"]
    if template.header.show_period_summary:
        info_rows.append([
            "Periodo",
            f"{period['label']} ({format_long_date(period['start'])} - {format_long_date(period['end'])})",
        ])
        info_rows.append([
            "Resumen",
            f"{format_hours(totals['totalHours'])} h · {totals['totalTrackedDays']} días",
        ])
    if info_rows:
        info = Table(info_rows, colWidths=[0.25 * width, 0.75 * width])
        info.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("TEXTCOLOR", (0, 0), (0, -1), TEXT_MUTED),
            ("BACKGROUND", (0, 0), (-1, -1), LIGHT_GRAY),
            ("LINEBELOW", (0, -1), (-1, -1), 2, accent),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
            ("TOPPADDING", (0, 0), (-1, -1), 6),
        ]))
        story.append(Spacer(1, 8))
        story.append(info)

    # ── Sections ───────────────────────────────────
    for section in template.sections:
        story.extend(_section_flowables(section, context, styles, width))

    # ── Company totals ─────────────────────────────
    company_totals = context.get("companyTotals") or []
    if template.include_company_totals and company_totals:
        story.append(Paragraph("Horas por empresa", styles["SectionHeader"]))
        rows = [["Empresa", "Horas"]]
        for company in company_totals:
            rows.append([company.get("name") or "Sin empresa", f"{format_hours(company['hours'])} h"])
        t = Table(rows, colWidths=[0.7 * width, 0.3 * width])
        style = _table_style(accent)
        style.add("ALIGN", (1, 0), (1, -1), "RIGHT")
        t.setStyle(style)
        story.append(t)

    # ── Daily breakdown ────────────────────────────
    daily_entries = context.get("dailyEntries") or []
    if template.include_daily_breakdown and daily_entries:
        story.append(Paragraph("Detalle diario", styles["SectionHeader"]))
        rows = [["Fecha", "Horas", "Empresas", "Notas"]]
        for entry in daily_entries:
            companies = " · ".join(
                f"{company.get('name') or ''} ({format_hours(company['hours'])} h)"
                for company in entry["companies"]
            )
            notes = " | ".join(entry["notes"])
            rows.append([
                entry["dateLabel"],
                f"{format_hours(entry['totalHours'])} h",
                Paragraph(_text(companies or EMPTY_CELL), styles["Body"]),
                Paragraph(_text(notes or EMPTY_CELL), styles["Body"]),
            ])
        t = Table(
            rows,
            colWidths=[0.18 * width, 0.14 * width, 0.36 * width, 0.32 * width],
            repeatRows=1,
        )
        style = _table_style(accent)
        style.add("ALIGN", (1, 0), (1, -1), "RIGHT")
        t.setStyle(style)
        story.append(t)

    # ── Salary breakdown ───────────────────────────
    salary = context.get("salary")
    if template.include_salary_breakdown and salary:
        story.append(Paragraph("Reparto por empresa", styles["SectionHeader"]))
        rows = [["Empresa", "Horas", "Importe"]]
        for item in salary["breakdown"]:
            rows.append([
                item["name"] or item["companyKey"],
                f"{format_hours(item['hours'])} h",
                format_currency(item["amount"]),
            ])
        rows.append(["Total", "", format_currency(salary["totalAmount"])])
        t = Table(rows, colWidths=[0.5 * width, 0.2 * width, 0.3 * width])
        style = _table_style(accent)
        style.add("ALIGN", (1, 0), (-1, -1), "RIGHT")
        style.add("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold")
        t.setStyle(style)
        story.append(t)

    # ── Footer ─────────────────────────────────────
    footer = replace_tokens(template.footer.text, context)
    if footer:
        story.append(Paragraph(_text(footer), styles["Footer"]))

    if not story:
        story.append(Spacer(1, 1))

    doc.build(story)
    pdf_bytes = buffer.getvalue()
    buffer.close()

    logger.info(f"Generated report PDF '{template.name}': {len(pdf_bytes)} bytes")
    return pdf_bytes
