"""
Template Renderer

Builds the data context a report template is rendered against and
substitutes `{{ dotted.path }}` tokens in template text.
"""

import calendar
import json
import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from engines.schemas.hours import WorkerHoursSummary
from engines.schemas.salary import CalculationResult
from engines.services.formatting import format_number
from integrations.base import WorkerData

TOKEN_PATTERN = re.compile(r"{{\s*([^}]+?)\s*}}")

MONTH_NAMES = [
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
]

ZERO = Decimal("0")


def format_long_date(value: date) -> str:
    """05 de enero de 2025"""
    return f"{value.day:02d} de {MONTH_NAMES[value.month - 1]} de {value.year}"


def format_day_label(value: date) -> str:
    return f"{value.day:02d} de {MONTH_NAMES[value.month - 1]}"


def _worker_context(worker: WorkerData | None) -> dict[str, Any] | None:
    if worker is None:
        return None
    return {
        "id": worker.id,
        "name": worker.name,
        "email": worker.email,
        "secondaryEmail": worker.secondary_email,
        "phone": worker.phone,
        "role": worker.role,
        "department": worker.department,
        "position": worker.position,
        "companyNames": worker.company_names,
    }


def _salary_context(calculation: CalculationResult | None) -> dict[str, Any] | None:
    if calculation is None:
        return None
    return {
        "totalAmount": calculation.total_amount,
        "baseAmount": calculation.base_amount,
        "overtimePay": calculation.overtime_pay,
        "bonuses": calculation.bonuses,
        "deductions": calculation.deductions,
        "totalHours": calculation.total_hours,
        "companyNames": [item.name or item.company_key for item in calculation.company_breakdown],
        "breakdown": [
            {
                "companyKey": item.company_key,
                "name": item.name,
                "hours": item.hours,
                "amount": item.amount,
            }
            for item in calculation.company_breakdown
        ],
    }


def build_render_context(
    worker: WorkerData | None,
    year: int,
    month: int,
    hours_summary: WorkerHoursSummary | None = None,
    calculation: CalculationResult | None = None,
) -> dict[str, Any]:
    """
    Everything a template can reference, keyed the way tokens spell it
    (camelCase, e.g. `totals.totalHours`).
    """
    hours_summary = hours_summary or WorkerHoursSummary()
    first_day = date(year, month, 1)
    last_day = date(year, month, calendar.monthrange(year, month)[1])

    daily_entries = []
    for date_key in sorted(hours_summary.hours_by_date):
        day = hours_summary.hours_by_date[date_key]
        daily_entries.append(
            {
                "dateKey": date_key,
                "dateLabel": format_day_label(date.fromisoformat(date_key)),
                "totalHours": day.total_hours,
                "notes": list(day.notes),
                "companies": [
                    {"companyId": c.company_id, "name": c.name, "hours": c.hours}
                    for c in day.companies
                ],
            }
        )

    tracked_days = hours_summary.total_tracked_days
    average_hours = hours_summary.total_hours / tracked_days if tracked_days > 0 else ZERO

    return {
        "worker": _worker_context(worker),
        "period": {
            "month": month,
            "monthName": MONTH_NAMES[month - 1],
            "year": year,
            "label": f"{MONTH_NAMES[month - 1]} de {year}",
            "start": first_day,
            "end": last_day,
        },
        "totals": {
            "totalHours": hours_summary.total_hours,
            "totalTrackedDays": tracked_days,
            "averageHours": average_hours,
            "noteCount": sum(len(entry["notes"]) for entry in daily_entries),
        },
        "dailyEntries": daily_entries,
        "companyTotals": [
            {"companyId": c.company_id, "name": c.name, "hours": c.hours}
            for c in hours_summary.company_totals
        ],
        "salary": _salary_context(calculation),
    }


def resolve_path(path: str, context: dict[str, Any]) -> Any:
    """Walk a dotted path; numeric parts index into lists."""
    parts = [part.strip() for part in path.split(".") if part.strip()]
    if not parts:
        return None

    current: Any = context
    for part in parts:
        if current is None:
            return None
        if isinstance(current, list):
            try:
                index = int(part)
            except ValueError:
                return None
            current = current[index] if -len(current) <= index < len(current) else None
        elif isinstance(current, dict):
            current = current.get(part)
        else:
            return None
    return current


def format_token_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(format_token_value(item) for item in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return format_long_date(value.date())
    if isinstance(value, date):
        return format_long_date(value)
    if isinstance(value, (int, float, Decimal)):
        decimal_value = Decimal(str(value))
        digits = 0 if decimal_value == decimal_value.to_integral_value() else 2
        return format_number(decimal_value, max_fraction=digits)
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def replace_tokens(text: str | None, context: dict[str, Any]) -> str:
    """Substitute every {{ token }}; unknown paths render as empty text."""
    if not text:
        return ""
    return TOKEN_PATTERN.sub(
        lambda match: format_token_value(resolve_path(match.group(1), context)),
        text,
    )
