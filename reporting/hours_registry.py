"""
Hours Registry Export

Builds the "control horario" workbook: a summary sheet with each worker's
hours, hourly rate and amount per company, followed by one daily sheet per
worker with entry and exit times, hours and notes.
"""

import calendar
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.worksheet.worksheet import Worksheet

from engines.schemas.hours import DayHoursSummary, WorkerHoursSummary
from engines.services.hours import parse_time_to_minutes
from engines.services.salary_calculator import ZERO, to_cents
from integrations.base import WorkerData

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"]

SUMMARY_SHEET = "Resumen"
SUMMARY_HEADERS = ["EMPLEADO", "UBICACIÓN", "HORAS", "€/HORA", "IMPORTE €"]
DAILY_HEADERS = ["FECHA", "DÍA", "ENTRADA", "SALIDA", "HORAS", "OBSERVACIONES"]

HOURS_EPSILON = Decimal("0.01")
SHEET_NAME_LIMIT = 31
_RESTRICTED_SHEET_CHARS = re.compile(r"[\\/?*\[\]:]")

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="1E3A8A", end_color="1E3A8A", fill_type="solid")
TOTAL_FONT = Font(bold=True)
TITLE_FONT = Font(bold=True, size=14)


class HoursRegistryError(ValueError):
    """Raised when there is nothing to export."""


@dataclass
class CompanyHoursRow:
    company_name: str
    hours: Decimal
    hourly_rate: Decimal | None = None

    @property
    def amount(self) -> Decimal | None:
        if self.hourly_rate is None:
            return None
        return to_cents(self.hours * self.hourly_rate)


@dataclass
class DailyRow:
    date_label: str
    day_label: str
    entry_time: str | None = None
    exit_time: str | None = None
    total_hours: Decimal | None = None
    notes: str | None = None


@dataclass
class WorkerRegistry:
    worker_id: str
    worker_name: str
    rows: list[CompanyHoursRow] = field(default_factory=list)
    daily_rows: list[DailyRow] = field(default_factory=list)

    @property
    def total_hours(self) -> Decimal:
        return sum((row.hours for row in self.rows), ZERO)

    @property
    def total_amount(self) -> Decimal:
        return sum((row.amount for row in self.rows if row.amount is not None), ZERO)

    @property
    def has_daily_data(self) -> bool:
        return any(
            (row.total_hours is not None and abs(row.total_hours) >= HOURS_EPSILON) or row.notes
            for row in self.daily_rows
        )


def resolve_hourly_rate(
    worker: WorkerData,
    company_id: str | None,
    company_name: str | None,
) -> Decimal | None:
    """Rate of the worker's first contract at the company, else the worker's own rate."""
    name = (company_name or "").strip().casefold()
    for contract in worker.contracts:
        if contract.hourly_rate is None:
            continue
        if company_id and contract.company_id == company_id:
            return contract.hourly_rate
        if not company_id and name and contract.company_name.strip().casefold() == name:
            return contract.hourly_rate
    return worker.hourly_rate


def _format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def shift_boundaries(day: DayHoursSummary) -> tuple[str | None, str | None]:
    """Earliest shift start and latest shift end of a day, as HH:MM."""
    starts: list[int] = []
    ends: list[int] = []
    for entry in day.entries:
        for shift in entry.work_shifts:
            start = parse_time_to_minutes(shift.start_time)
            end = parse_time_to_minutes(shift.end_time)
            if start is not None:
                starts.append(start)
            if end is not None:
                ends.append(end)
    return (
        _format_minutes(min(starts)) if starts else None,
        _format_minutes(max(ends)) if ends else None,
    )


def day_notes(day: DayHoursSummary) -> str | None:
    """Unique note texts of a day joined with " | "."""
    texts = [note.text.strip() for note in day.note_entries if note.text and note.text.strip()]
    if not texts:
        texts = [note.strip() for note in day.notes if note and note.strip()]
    unique = list(dict.fromkeys(texts))
    return " | ".join(unique) if unique else None


def build_daily_rows(summary: WorkerHoursSummary, year: int, month: int) -> list[DailyRow]:
    """One row per calendar day of the month, upper-cased as printed."""
    rows: list[DailyRow] = []
    for day_number in range(1, calendar.monthrange(year, month)[1] + 1):
        current = date(year, month, day_number)
        day = summary.hours_by_date.get(current.isoformat())
        row = DailyRow(
            date_label=current.strftime("%d/%m/%Y"),
            day_label=WEEKDAY_NAMES[current.weekday()].upper(),
        )
        if day is not None:
            entry_time, exit_time = shift_boundaries(day)
            notes = day_notes(day)
            row.entry_time = entry_time
            row.exit_time = exit_time
            row.total_hours = day.total_hours.quantize(HOURS_EPSILON)
            row.notes = notes.upper() if notes else None
        rows.append(row)
    return rows


def build_worker_registry(
    worker: WorkerData,
    summary: WorkerHoursSummary,
    year: int,
    month: int,
    company_lookup: dict[str, str] | None = None,
) -> WorkerRegistry:
    """Company rows (by name, skipping companies without hours) and daily rows."""
    company_lookup = company_lookup or {}
    rows: list[CompanyHoursRow] = []
    for company in summary.company_totals:
        if abs(company.hours) < HOURS_EPSILON:
            continue
        name = (company.name or "").strip()
        if not name and company.company_id:
            name = company_lookup.get(company.company_id, "")
        rows.append(
            CompanyHoursRow(
                company_name=name or "Sin empresa",
                hours=company.hours,
                hourly_rate=resolve_hourly_rate(worker, company.company_id, name),
            )
        )
    rows.sort(key=lambda row: row.company_name.casefold())

    return WorkerRegistry(
        worker_id=worker.id,
        worker_name=worker.name,
        rows=rows,
        daily_rows=build_daily_rows(summary, year, month),
    )


def sanitize_sheet_name(value: str) -> str:
    return _RESTRICTED_SHEET_CHARS.sub(" ", value).strip()[:SHEET_NAME_LIMIT]


def unique_sheet_name(base_name: str, used: set[str]) -> str:
    """Excel-safe sheet name, suffixed " (n)" when already taken."""
    base = sanitize_sheet_name(base_name) or "Trabajador"
    candidate = base[:SHEET_NAME_LIMIT]
    suffix = 1
    while candidate in used:
        label = f" ({suffix})"
        candidate = f"{base[:SHEET_NAME_LIMIT - len(label)]}{label}"
        suffix += 1
    used.add(candidate)
    return candidate


def _style_header(sheet: Worksheet, row: int) -> None:
    for cell in sheet[row]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center")


def _number(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def _write_summary(sheet: Worksheet, registries: list[WorkerRegistry], range_label: str) -> None:
    sheet.append(["CONTROL HORARIO POR EMPRESA"])
    sheet["A1"].font = TITLE_FONT
    sheet.append([f"Del {range_label}"])
    sheet.append([])
    sheet.append(SUMMARY_HEADERS)
    _style_header(sheet, sheet.max_row)

    for registry in registries:
        for index, row in enumerate(registry.rows):
            sheet.append([
                registry.worker_name if index == 0 else "",
                row.company_name,
                _number(row.hours),
                _number(row.hourly_rate),
                _number(row.amount),
            ])
        sheet.append(["", "TOTAL", _number(registry.total_hours), None, _number(registry.total_amount)])
        for cell in sheet[sheet.max_row]:
            cell.font = TOTAL_FONT
        sheet.append([])

    for column, width in zip("ABCDE", (32, 32, 10, 10, 14)):
        sheet.column_dimensions[column].width = width


def _write_daily(sheet: Worksheet, registry: WorkerRegistry, range_label: str) -> None:
    sheet.append([registry.worker_name.upper()])
    sheet["A1"].font = TITLE_FONT
    sheet.append([f"Del {range_label}"])
    sheet.append([])
    sheet.append(DAILY_HEADERS)
    _style_header(sheet, sheet.max_row)

    for row in registry.daily_rows:
        sheet.append([
            row.date_label,
            row.day_label,
            row.entry_time,
            row.exit_time,
            _number(row.total_hours),
            row.notes,
        ])

    total = sum(
        (row.total_hours for row in registry.daily_rows if row.total_hours is not None), ZERO
    )
    sheet.append(["", "", "", "TOTAL", _number(total), None])
    for cell in sheet[sheet.max_row]:
        cell.font = TOTAL_FONT

    for column, width in zip("ABCDEF", (12, 12, 10, 10, 10, 48)):
        sheet.column_dimensions[column].width = width


def generate_hours_registry_xlsx(registries: list[WorkerRegistry], range_label: str) -> bytes:
    """
    Write the registry workbook.

    Workers are ordered by name. Workers without company hours are left off
    the summary, and a daily sheet is only added for workers with hours or
    notes in the range.
    """
    exportable = sorted(
        (registry for registry in registries if registry.rows),
        key=lambda registry: registry.worker_name.casefold(),
    )
    if not exportable:
        raise HoursRegistryError("No hay datos para exportar en el rango seleccionado.")

    workbook = Workbook()
    used_names: set[str] = set()
    summary_sheet = workbook.active
    summary_sheet.title = unique_sheet_name(SUMMARY_SHEET, used_names)
    _write_summary(summary_sheet, exportable, range_label)

    for registry in exportable:
        if not registry.has_daily_data:
            continue
        daily_sheet = workbook.create_sheet(unique_sheet_name(registry.worker_name, used_names))
        _write_daily(daily_sheet, registry, range_label)

    output = io.BytesIO()
    workbook.save(output)
    logger.info(f"Generated hours registry for {len(exportable)} worker(s)")
    return output.getvalue()
