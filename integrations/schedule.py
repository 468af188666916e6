"""
Control Schedule Summary

Builds a worker's monthly hours calendar from raw control-schedule records
(type 1 hour records and type 7 note records).
"""

import logging
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal

from engines.schemas.hours import (
    CompanyHours,
    DayHoursSummary,
    DayNoteEntry,
    DayScheduleEntry,
    WorkerHoursSummary,
    WorkShift,
)
from integrations.normalizers import (
    DESCRIPTION_FIELDS,
    NOTE_FIELDS,
    collect_note_strings,
    extract_note_text,
    normalize_identifier,
    parse_numeric,
    pick_string,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
UNASSIGNED_COMPANY_KEY = "sin-empresa"
UNASSIGNED_COMPANY_NAME = "Sin empresa"
OBSERVATION_SEPARATOR = " • "


def _parse_datetime(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def entry_date_key(entry: dict, timezone_offset_hours: int = 2) -> str | None:
    """
    Local calendar day (YYYY-MM-DD) of a schedule record.

    Timestamps are read as UTC and shifted by the configured offset, so a
    record stamped 23:00Z lands on the next day with the default offset.
    """
    moment = None
    if isinstance(entry.get("dateTime"), str):
        moment = _parse_datetime(entry["dateTime"])

    if moment is None:
        raw = pick_string(
            entry.get("start"), entry.get("date"), entry.get("day"), entry.get("createdAt")
        )
        if raw:
            moment = _parse_datetime(raw)

    if moment is None:
        return None

    return (moment + timedelta(hours=timezone_offset_hours)).date().isoformat()


def _parse_clock(value) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return datetime.combine(datetime.min.date(), time.fromisoformat(value.strip()))
    except ValueError:
        return None


def _shift_hours(shift: dict) -> Decimal:
    if shift.get("hours") or shift.get("value") or shift.get("workedHours"):
        raw = shift.get("hours")
        if raw is None:
            raw = shift.get("value")
        if raw is None:
            raw = shift.get("workedHours")
        parsed = parse_numeric(raw)
        if parsed is not None:
            return parsed

    start = _parse_clock(shift.get("workStart"))
    end = _parse_clock(shift.get("workEnd"))
    if start and end and end > start:
        return Decimal((end - start).seconds) / Decimal(3600)
    return ZERO


def entry_hours(entry: dict) -> Decimal:
    """
    Hours of an hour record.

    Reads value/hours/workedHours first; when that yields nothing the
    work shifts are summed (explicit shift hours or start/end difference).
    Negative results count as zero.
    """
    raw = entry.get("value")
    if raw is None:
        raw = entry.get("hours")
    if raw is None:
        raw = entry.get("workedHours")

    hours = ZERO
    if isinstance(raw, (int, float, str)) and not isinstance(raw, bool):
        hours = parse_numeric(raw) or ZERO

    shifts = entry.get("workShifts")
    if hours == 0 and isinstance(shifts, list):
        shifts_total = sum(
            (_shift_hours(shift) for shift in shifts if isinstance(shift, dict)), ZERO
        )
        if shifts_total > 0:
            hours = shifts_total

    return hours if hours > 0 else ZERO


def _work_shifts(entry: dict, entry_id: str) -> list[WorkShift]:
    shifts = entry.get("workShifts")
    if not isinstance(shifts, list):
        return []

    result = []
    for index, shift in enumerate(shifts, start=1):
        if not isinstance(shift, dict):
            continue
        start = shift.get("workStart").strip() if isinstance(shift.get("workStart"), str) else None
        end = shift.get("workEnd").strip() if isinstance(shift.get("workEnd"), str) else None
        raw_hours = shift.get("hours")
        if raw_hours is None:
            raw_hours = shift.get("value")
        if raw_hours is None:
            raw_hours = shift.get("workedHours")
        hours = parse_numeric(raw_hours)
        if not start and not end and hours is None:
            continue
        result.append(
            WorkShift(
                id=normalize_identifier(shift.get("id"))
                or normalize_identifier(shift.get("workShiftId"))
                or f"shift-{index}-{entry_id}",
                start_time=start or None,
                end_time=end or None,
                hours=hours,
            )
        )
    return result


def _observation_text(entry: dict) -> str | None:
    observations = entry.get("observations")
    if isinstance(observations, list):
        parts = [item.strip() for item in observations if isinstance(item, str) and item.strip()]
        return OBSERVATION_SEPARATOR.join(parts) or None
    if isinstance(observations, str):
        return observations.strip() or None
    return None


class _DayAggregate:
    def __init__(self):
        self.total_hours = ZERO
        self.notes: dict[str, None] = {}
        self.companies: dict[str, CompanyHours] = {}
        self.entries: list[DayScheduleEntry] = []
        self.note_entries: dict[str, DayNoteEntry] = {}

    def is_empty(self) -> bool:
        return (
            self.total_hours == 0
            and not self.notes
            and not self.note_entries
            and not self.companies
        )


def _sort_name(name: str | None) -> str:
    return (name or "").casefold()


def summarize_schedule(
    hour_entries: list[dict],
    note_entries: list[dict] | None = None,
    company_lookup: dict[str, str] | None = None,
    timezone_offset_hours: int = 2,
) -> WorkerHoursSummary:
    """
    Aggregate raw schedule records into a monthly calendar.

    Each day carries its total hours, hours per company, the hour records
    that have hours or a description, and the notes recorded that day.
    Records without a readable date are skipped.
    """
    company_lookup = company_lookup or {}
    days: dict[str, _DayAggregate] = {}

    for index, entry in enumerate(hour_entries):
        if not isinstance(entry, dict):
            continue
        day_key = entry_date_key(entry, timezone_offset_hours)
        if day_key is None:
            logger.debug("Skipping hour record without a date: %s", entry.get("id"))
            continue
        aggregate = days.setdefault(day_key, _DayAggregate())

        hours = entry_hours(entry)
        aggregate.total_hours += hours

        company = entry.get("company") if isinstance(entry.get("company"), dict) else {}
        company_id = pick_string(
            entry.get("companyId"),
            entry.get("company_id"),
            company.get("id"),
            entry.get("companyID"),
            entry.get("companyIdContract"),
        )
        company_name = pick_string(
            entry.get("companyName"),
            entry.get("company_name"),
            company.get("name"),
            entry.get("company"),
        )
        company_key = company_id or company_name or UNASSIGNED_COMPANY_KEY
        resolved_name = (
            company_name
            or (company_lookup.get(company_id) if company_id else None)
            or company_id
            or UNASSIGNED_COMPANY_NAME
        )

        day_company = aggregate.companies.get(company_key)
        if day_company is None:
            day_company = CompanyHours(company_id=company_id, name=resolved_name)
            aggregate.companies[company_key] = day_company
        day_company.hours += hours

        entry_id = (
            normalize_identifier(entry.get("id"))
            or normalize_identifier(entry.get("controlScheduleId"))
            or normalize_identifier(entry.get("scheduleId"))
            or normalize_identifier(entry.get("registerId"))
            or normalize_identifier(entry.get("recordId"))
            or f"hours-{day_key}-{index}"
        )
        description = OBSERVATION_SEPARATOR.join(
            chunk
            for chunk in (extract_note_text(entry, DESCRIPTION_FIELDS), _observation_text(entry))
            if chunk
        )

        if hours > 0 or description:
            aggregate.entries.append(
                DayScheduleEntry(
                    id=entry_id,
                    company_id=company_id,
                    company_name=resolved_name,
                    hours=hours,
                    description=description or None,
                    work_shifts=_work_shifts(entry, entry_id),
                )
            )

    for index, entry in enumerate(note_entries or []):
        if not isinstance(entry, dict):
            continue
        day_key = entry_date_key(entry, timezone_offset_hours)
        if day_key is None:
            continue

        collector: dict[str, None] = {}
        for field in NOTE_FIELDS:
            collect_note_strings(entry.get(field), collector)
        if not collector:
            continue

        primary_text = extract_note_text(entry) or next(iter(collector))
        aggregate = days.setdefault(day_key, _DayAggregate())
        aggregate.notes.update(collector)

        note_id = (
            normalize_identifier(entry.get("id"))
            or normalize_identifier(entry.get("noteId"))
            or normalize_identifier(entry.get("identifier"))
            or normalize_identifier(entry.get("recordId"))
            or f"note-{day_key}-{index}"
        )
        aggregate.note_entries[note_id] = DayNoteEntry(id=note_id, text=primary_text)

    hours_by_date: dict[str, DayHoursSummary] = {}
    company_totals: dict[str, CompanyHours] = {}

    for day_key in sorted(days):
        aggregate = days[day_key]
        if aggregate.is_empty():
            continue

        companies = []
        for company in aggregate.companies.values():
            name = (
                company_lookup.get(company.company_id) if company.company_id else None
            ) or company.name or company.company_id or UNASSIGNED_COMPANY_NAME
            companies.append(
                CompanyHours(company_id=company.company_id, name=name, hours=company.hours)
            )

            total_key = company.company_id or name
            total = company_totals.get(total_key)
            if total is None:
                total = CompanyHours(company_id=company.company_id, name=name)
                company_totals[total_key] = total
            total.hours += company.hours

        hours_by_date[day_key] = DayHoursSummary(
            total_hours=aggregate.total_hours,
            notes=list(aggregate.notes),
            note_entries=list(aggregate.note_entries.values()),
            entries=sorted(aggregate.entries, key=lambda e: _sort_name(e.company_name)),
            companies=sorted(companies, key=lambda c: _sort_name(c.name)),
        )

    return WorkerHoursSummary(
        hours_by_date=hours_by_date,
        total_hours=sum((day.total_hours for day in hours_by_date.values()), ZERO),
        total_tracked_days=sum(1 for day in hours_by_date.values() if day.total_hours > 0),
        company_totals=sorted(company_totals.values(), key=lambda c: _sort_name(c.name)),
    )
