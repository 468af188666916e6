"""
Hours Utilities

Time-segment arithmetic and per-company lookups over a worker calendar.
"""

import re
from decimal import Decimal

from engines.schemas.hours import DayHoursSummary, HourSegment
from engines.services.formatting import format_number

_TIME_PATTERN = re.compile(r"^([0-1]?\d|2[0-3]):([0-5]\d)$")


def parse_time_to_minutes(value: str | None) -> int | None:
    """Parse "HH:MM" (00:00 to 23:59) into minutes after midnight."""
    if not value:
        return None
    match = _TIME_PATTERN.match(value.strip())
    if not match:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def segments_total_minutes(segments: list[HourSegment]) -> int:
    """Sum segment durations, skipping unparsable or non-positive segments."""
    total = 0
    for segment in segments:
        start = parse_time_to_minutes(segment.start)
        end = parse_time_to_minutes(segment.end)
        if start is None or end is None or end <= start:
            continue
        total += end - start
    return total


def format_minutes_as_hours(total_minutes: int) -> str:
    if total_minutes <= 0:
        return "0"
    return format_number(Decimal(total_minutes) / Decimal(60))


def _normalize_name(name: str | None) -> str:
    return (name or "").strip().lower()


def company_calendar_totals(
    hours_by_date: dict[str, DayHoursSummary],
) -> dict[str, tuple[str | None, str, Decimal]]:
    """
    Total hours per company over the calendar.

    Keyed by company id, or `name:<normalized name>` for records without one.
    Values are (company_id, normalized_name, hours).
    """
    totals: dict[str, tuple[str | None, str, Decimal]] = {}
    for day in hours_by_date.values():
        for company in day.companies:
            if company.hours <= 0:
                continue
            normalized = _normalize_name(company.name)
            key = company.company_id or f"name:{normalized}"
            if key in totals:
                company_id, name, hours = totals[key]
                totals[key] = (company_id, name, hours + company.hours)
            else:
                totals[key] = (company.company_id, normalized, company.hours)
    return totals


def calendar_hours_for_company(
    hours_by_date: dict[str, DayHoursSummary],
    company_id: str | None = None,
    company_name: str | None = None,
) -> Decimal:
    """Calendar hours for a company, matched by id first and then by name."""
    totals = company_calendar_totals(hours_by_date)

    if company_id:
        for entry_id, _, hours in totals.values():
            if entry_id and entry_id == company_id:
                return hours

    normalized = _normalize_name(company_name)
    if normalized:
        for _, name, hours in totals.values():
            if name == normalized:
                return hours

    return Decimal("0")
