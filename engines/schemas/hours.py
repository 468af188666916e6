"""
Hours Schemas

Calendar models built from attendance records.
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class HourSegment(BaseModel):
    """A worked interval within a day, as HH:MM strings."""

    start: str
    end: str


class WorkShift(BaseModel):
    id: str
    start_time: str | None = None
    end_time: str | None = None
    hours: Decimal | None = None


class CompanyHours(BaseModel):
    company_id: str | None = None
    name: str | None = None
    hours: Decimal = Decimal("0")


class DayScheduleEntry(BaseModel):
    id: str
    company_id: str | None = None
    company_name: str | None = None
    hours: Decimal = Decimal("0")
    description: str | None = None
    work_shifts: list[WorkShift] = Field(default_factory=list)


class DayNoteEntry(BaseModel):
    id: str
    text: str
    origin: str = "note"


class DayHoursSummary(BaseModel):
    """Everything recorded for a worker on one calendar day."""

    total_hours: Decimal = Decimal("0")
    notes: list[str] = Field(default_factory=list)
    note_entries: list[DayNoteEntry] = Field(default_factory=list)
    entries: list[DayScheduleEntry] = Field(default_factory=list)
    companies: list[CompanyHours] = Field(default_factory=list)


class WorkerHoursSummary(BaseModel):
    """
    Monthly calendar of a worker.

    `hours_by_date` is keyed by YYYY-MM-DD.
    """

    hours_by_date: dict[str, DayHoursSummary] = Field(default_factory=dict)
    total_hours: Decimal = Decimal("0")
    total_tracked_days: int = 0
    company_totals: list[CompanyHours] = Field(default_factory=list)
