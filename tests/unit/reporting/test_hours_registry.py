"""
Hours Registry Unit Tests

Row building and the generated workbook, read back with openpyxl.
"""

import io
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from engines.schemas.hours import (
    DayHoursSummary,
    DayNoteEntry,
    DayScheduleEntry,
    WorkerHoursSummary,
    WorkShift,
)
from reporting.hours_registry import (
    HoursRegistryError,
    build_daily_rows,
    build_worker_registry,
    day_notes,
    generate_hours_registry_xlsx,
    resolve_hourly_rate,
    shift_boundaries,
    unique_sheet_name,
)
from tests.factories import make_hours_summary, make_worker, make_worker_contract

RANGE_LABEL = "01/01/2025 al 31/01/2025"


def make_shift_day() -> DayHoursSummary:
    return DayHoursSummary(
        total_hours=Decimal("7.5"),
        entries=[
            DayScheduleEntry(
                id="hours-1",
                company_id="c-1",
                hours=Decimal("4"),
                work_shifts=[WorkShift(id="s-1", start_time="09:30", end_time="13:30")],
            ),
            DayScheduleEntry(
                id="hours-2",
                company_id="c-2",
                hours=Decimal("3.5"),
                work_shifts=[
                    WorkShift(id="s-2", start_time="16:00", end_time="19:30"),
                    WorkShift(id="s-3", start_time="bad", end_time=None),
                ],
            ),
        ],
        note_entries=[
            DayNoteEntry(id="n-1", text="Cubre baja"),
            DayNoteEntry(id="n-2", text=" Cubre baja "),
            DayNoteEntry(id="n-3", text="Llega tarde"),
        ],
    )


class TestRowBuilding:
    """Test the values that end up in the sheets."""

    def test_shift_boundaries(self):
        assert shift_boundaries(make_shift_day()) == ("09:30", "19:30")
        assert shift_boundaries(DayHoursSummary()) == (None, None)

    def test_day_notes_are_unique(self):
        assert day_notes(make_shift_day()) == "Cubre baja | Llega tarde"
        assert day_notes(DayHoursSummary(notes=["Turno de tarde"])) == "Turno de tarde"
        assert day_notes(DayHoursSummary()) is None

    def test_daily_rows_cover_the_whole_month(self):
        summary = WorkerHoursSummary(hours_by_date={"2025-02-03": make_shift_day()})

        rows = build_daily_rows(summary, 2025, 2)

        assert len(rows) == 28
        monday = rows[2]
        assert monday.date_label == "03/02/2025"
        assert monday.day_label == "LUNES"
        assert (monday.entry_time, monday.exit_time) == ("09:30", "19:30")
        assert monday.total_hours == Decimal("7.50")
        assert monday.notes == "CUBRE BAJA | LLEGA TARDE"
        assert rows[0].total_hours is None

    def test_hourly_rate_from_company_contract(self):
        worker = make_worker(hourly_rate=Decimal("9"))

        assert resolve_hourly_rate(worker, "c-2", "Beta Logística") == Decimal("10")
        assert resolve_hourly_rate(worker, "c-9", "Otra") == Decimal("9")

    def test_hourly_rate_by_name_without_company_id(self):
        worker = make_worker(
            contracts=[make_worker_contract(company_id=None, company_name="Gamma", hourly_rate=Decimal("11"))]
        )

        assert resolve_hourly_rate(worker, None, " gamma ") == Decimal("11")
        assert resolve_hourly_rate(worker, None, "Delta") is None

    def test_worker_registry_rows(self):
        registry = build_worker_registry(make_worker(), make_hours_summary(), 2025, 1)

        assert [row.company_name for row in registry.rows] == ["Acme Servicios", "Beta Logística"]
        assert [row.amount for row in registry.rows] == [Decimal("168.00"), Decimal("40.00")]
        assert registry.total_hours == Decimal("18")
        assert registry.total_amount == Decimal("208.00")
        assert registry.has_daily_data is True


class TestSheetNames:
    def test_restricted_characters_and_length(self):
        used: set[str] = set()
        assert unique_sheet_name("Ana/García: [turno]", used) == "Ana García   turno"
        assert len(unique_sheet_name("x" * 40, used)) == 31

    def test_duplicates_get_a_suffix(self):
        used: set[str] = set()
        assert unique_sheet_name("Ana", used) == "Ana"
        assert unique_sheet_name("Ana", used) == "Ana (1)"
        assert unique_sheet_name("", used) == "Trabajador"


class TestGenerateWorkbook:
    """Test the generated workbook layout."""

    def _workbook(self, *registries):
        content = generate_hours_registry_xlsx(list(registries), RANGE_LABEL)
        return load_workbook(io.BytesIO(content))

    def test_summary_and_daily_sheets(self):
        ana = build_worker_registry(make_worker(), make_hours_summary(), 2025, 1)
        bruno = build_worker_registry(
            make_worker(id="w-2", name="Bruno Díaz", contracts=[]), make_hours_summary(), 2025, 1
        )

        workbook = self._workbook(bruno, ana)

        assert workbook.sheetnames == ["Resumen", "Ana García", "Bruno Díaz"]
        summary = workbook["Resumen"]
        assert summary["A1"].value == "CONTROL HORARIO POR EMPRESA"
        assert summary["A2"].value == f"Del {RANGE_LABEL}"
        assert [cell.value for cell in summary[4]] == ["EMPLEADO", "UBICACIÓN", "HORAS", "€/HORA", "IMPORTE €"]
        assert [cell.value for cell in summary[5]] == ["Ana García", "Acme Servicios", 14, 12, 168]
        assert summary["B7"].value == "TOTAL"
        assert summary["C7"].value == 18
        assert summary["E7"].value == 208
        # Bruno has no contract rates
        assert summary["A9"].value == "Bruno Díaz"
        assert summary["D9"].value is None

        daily = workbook["Ana García"]
        assert daily["A1"].value == "ANA GARCÍA"
        assert daily["A6"].value == "02/01/2025"
        assert daily["B6"].value == "JUEVES"
        assert daily["E6"].value == 12
        assert daily["F7"].value == "TURNO DE TARDE"
        assert daily["D36"].value == "TOTAL"
        assert daily["E36"].value == 18

    def test_workers_without_hours_are_left_out(self):
        ana = build_worker_registry(make_worker(), make_hours_summary(), 2025, 1)
        idle = build_worker_registry(make_worker(id="w-3", name="Carla"), WorkerHoursSummary(), 2025, 1)

        workbook = self._workbook(ana, idle)

        assert workbook.sheetnames == ["Resumen", "Ana García"]

    def test_nothing_to_export(self):
        idle = build_worker_registry(make_worker(), WorkerHoursSummary(), 2025, 1)

        with pytest.raises(HoursRegistryError):
            generate_hours_registry_xlsx([idle], RANGE_LABEL)
