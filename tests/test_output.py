"""Tests for CSV, text and PDF roster output."""

import csv
from datetime import date
from io import StringIO

import pytest

from dutyroster.domain.calendar import SchoolCalendar, SchoolYear
from dutyroster.domain.models import DutyCatalog, DutySlot
from dutyroster.domain.staff import StaffMember
from dutyroster.output.csv_exporter import CSV_HEADER, CSVExporter
from dutyroster.output.pdf_generator import PDFGenerator, unfilled_row_keys
from dutyroster.output.report_generator import ReportGenerator
from dutyroster.scheduling.duty_assigner import AllocationConfig, DutyAssigner

FREE = [""] * 10


@pytest.fixture
def result():
    """One week, one slot, two members who end up sharing every day."""
    calendar = SchoolCalendar(
        school_year=SchoolYear.single_term(date(2024, 9, 2), date(2024, 9, 6)),
        catalog=DutyCatalog([DutySlot("Front Foyer", "Main Entrance", "Period 1", 0)]),
    )
    calendar.initialize_year()
    staff = [
        StaffMember("Baker", FREE, quota_override=5),
        StaffMember("Adams", FREE, quota_override=5),
    ]
    return DutyAssigner(AllocationConfig(seed=8)).run(calendar, staff)


class TestCSVExporter:
    """Tests for CSVExporter."""

    def test_header_and_rows(self, result):
        """One row per weekday with both rotation sides."""
        rows = list(csv.reader(StringIO(CSVExporter().export_to_string(result.roster))))
        assert tuple(rows[0]) == CSV_HEADER
        assert [row[1] for row in rows[1:]] == [
            "MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY",
        ]
        assert all(row[0] == "Term 1" and row[2] == "Front Foyer" for row in rows[1:])

    def test_occupants_joined_in_sorted_order(self, result):
        """Occupants sit on the weekday's rotation side joined by semicolons."""
        rows = list(csv.reader(StringIO(CSVExporter().export_to_string(result.roster))))
        monday, tuesday = rows[1], rows[2]
        assert monday[3] == "Adams; Baker"
        assert monday[4] == ""
        assert tuesday[3] == ""
        assert tuesday[4] == "Adams; Baker"

    def test_export_to_file(self, result, tmp_path):
        """The file holds the header plus one line per row."""
        path = tmp_path / "roster.csv"
        count = CSVExporter().export(result.roster, path)
        assert count == 5
        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "Term,Day,Duty,Day1 Occupants,Day2 Occupants"
        assert len(lines) == 6

    def test_name_on_one_side_per_row(self):
        """Over two weeks a lone member never appears in both occupant columns."""
        calendar = SchoolCalendar(
            school_year=SchoolYear.single_term(date(2024, 9, 2), date(2024, 9, 13)),
            catalog=DutyCatalog([DutySlot("Front Foyer", "Main Entrance", "Period 1", 0)]),
        )
        calendar.initialize_year()
        member = StaffMember("A", FREE, quota_override=10)
        result = DutyAssigner(AllocationConfig(seed=2)).run(calendar, [member])

        text = CSVExporter().export_to_string(result.roster)
        rows = list(csv.reader(StringIO(text)))[1:]
        assert len(rows) == 5
        assert all(not (row[3] and row[3] == row[4]) for row in rows)
        assert [row[4] for row in rows] == [""] * 5


class TestReportGenerator:
    """Tests for ReportGenerator."""

    def test_report_sections(self, result):
        """The report shows the roster, the staff summary and issues."""
        text = ReportGenerator().generate_to_string(result)
        assert "DUTY ROSTER (seed 8)" in text
        assert "TERM 1" in text
        assert "STAFF SUMMARY" in text
        assert "Total Staff: 2" in text
        assert "Adams" in text

    def test_report_written(self, result, tmp_path):
        """The report is saved to the given path."""
        path = tmp_path / "report.txt"
        content = ReportGenerator().generate(result, path)
        assert path.read_text(encoding="utf-8") == content


class TestPDFGenerator:
    """Tests for PDFGenerator."""

    def test_generate_to_buffer(self, result):
        """The buffer holds a PDF document."""
        pytest.importorskip("reportlab")
        buffer = PDFGenerator().generate_to_buffer(result)
        assert buffer.read(4) == b"%PDF"

    def test_generate_to_file(self, result, tmp_path):
        """The PDF is written to disk."""
        pytest.importorskip("reportlab")
        path = tmp_path / "roster.pdf"
        PDFGenerator().generate(result, path)
        assert path.stat().st_size > 0

    def test_single_side_rows_not_unfilled(self, result):
        """A weekday with school days on one rotation side only is complete."""
        assert unfilled_row_keys(result.roster) == set()

    def test_empty_weighted_side_is_unfilled(self):
        """Rows whose scheduled side has nobody are flagged."""
        calendar = SchoolCalendar(
            school_year=SchoolYear.single_term(date(2024, 9, 2), date(2024, 9, 6)),
            catalog=DutyCatalog([DutySlot("Front Foyer", "Main Entrance", "Period 1", 0)]),
        )
        calendar.initialize_year()
        result = DutyAssigner(AllocationConfig(seed=1)).run(
            calendar, [StaffMember("A", FREE, quota_override=3)]
        )
        assert len(unfilled_row_keys(result.roster)) == 2
