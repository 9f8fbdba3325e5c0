"""PDF generation for roster output.

This module creates printable PDF rosters showing:
- One section per term listing each weekday's duties with Day 1 and Day 2
  occupants
- A staff page with quota and semester totals
"""

from io import BytesIO
from pathlib import Path
from typing import Union

from dutyroster.domain.models import DutyRoster, RosterRow
from dutyroster.output.csv_exporter import format_occupants
from dutyroster.scheduling.duty_assigner import AllocationResult

# Color definitions (RGB tuples, 0-1 scale)
COLORS = {
    "header": (0.85, 0.88, 0.95),  # Pale blue
    "stripe": (0.96, 0.96, 0.96),  # Light gray
    "unfilled": (1.0, 0.85, 0.85),  # Light red
    "under_quota": (1.0, 0.93, 0.75),  # Light orange
}

# Column layout: (title, width in points)
ROSTER_COLUMNS = (
    ("Day", 80),
    ("Time", 70),
    ("Duty", 150),
    ("Day 1", 200),
    ("Day 2", 200),
)


def unfilled_row_keys(roster: DutyRoster) -> set[tuple[int, int, int, int]]:
    """Row keys (term, weekday, time slot, position) with an empty weighted side.

    A side without school days in the term has no entry and is never unfilled.
    """
    return {
        (e.key.term, e.key.weekday, e.key.time_slot, e.key.position)
        for e in roster.unfilled()
    }


class PDFGenerator:
    """Generates printable PDF rosters.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate(result, "roster.pdf")
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
        row_height: float = 16,
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin
        self.row_height = row_height

    def generate(
        self,
        result: AllocationResult,
        output_path: Union[str, Path],
        include_summary: bool = True,
    ) -> None:
        """Generate PDF roster and save to file.

        Args:
            result: Allocation result to render.
            output_path: Path to save the PDF.
            include_summary: Whether to include the staff summary page.
        """
        try:
            from reportlab.lib.pagesizes import letter, landscape
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )

        c = canvas.Canvas(str(output_path), pagesize=landscape(letter))
        self._draw(c, result, include_summary)
        c.save()

    def generate_to_buffer(
        self,
        result: AllocationResult,
        include_summary: bool = True,
    ) -> BytesIO:
        """Generate PDF and return as bytes buffer."""
        try:
            from reportlab.lib.pagesizes import letter, landscape
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )

        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=landscape(letter))
        self._draw(c, result, include_summary)
        c.save()
        buffer.seek(0)
        return buffer

    def _draw(self, c, result: AllocationResult, include_summary: bool) -> None:
        rows = result.roster.rows()
        unfilled = unfilled_row_keys(result.roster)
        for term in result.roster.terms():
            self._draw_term_pages(c, term, [r for r in rows if r.term == term], unfilled)
        if include_summary:
            self._draw_summary_page(c, result)

    @property
    def _rows_per_page(self) -> int:
        header_height = 60
        usable = self.page_height - 2 * self.margin - header_height
        return max(1, int(usable / self.row_height) - 1)

    def _draw_term_pages(
        self,
        c,
        term: int,
        rows: list[RosterRow],
        unfilled: set[tuple[int, int, int, int]],
    ) -> None:
        """Draw the roster table of one term across as many pages as needed."""
        per_page = self._rows_per_page
        total_pages = (len(rows) + per_page - 1) // per_page

        for page_start in range(0, len(rows), per_page):
            page_rows = rows[page_start : page_start + per_page]

            c.setFont("Helvetica-Bold", 16)
            c.drawString(
                self.margin,
                self.page_height - self.margin - 20,
                f"Duty Roster - Term {term + 1}",
            )

            y = self.page_height - self.margin - 60
            self._draw_table_header(c, y)

            for index, row in enumerate(page_rows):
                y -= self.row_height
                row_key = (row.term, row.weekday, row.time_slot, row.position)
                self._draw_roster_row(
                    c, row, y, striped=index % 2 == 1, unfilled=row_key in unfilled
                )

            page_num = page_start // per_page + 1
            c.setFont("Helvetica", 9)
            c.drawCentredString(
                self.page_width / 2,
                self.margin - 10,
                f"Term {term + 1} - Page {page_num} of {total_pages}",
            )
            c.showPage()

    def _draw_table_header(self, c, y: float) -> None:
        width = sum(w for _, w in ROSTER_COLUMNS)
        c.setFillColorRGB(*COLORS["header"])
        c.rect(self.margin, y - 4, width, self.row_height, fill=1, stroke=0)
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 9)
        x = self.margin + 4
        for title, col_width in ROSTER_COLUMNS:
            c.drawString(x, y, title)
            x += col_width

    def _draw_roster_row(
        self, c, row: RosterRow, y: float, striped: bool, unfilled: bool = False
    ) -> None:
        width = sum(w for _, w in ROSTER_COLUMNS)
        if unfilled:
            c.setFillColorRGB(*COLORS["unfilled"])
            c.rect(self.margin, y - 4, width, self.row_height, fill=1, stroke=0)
        elif striped:
            c.setFillColorRGB(*COLORS["stripe"])
            c.rect(self.margin, y - 4, width, self.row_height, fill=1, stroke=0)

        values = (
            row.weekday_name.title(),
            row.time_slot_label,
            row.duty_name,
            format_occupants(row.day1_occupants) or "-",
            format_occupants(row.day2_occupants) or "-",
        )
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 8)
        x = self.margin + 4
        for value, (_, col_width) in zip(values, ROSTER_COLUMNS):
            c.drawString(x, y, self._fit(value, col_width))
            x += col_width

    def _draw_summary_page(self, c, result: AllocationResult) -> None:
        """Draw staff quota and semester totals."""
        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            "Staff Summary",
        )
        c.setFont("Helvetica", 10)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 35,
            f"Staff: {len(result.summaries)}   Under quota: {len(result.under_quota)}",
        )

        y = self.page_height - self.margin - 60
        columns = (("Name", 220), ("Load", 120), ("Quota", 60), ("Sem 1", 60), ("Sem 2", 60))
        c.setFont("Helvetica-Bold", 9)
        x = self.margin + 4
        for title, col_width in columns:
            c.drawString(x, y, title)
            x += col_width

        for summary in sorted(result.summaries.values(), key=lambda s: s.name):
            y -= self.row_height
            if y < self.margin:
                c.showPage()
                y = self.page_height - self.margin - 20
            if summary.is_under_quota:
                c.setFillColorRGB(*COLORS["under_quota"])
                c.rect(self.margin, y - 4, 520, self.row_height, fill=1, stroke=0)
            c.setFillColorRGB(0, 0, 0)
            c.setFont("Helvetica", 8)
            values = (
                summary.name,
                summary.tier.label,
                str(summary.quota),
                str(summary.semester_totals[0]),
                str(summary.semester_totals[1]),
            )
            x = self.margin + 4
            for value, (_, col_width) in zip(values, columns):
                c.drawString(x, y, self._fit(value, col_width))
                x += col_width

        c.showPage()

    @staticmethod
    def _fit(text: str, width: float) -> str:
        # Roughly 4.5 points per character at 8pt Helvetica
        limit = int(width / 4.5)
        return text if len(text) <= limit else text[: limit - 3] + "..."
