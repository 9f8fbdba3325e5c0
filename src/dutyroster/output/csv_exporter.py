"""CSV export of the duty roster."""

import csv
from io import StringIO
from pathlib import Path
from typing import TextIO, Union

from dutyroster.domain.models import DutyRoster, RosterRow

CSV_HEADER = ("Term", "Day", "Duty", "Day1 Occupants", "Day2 Occupants")
OCCUPANT_SEPARATOR = "; "


def format_occupants(names) -> str:
    """Join occupant names in sorted order."""
    return OCCUPANT_SEPARATOR.join(sorted(names))


def row_values(row: RosterRow) -> list[str]:
    return [
        row.term_label,
        row.weekday_name,
        row.duty_name,
        format_occupants(row.day1_occupants),
        format_occupants(row.day2_occupants),
    ]


class CSVExporter:
    """Writes one CSV line per (term, weekday, duty) with both rotation sides.

    Example:
        >>> CSVExporter().export(result.roster, "roster.csv")
    """

    def export(self, roster: DutyRoster, output_path: Union[str, Path]) -> int:
        """Write the roster to a file.

        Returns:
            Number of data rows written.
        """
        with open(output_path, "w", newline="", encoding="utf-8") as handle:
            return self.write(roster, handle)

    def export_to_string(self, roster: DutyRoster) -> str:
        buffer = StringIO()
        self.write(roster, buffer)
        return buffer.getvalue()

    def write(self, roster: DutyRoster, handle: TextIO) -> int:
        writer = csv.writer(handle)
        writer.writerow(CSV_HEADER)
        count = 0
        for row in roster.rows():
            writer.writerow(row_values(row))
            count += 1
        return count
