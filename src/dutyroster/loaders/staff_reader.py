"""Staff timetable CSV reader.

Each row holds a staff name followed by up to ten period cells:

    name,period1,period2,...,period10
    "Smith, J",MPM2D-01,,ENG2D-03,...

A header row is detected and skipped. Rows without a name are skipped and
missing period cells are read as free periods; both are logged.
"""

import csv
import logging
from pathlib import Path
from typing import Iterable, Union

from dutyroster.domain.policies import TIMETABLE_PERIODS
from dutyroster.scheduling.scheduler import StaffRecord

logger = logging.getLogger(__name__)

HEADER_NAMES = ("name", "teacher", "staff", "teacher name", "staff name")


def is_header(row: list[str]) -> bool:
    """Whether a row looks like a column header rather than a staff member."""
    if not row:
        return False
    first = row[0].strip().lower()
    if first in HEADER_NAMES:
        return True
    return any(cell.strip().lower().startswith("period") for cell in row[1:])


def parse_staff_rows(rows: Iterable[list[str]]) -> list[StaffRecord]:
    """Turn CSV rows into staff records in file order.

    Raises:
        ValueError: If a row carries course codes beyond the tenth period.
    """
    records = []
    for line_number, row in enumerate(rows, 1):
        if line_number == 1 and is_header(row):
            continue
        if not row or not any(cell.strip() for cell in row):
            continue

        name = row[0].strip()
        if not name:
            logger.warning("Skipping row %d: no staff name", line_number)
            continue

        periods = [cell.strip() for cell in row[1:]]
        if len(periods) > TIMETABLE_PERIODS:
            extra = [cell for cell in periods[TIMETABLE_PERIODS:] if cell]
            if extra:
                raise ValueError(
                    f"Row {line_number} ({name}): {len(periods)} period columns, "
                    f"expected at most {TIMETABLE_PERIODS}"
                )
            periods = periods[:TIMETABLE_PERIODS]
        elif len(periods) < TIMETABLE_PERIODS:
            logger.warning(
                "Row %d (%s): %d period columns, treating the rest as free",
                line_number, name, len(periods),
            )
            periods += [""] * (TIMETABLE_PERIODS - len(periods))

        records.append(StaffRecord(name=name, timetable=periods))

    names = [record.name for record in records]
    for name in sorted({n for n in names if names.count(n) > 1}):
        logger.warning("Staff name %s appears more than once", name)

    return records


def read_staff(path: Union[str, Path]) -> list[StaffRecord]:
    """Read a staff timetable CSV file."""
    with open(path, newline="", encoding="utf-8-sig") as handle:
        return parse_staff_rows(csv.reader(handle))
