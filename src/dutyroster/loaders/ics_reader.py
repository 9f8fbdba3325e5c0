"""ICS calendar feed reader.

Reads the VEVENT blocks of a school board's all-day calendar feed and turns
each complete event into a Holiday. Only the handful of properties the
roster needs are recognised; everything else in the feed is ignored.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Iterable, Optional, Union

from dutyroster.domain.calendar import Holiday

logger = logging.getLogger(__name__)

EVENT_START = "BEGIN:VEVENT"
EVENT_END = "END:VEVENT"
SUMMARY_PREFIX = "SUMMARY:"
START_DATE_PREFIX = "DTSTART;VALUE=DATE:"
END_DATE_PREFIX = "DTEND;VALUE=DATE:"
DESCRIPTION_PREFIX = "DESCRIPTION:"

LAST_DAY_MARKER = "Last Day of School"

_NON_DIGITS = re.compile(r"[^0-9]")


def parse_ics_date(value: str) -> Optional[date]:
    """Parse a yyyymmdd date, ignoring any non-digit noise around it.

    Date-time values ("20240115T000000Z") keep only their date part.
    Returns None when no valid date can be read.
    """
    digits = _NON_DIGITS.sub("", value)[:8]
    if len(digits) != 8:
        return None
    try:
        return date(int(digits[:4]), int(digits[4:6]), int(digits[6:8]))
    except ValueError:
        return None


@dataclass
class HolidayFeed:
    """Events read from one ICS feed.

    Attributes:
        holidays: Events that cancel classes.
        last_day: Start date of the "Last Day of School" event, if any.
        skipped: Number of incomplete events that were dropped.
    """

    holidays: list[Holiday] = field(default_factory=list)
    last_day: Optional[date] = None
    skipped: int = 0


def parse_ics(
    lines: Iterable[str],
    closures_only: bool = False,
    last_day_marker: str = LAST_DAY_MARKER,
) -> HolidayFeed:
    """Parse ICS lines into a HolidayFeed.

    Args:
        lines: Lines of the feed.
        closures_only: Keep only events whose summary names a closure
            (PA day, break, exam and so on).
        last_day_marker: Summary text of the event marking the year end.
            That event sets `last_day` and is never treated as a holiday.

    Returns:
        HolidayFeed with the holidays in feed order.
    """
    feed = HolidayFeed()
    summary = None
    start_date = None
    end_date = None
    description = ""
    in_event = False

    for line_number, raw in enumerate(lines, 1):
        line = raw.rstrip("\r\n")

        if line.startswith(EVENT_START):
            summary, start_date, end_date, description = None, None, None, ""
            in_event = True
        elif not in_event:
            continue
        elif line.startswith(SUMMARY_PREFIX):
            summary = line[len(SUMMARY_PREFIX):].strip()
        elif line.startswith(START_DATE_PREFIX):
            start_date = _read_date(line[len(START_DATE_PREFIX):], line_number)
        elif line.startswith(END_DATE_PREFIX):
            end_date = _read_date(line[len(END_DATE_PREFIX):], line_number)
        elif line.startswith(DESCRIPTION_PREFIX):
            description = line[len(DESCRIPTION_PREFIX):].strip()
        elif line.startswith(EVENT_END):
            in_event = False
            if summary is None or start_date is None or end_date is None:
                logger.warning(
                    "Skipping incomplete event ending on line %d (%s)",
                    line_number, summary or "no summary",
                )
                feed.skipped += 1
                continue

            if last_day_marker and last_day_marker.lower() in summary.lower():
                if feed.last_day is None:
                    feed.last_day = start_date
                continue

            holiday = Holiday(summary, start_date, end_date, description)
            if closures_only and not holiday.is_closure:
                logger.debug("Ignoring non-closure event %s", holiday)
                continue
            feed.holidays.append(holiday)

    logger.debug(
        "Read %d holidays (%d skipped), last day %s",
        len(feed.holidays), feed.skipped, feed.last_day,
    )
    return feed


def read_holidays(
    path: Union[str, Path],
    closures_only: bool = False,
) -> HolidayFeed:
    """Read an ICS file.

    Raises:
        OSError: If the file cannot be read.
    """
    with open(path, encoding="utf-8") as handle:
        return parse_ics(handle, closures_only=closures_only)


def _read_date(value: str, line_number: int) -> Optional[date]:
    parsed = parse_ics_date(value)
    if parsed is None:
        logger.warning("Unreadable date %r on line %d", value, line_number)
    return parsed
