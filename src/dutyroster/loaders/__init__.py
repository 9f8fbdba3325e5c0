"""Readers for calendar feeds and staff timetables."""

from dutyroster.loaders.ics_reader import HolidayFeed, parse_ics, read_holidays
from dutyroster.loaders.staff_reader import parse_staff_rows, read_staff

__all__ = [
    "HolidayFeed",
    "parse_ics",
    "parse_staff_rows",
    "read_holidays",
    "read_staff",
]
