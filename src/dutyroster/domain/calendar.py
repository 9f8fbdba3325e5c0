"""School-year calendar model.

This module turns a school year and its holiday list into one Day per
calendar date, each flagged as a school day or not and tagged with its term
and its Day 1 / Day 2 rotation side. School days carry a duty grid stamped
from the duty catalog.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Iterator, Optional

from dutyroster.domain.models import (
    WEEKDAY_NAMES,
    Duty,
    DutyCatalog,
    Rotation,
)
from dutyroster.domain.policies import CalendarDayRotation, RotationPolicy

logger = logging.getLogger(__name__)

CLOSURE_KEYWORDS = (
    "PA DAY",
    "P.A. DAY",
    "HOLIDAY",
    "EXAM",
    "BREAK",
    "SUMMER",
    "WINTER",
    "MARCH",
    "CHRISTMAS",
    "THANKSGIVING",
)


@dataclass(frozen=True)
class Holiday:
    """A calendar event that cancels classes.

    Attributes:
        summary: Event title.
        start_date: First day of the event (inclusive).
        end_date: Day after the event (exclusive), as in ICS feeds.
        description: Free-form description.
    """

    summary: str
    start_date: date
    end_date: date
    description: str = ""

    def covers(self, d: date) -> bool:
        """Whether a date falls within the event.

        The start date is always covered, even for feed entries whose end
        date does not come after it.
        """
        return d == self.start_date or self.start_date < d < self.end_date

    @property
    def is_closure(self) -> bool:
        """Whether the summary names a day without classes."""
        summary = self.summary.upper()
        return any(keyword in summary for keyword in CLOSURE_KEYWORDS)

    def __str__(self) -> str:
        return f"{self.summary}: {self.start_date} to {self.end_date}"


@dataclass(frozen=True)
class SchoolYear:
    """Fixed boundaries of one school year.

    Attributes:
        start_date: First day of the school year.
        end_date: Last day of the school year (inclusive).
        term_starts: First day of each of the four terms.
        rotation_anchors: Day 1 anchor of each term (defaults to term starts).
    """

    start_date: date = date(2024, 9, 3)
    end_date: date = date(2025, 6, 28)
    term_starts: tuple[date, date, date, date] = (
        date(2024, 9, 3),
        date(2024, 11, 7),
        date(2025, 2, 1),
        date(2025, 4, 8),
    )
    rotation_anchors: Optional[tuple[date, date, date, date]] = None

    def __post_init__(self):
        if len(self.term_starts) != 4:
            raise ValueError("A school year has exactly four terms")
        if list(self.term_starts) != sorted(self.term_starts):
            raise ValueError("Term start dates must be in order")
        if self.end_date < self.start_date:
            raise ValueError("School year ends before it starts")
        if self.rotation_anchors is None:
            object.__setattr__(self, "rotation_anchors", tuple(self.term_starts))
        elif len(self.rotation_anchors) != 4:
            raise ValueError("A school year needs one rotation anchor per term")

    @classmethod
    def single_term(cls, start_date: date, end_date: date) -> "SchoolYear":
        """A year whose days all fall in term 0."""
        after = end_date + timedelta(days=1)
        return cls(
            start_date=start_date,
            end_date=end_date,
            term_starts=(start_date, after, after, after),
        )

    def term_of(self, d: date) -> int:
        """Term (0-3) of a date; dates outside the year clamp to term 3."""
        if d < self.term_starts[0] or d > self.end_date:
            return 3
        term = 0
        for index, start in enumerate(self.term_starts):
            if d >= start:
                term = index
        return term


@dataclass
class Day:
    """One calendar date of the school year.

    Attributes:
        date: The calendar date.
        is_school_day: True if classes run (weekday, no holiday).
        term: Term number (0-3).
        is_day1: True on Day 1 of the rotation, False on Day 2.
        duty_slots: Grid [time_slot][position] of duties (None when empty).
    """

    date: date
    is_school_day: bool = True
    term: int = 0
    is_day1: bool = True
    duty_slots: list[list[Optional[Duty]]] = field(default_factory=list)

    @property
    def weekday(self) -> int:
        return self.date.weekday()

    @property
    def weekday_name(self) -> str:
        return WEEKDAY_NAMES[self.weekday] if self.weekday < 5 else self.date.strftime("%A").upper()

    @property
    def rotation(self) -> Rotation:
        return Rotation.from_flag(self.is_day1)

    @property
    def is_holiday(self) -> bool:
        return not self.is_school_day and self.weekday < 5

    def ensure_grid(self, time_slots: int, positions: int) -> None:
        if not self.duty_slots:
            self.duty_slots = [[None] * positions for _ in range(time_slots)]

    def add_duty(self, time_slot: int, position: int, duty: Duty) -> None:
        """Place a duty on the grid.

        Raises:
            IndexError: If the grid has no such slot.
        """
        if not (0 <= time_slot < len(self.duty_slots)) or not (
            0 <= position < len(self.duty_slots[time_slot])
        ):
            raise IndexError(f"No duty slot ({time_slot}, {position}) on {self.date}")
        self.duty_slots[time_slot][position] = duty

    def get_duties(self, time_slot: int) -> list[Duty]:
        if 0 <= time_slot < len(self.duty_slots):
            return [d for d in self.duty_slots[time_slot] if d is not None]
        return []

    def iter_slots(self) -> Iterator[tuple[int, int, Duty]]:
        """Yield (time_slot, position, duty) in fixed scan order."""
        for time_slot, row in enumerate(self.duty_slots):
            for position, duty in enumerate(row):
                if duty is not None:
                    yield time_slot, position, duty

    @property
    def duties(self) -> list[Duty]:
        return [duty for _, _, duty in self.iter_slots()]

    def __str__(self) -> str:
        status = "School Day" if self.is_school_day else "No School"
        return f"{self.date} ({status})"


class SchoolCalendar:
    """The school year as a sequence of Days.

    Example:
        >>> calendar = SchoolCalendar()
        >>> calendar.initialize_year(holidays=holidays)
        >>> calendar.school_days()[0].term
        0
    """

    def __init__(
        self,
        school_year: Optional[SchoolYear] = None,
        rotation_policy: Optional[RotationPolicy] = None,
        catalog: Optional[DutyCatalog] = None,
    ):
        self.school_year = school_year or SchoolYear()
        self.rotation_policy = rotation_policy or CalendarDayRotation()
        self.catalog = catalog or DutyCatalog.default()
        self.holidays: list[Holiday] = []
        self._days: dict[date, Day] = {}

    def add_holiday(self, holiday: Optional[Holiday]) -> None:
        if holiday is not None:
            self.holidays.append(holiday)

    def initialize_year(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        holidays: Optional[Iterable[Holiday]] = None,
        catalog: Optional[DutyCatalog] = None,
    ) -> list[Day]:
        """Build one Day per calendar date in range.

        Args:
            start_date: First date (defaults to the school year start).
            end_date: Last date, inclusive (defaults to the school year end).
            holidays: Extra holidays to register before building.
            catalog: Duty catalog to stamp, replacing the calendar's own.

        Returns:
            All Days in date order.
        """
        for holiday in holidays or ():
            self.add_holiday(holiday)
        if catalog is not None:
            self.catalog = catalog

        start = start_date or self.school_year.start_date
        end = end_date or self.school_year.end_date

        self._days = {}
        current = start
        while current <= end:
            self._days[current] = Day(
                date=current,
                is_school_day=self._compute_school_day(current),
                term=self.term_of(current),
            )
            current += timedelta(days=1)

        # Rotation depends on school-day status, so it is computed second
        for day in self._days.values():
            day.is_day1 = self.is_day1(day.date)
            if day.is_school_day:
                self.catalog.stamp(day)

        school_day_count = sum(1 for d in self._days.values() if d.is_school_day)
        logger.debug(
            "Initialized %d days (%d school days) from %s to %s",
            len(self._days), school_day_count, start, end,
        )
        return self.days

    def _compute_school_day(self, d: date) -> bool:
        if d.weekday() >= 5:
            return False
        return not any(holiday.covers(d) for holiday in self.holidays)

    def term_of(self, d: date) -> int:
        return self.school_year.term_of(d)

    def is_day1(self, d: date) -> bool:
        anchor = self.school_year.rotation_anchors[self.term_of(d)]
        return self.rotation_policy.is_day1(d, anchor, self.is_school_day)

    def is_school_day(self, d: date) -> bool:
        day = self._days.get(d)
        if day is not None:
            return day.is_school_day
        return self._compute_school_day(d)

    def get_day(self, d: date) -> Optional[Day]:
        return self._days.get(d)

    @property
    def days(self) -> list[Day]:
        return [self._days[d] for d in sorted(self._days)]

    def school_days(self) -> list[Day]:
        return [day for day in self.days if day.is_school_day]

    def days_in_term(self, term: int) -> list[Day]:
        """School days of one term."""
        return [day for day in self.school_days() if day.term == term]
