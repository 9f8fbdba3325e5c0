"""Recurring day patterns of the school year.

Every school day of a term falls into one of ten patterns: its weekday
crossed with its Day 1 / Day 2 rotation side. All days sharing a pattern
carry the same duties, so the allocation engine works on one representative
day per pattern and counts each assignment once per real occurrence.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional

from dutyroster.domain.calendar import Day, SchoolCalendar
from dutyroster.domain.models import (
    SCHOOL_WEEKDAYS,
    SEMESTER_TERMS,
    TERMS,
    WEEKDAY_NAMES,
    Rotation,
)


@dataclass(frozen=True)
class PatternKey:
    """Identifies a (term, weekday, rotation) pattern."""

    term: int
    weekday: int
    rotation: Rotation

    def __str__(self) -> str:
        return f"Term {self.term + 1} {WEEKDAY_NAMES[self.weekday]} {self.rotation.label}"


@dataclass
class PatternBucket:
    """School days matching one pattern key."""

    key: PatternKey
    days: list[Day] = field(default_factory=list)

    @property
    def weight(self) -> int:
        """Real occurrences a single assignment on this pattern stands for."""
        return len(self.days)

    @property
    def representative(self) -> Optional[Day]:
        """Earliest day of the pattern, or None for an empty bucket."""
        return self.days[0] if self.days else None


class PatternTable:
    """All forty pattern buckets of a school year.

    Buckets exist for every (term, weekday, rotation) combination even when
    no school day matches, in which case their weight is zero.
    """

    def __init__(self):
        self._buckets: dict[PatternKey, PatternBucket] = {}
        for term in TERMS:
            for weekday in SCHOOL_WEEKDAYS:
                for rotation in Rotation:
                    key = PatternKey(term, weekday, rotation)
                    self._buckets[key] = PatternBucket(key)

    @classmethod
    def build(cls, calendar: SchoolCalendar) -> "PatternTable":
        """Group the calendar's school days into pattern buckets.

        Builds a fresh table on each call, so repeated builds over the same
        calendar give identical weights.
        """
        table = cls()
        for day in calendar.school_days():
            if day.weekday not in SCHOOL_WEEKDAYS:
                continue
            key = PatternKey(day.term, day.weekday, day.rotation)
            table._buckets[key].days.append(day)
        return table

    def bucket(self, term: int, weekday: int, rotation: Rotation) -> PatternBucket:
        return self._buckets[PatternKey(term, weekday, rotation)]

    def weight(self, term: int, weekday: int, rotation: Rotation) -> int:
        return self.bucket(term, weekday, rotation).weight

    def weights(self) -> dict[PatternKey, int]:
        return {key: bucket.weight for key, bucket in self._buckets.items()}

    def buckets(self, term: Optional[int] = None) -> list[PatternBucket]:
        """Buckets in scan order: weekday, then Day 1 before Day 2."""
        result = []
        terms = TERMS if term is None else (term,)
        for t in terms:
            for weekday in SCHOOL_WEEKDAYS:
                for rotation in (Rotation.DAY1, Rotation.DAY2):
                    result.append(self._buckets[PatternKey(t, weekday, rotation)])
        return result

    def representatives(self, term: int) -> list[PatternBucket]:
        """Weighted buckets of a term in scan order."""
        return [bucket for bucket in self.buckets(term) if bucket.weight > 0]

    def semester_buckets(self, semester: int) -> list[PatternBucket]:
        """Weighted buckets of both terms of a semester in scan order."""
        result = []
        for term in SEMESTER_TERMS[semester]:
            result.extend(self.representatives(term))
        return result

    def has_weight(self, semester: int) -> bool:
        return bool(self.semester_buckets(semester))

    def total_weight(self, term: Optional[int] = None) -> int:
        return sum(bucket.weight for bucket in self.buckets(term))

    def __iter__(self) -> Iterator[PatternBucket]:
        return iter(self.buckets())

    def __len__(self) -> int:
        return len(self._buckets)
