"""Policy definitions for duty allocation rules.

This module contains configurable policies that define the business rules
for Day 1 / Day 2 rotation, duty quotas and slot eligibility. Policies are
kept separate from the allocation engine to allow independent testing and
easy modification.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Optional, Sequence

from dutyroster.domain.models import Classification, LoadTier, StaffRole

TIMETABLE_PERIODS = 10


class RotationPolicy(ABC):
    """Abstract base class for Day 1 / Day 2 rotation rules."""

    @abstractmethod
    def is_day1(
        self,
        target: date,
        anchor: date,
        is_school_day: Callable[[date], bool],
    ) -> bool:
        """Decide the rotation side of a date.

        Args:
            target: Date being classified.
            anchor: Rotation anchor of the term the date belongs to.
            is_school_day: Predicate telling whether a date has classes.

        Returns:
            True for Day 1, False for Day 2.
        """
        pass


@dataclass
class CalendarDayRotation(RotationPolicy):
    """Parity of calendar days since the term anchor.

    The anchor is Day 1. Weekends and holidays still advance the count, so
    each weekday alternates between Day 1 and Day 2 from one week to the
    next regardless of closures.
    """

    def is_day1(
        self,
        target: date,
        anchor: date,
        is_school_day: Callable[[date], bool],
    ) -> bool:
        return (target - anchor).days % 2 == 0


@dataclass
class SchoolDayRotation(RotationPolicy):
    """Strict every-other-school-day rotation from the term anchor.

    Only school days strictly before the target advance the count, so a
    holiday shifts the rotation of every following day.
    """

    def is_day1(
        self,
        target: date,
        anchor: date,
        is_school_day: Callable[[date], bool],
    ) -> bool:
        count = 0
        current = anchor
        while current < target:
            if is_school_day(current):
                count += 1
            current += timedelta(days=1)
        return count % 2 == 0


class QuotaPolicy(ABC):
    """Abstract base class for per-semester duty quotas."""

    @abstractmethod
    def quota(self, classification: Classification) -> int:
        """Maximum duty weight a staff member owes in one semester."""
        pass


@dataclass
class DefaultQuotaPolicy(QuotaPolicy):
    """Default quota policy implementation.

    Quota by teaching load:
    - Full time (and over full time): 14
    - 5/6: 11, 4/6: 9, 3/6: 7, 2/6: 6
    - 1/6 and no load: 0

    Over full time deliberately takes the full-time quota. The older
    roster tool had no case for it and fell through to 0, which let the
    busiest timetables skip duties entirely.

    Guidance and department heads get flat quotas (25 and 10). Any
    excluded course code zeroes the quota before anything else.
    """

    tier_quotas: dict[LoadTier, int] = field(
        default_factory=lambda: {
            LoadTier.OVER_FULL_TIME: 14,
            LoadTier.FULL_TIME: 14,
            LoadTier.FIVE_SIXTHS: 11,
            LoadTier.FOUR_SIXTHS: 9,
            LoadTier.THREE_SIXTHS: 7,
            LoadTier.TWO_SIXTHS: 6,
            LoadTier.ONE_SIXTH: 0,
            LoadTier.NO_LOAD: 0,
        }
    )
    role_quotas: dict[StaffRole, int] = field(
        default_factory=lambda: {
            StaffRole.GUIDANCE: 25,
            StaffRole.HEAD: 10,
        }
    )

    def quota(self, classification: Classification) -> int:
        if classification.excluded:
            return 0
        if classification.role in self.role_quotas:
            return self.role_quotas[classification.role]
        return self.tier_quotas.get(classification.tier, 0)


@dataclass(frozen=True)
class SlotRule:
    """Maps a duty time slot onto the staff timetable.

    Attributes:
        period_index: Timetable period that must be free.
        adjacent_index: For lunch slots, the bordering class period that
            must also be free.
    """

    period_index: int
    adjacent_index: Optional[int] = None

    @property
    def is_lunch(self) -> bool:
        return self.adjacent_index is not None


def default_slot_rules() -> tuple[SlotRule, ...]:
    """Rules for the standard 11-slot duty day.

    Both lunch slots check the lunch-hour column (period index 2); Lunch A
    also needs the period before it free and Lunch B the period after it.
    """
    return (
        SlotRule(0),  # Period 1
        SlotRule(1),  # Period 2
        SlotRule(2, adjacent_index=1),  # Lunch A
        SlotRule(2, adjacent_index=3),  # Lunch B
        SlotRule(3),  # Period 3
        SlotRule(4),  # Period 4
        SlotRule(5),  # Period 5
        SlotRule(6),  # Period 6
        SlotRule(7),  # Period 7
        SlotRule(8),  # Period 8
        SlotRule(9),  # Period 9
    )


class EligibilityPolicy(ABC):
    """Abstract base class for duty slot eligibility."""

    @abstractmethod
    def is_eligible(self, timetable: Sequence[str], time_slot: int) -> bool:
        """Check whether a timetable leaves a duty time slot free.

        Must be a pure function of its arguments.
        """
        pass


@dataclass
class DefaultEligibilityPolicy(EligibilityPolicy):
    """Default eligibility implementation driven by a slot rule table."""

    rules: tuple[SlotRule, ...] = field(default_factory=default_slot_rules)

    def rule_for(self, time_slot: int) -> Optional[SlotRule]:
        if 0 <= time_slot < len(self.rules):
            return self.rules[time_slot]
        return None

    def is_eligible(self, timetable: Sequence[str], time_slot: int) -> bool:
        rule = self.rule_for(time_slot)
        if rule is None:
            return False

        if _is_occupied(timetable, rule.period_index):
            return False

        # Lunch duties need a genuinely free block
        if rule.is_lunch and _is_occupied(timetable, rule.adjacent_index):
            return False

        return True


def _is_occupied(timetable: Sequence[str], index: int) -> bool:
    if index < 0 or index >= len(timetable):
        return False
    entry = timetable[index]
    return bool(entry and entry.strip())


def eligible(staff, time_slot: int, policy: Optional[EligibilityPolicy] = None) -> bool:
    """Check whether a staff member may take a duty in a time slot."""
    policy = policy or DefaultEligibilityPolicy()
    return policy.is_eligible(staff.timetable, time_slot)
