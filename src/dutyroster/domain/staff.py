"""Staff model: timetable, classification, quota and assigned duties."""

import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

from dutyroster.domain.models import (
    Classification,
    DutyKey,
    LoadTier,
    StaffRole,
    semester_of_term,
)
from dutyroster.domain.policies import (
    TIMETABLE_PERIODS,
    DefaultQuotaPolicy,
    QuotaPolicy,
)

# Optional periods (period 5 and period 10) only count when occupied
OPTIONAL_PERIODS = (4, 9)
BASE_PERIODS = 8

SEMESTER_PERIODS = {0: range(0, 5), 1: range(5, 10)}

COOP_CODES = ("1CO",)
GYM_CODES = ("PPL",)
CREDIT_RECOVERY_CODES = ("RCR", "1RC")
GUIDANCE_CODES = ("2GU", "GLE")
LIBRARY_CODES = ("2LI",)

EXCLUDED_CODES = (
    GYM_CODES + COOP_CODES + CREDIT_RECOVERY_CODES + GUIDANCE_CODES + LIBRARY_CODES
)

# Tie-break order when two families are equally frequent
ROLE_FAMILIES = (
    (StaffRole.COOP, COOP_CODES),
    (StaffRole.GYM, GYM_CODES),
    (StaffRole.GUIDANCE, GUIDANCE_CODES),
    (StaffRole.CREDIT_RECOVERY, CREDIT_RECOVERY_CODES),
)

TIER_BY_PERIODS = {
    6: LoadTier.FULL_TIME,
    5: LoadTier.FIVE_SIXTHS,
    4: LoadTier.FOUR_SIXTHS,
    3: LoadTier.THREE_SIXTHS,
    2: LoadTier.TWO_SIXTHS,
    1: LoadTier.ONE_SIXTH,
}

_CODE_SPLIT = re.compile(r"[ ,\-]")


def parse_course_codes(entry: str) -> list[str]:
    """Extract normalized course codes from one timetable cell.

    A cell may hold several comma-separated courses; the code is the
    first token of each, upper-cased with quotes removed.
    """
    codes = []
    if not entry or not entry.strip():
        return codes
    for course in entry.split(","):
        cleaned = course.upper().replace('"', "").strip()
        if not cleaned:
            continue
        code = _CODE_SPLIT.split(cleaned)[0]
        if code:
            codes.append(code)
    return codes


def count_filled_periods(timetable: Sequence[str]) -> int:
    """Occupied periods; the optional periods count only when occupied."""
    return sum(1 for entry in timetable if entry and entry.strip())


def time_allocation(timetable: Sequence[str]) -> float:
    """Filled periods over the base periods plus any occupied optional ones."""
    total = BASE_PERIODS
    for index in OPTIONAL_PERIODS:
        if index < len(timetable) and timetable[index].strip():
            total += 1
    return count_filled_periods(timetable) / total


def load_tier(filled_periods: int) -> LoadTier:
    if filled_periods >= 7:
        return LoadTier.OVER_FULL_TIME
    return TIER_BY_PERIODS.get(filled_periods, LoadTier.NO_LOAD)


def classify(timetable: Sequence[str]) -> Classification:
    """Classify a timetable by course families and teaching load."""
    family_counts = {role: 0 for role, _ in ROLE_FAMILIES}
    excluded = False

    for entry in timetable:
        for code in parse_course_codes(entry):
            if any(excluded_code in code for excluded_code in EXCLUDED_CODES):
                excluded = True
            for role, family_codes in ROLE_FAMILIES:
                if any(family_code in code for family_code in family_codes):
                    family_counts[role] += 1
                    break

    role = StaffRole.REGULAR
    best = 0
    for family_role, _ in ROLE_FAMILIES:
        if family_counts[family_role] > best:
            best = family_counts[family_role]
            role = family_role

    filled = count_filled_periods(timetable)
    return Classification(
        role=role,
        tier=load_tier(filled),
        filled_periods=filled,
        time_allocation=time_allocation(timetable),
        excluded=excluded,
    )


def normalize_timetable(periods: Sequence[Optional[str]]) -> list[str]:
    """Pad or validate a timetable to exactly ten period slots.

    Raises:
        ValueError: If more than ten periods are given.
    """
    if len(periods) > TIMETABLE_PERIODS:
        raise ValueError(
            f"Timetable has {len(periods)} periods, expected at most {TIMETABLE_PERIODS}"
        )
    cleaned = [(p or "").strip() for p in periods]
    return cleaned + [""] * (TIMETABLE_PERIODS - len(cleaned))


@dataclass
class StaffMember:
    """A staff member and their duty bookkeeping.

    Classification and quota are derived from the timetable and recomputed
    whenever it changes; the allocation engine only touches the assignment
    counters.

    Attributes:
        name: Full name, used as the occupant identifier.
        timetable: Ten period slots holding a course code or "".
        role_override: Role assigned outside the timetable (guidance, head).
        quota_override: Explicit per-semester quota.
        quota_policy: Policy mapping classification to quota.
        assigned_count: Duty weight accrued in the current semester.
        assigned_duties: Keys of duties held in the current semester.
        duties_per_term: Duty weight accrued per term across the year.
        semester_totals: Duty weight accrued per semester across the year.
    """

    name: str
    timetable: list[str] = field(default_factory=lambda: [""] * TIMETABLE_PERIODS)
    role_override: Optional[StaffRole] = None
    quota_override: Optional[int] = None
    quota_policy: QuotaPolicy = field(default_factory=DefaultQuotaPolicy, repr=False)
    assigned_count: int = 0
    assigned_duties: set[DutyKey] = field(default_factory=set)
    duties_per_term: list[int] = field(default_factory=lambda: [0, 0, 0, 0])
    semester_totals: list[int] = field(default_factory=lambda: [0, 0])
    classification: Classification = field(init=False)
    quota: int = field(init=False)

    def __post_init__(self):
        self.timetable = normalize_timetable(self.timetable)
        self._recompute()

    def _recompute(self) -> None:
        derived = classify(self.timetable)
        if self.role_override is not None:
            derived = Classification(
                role=self.role_override,
                tier=derived.tier,
                filled_periods=derived.filled_periods,
                time_allocation=derived.time_allocation,
                excluded=derived.excluded,
            )
        self.classification = derived
        if self.quota_override is not None:
            self.quota = self.quota_override
        else:
            self.quota = self.quota_policy.quota(derived)

    @property
    def role(self) -> StaffRole:
        return self.classification.role

    @property
    def tier(self) -> LoadTier:
        return self.classification.tier

    @property
    def remaining_quota(self) -> int:
        return max(0, self.quota - self.assigned_count)

    @property
    def is_under_quota(self) -> bool:
        return self.assigned_count < self.quota

    def set_period(self, index: int, course: str) -> None:
        """Replace one timetable period and recompute classification."""
        if not 0 <= index < TIMETABLE_PERIODS:
            raise ValueError(f"Period index {index} out of range")
        self.timetable[index] = (course or "").strip()
        self._recompute()

    def has_class_in_semester(self, semester: int) -> bool:
        """Whether any period of the semester's half of the timetable is taught."""
        return any(self.timetable[i].strip() for i in SEMESTER_PERIODS[semester])

    def is_active_in_semester(self, semester: int) -> bool:
        """Whether the member takes duties in a semester.

        Members with a role or quota override are non-teaching staff and
        stay active without a timetable.
        """
        if self.role_override is not None or self.quota_override is not None:
            return True
        return self.has_class_in_semester(semester)

    def reset_for_semester(self) -> None:
        """Clear the per-semester counters. Yearly totals are kept."""
        self.assigned_count = 0
        self.assigned_duties.clear()

    def reset_for_year(self) -> None:
        self.reset_for_semester()
        self.duties_per_term = [0, 0, 0, 0]
        self.semester_totals = [0, 0]

    def has_duty(self, key: DutyKey) -> bool:
        return key in self.assigned_duties

    def can_take(self, weight: int) -> bool:
        return self.assigned_count + weight <= self.quota

    def assign(self, key: DutyKey, weight: int) -> None:
        """Record a duty held for `weight` real occurrences.

        Raises:
            ValueError: If the duty is already held or the weight would
                push the member past quota. Nothing is mutated.
        """
        if key in self.assigned_duties:
            raise ValueError(f"{self.name} already holds {key}")
        if not self.can_take(weight):
            raise ValueError(
                f"{self.name}: {self.assigned_count} + {weight} exceeds quota {self.quota}"
            )
        self.assigned_duties.add(key)
        self.assigned_count += weight
        self.duties_per_term[key.term] += weight
        self.semester_totals[semester_of_term(key.term)] += weight

    def __str__(self) -> str:
        lines = [
            f"Staff: {self.name}",
            f"Type: {self.role.value}",
            f"Status: {self.tier.label} ({self.classification.time_allocation:.2f} load)",
            f"Duties: {self.assigned_count}/{self.quota}",
        ]
        for index, entry in enumerate(self.timetable):
            marker = "*" if index in OPTIONAL_PERIODS else " "
            lines.append(f"  Period {index + 1}{marker}: {entry or 'FREE'}")
        return "\n".join(lines)
