"""Greedy duty allocation engine.

This module implements the pattern-based heuristic that fills the duty grid:
1. Group school days into (term, weekday, rotation) patterns
2. Per semester, give each staff member non-hall duties up to quota
3. Top up members still under quota with hall (filler) duties
4. Reconcile: fill empty slots, then allow a second occupant per side
5. Copy representative-day occupants onto every day of the pattern

One assignment on a pattern's representative day stands for every real
occurrence of that pattern, so it costs the member the pattern's weight.
"""

import logging
import random
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Optional

from dutyroster.domain.calendar import SchoolCalendar
from dutyroster.domain.models import (
    Duty,
    DutyKey,
    DutyRoster,
    LoadTier,
    RosterEntry,
    StaffRole,
)
from dutyroster.domain.policies import (
    DefaultEligibilityPolicy,
    EligibilityPolicy,
    eligible,
)
from dutyroster.domain.staff import StaffMember
from dutyroster.scheduling.patterns import PatternBucket, PatternTable

logger = logging.getLogger(__name__)

SEMESTERS = (0, 1)


class AllocationPhase(Enum):
    """Stages of one allocation run."""

    BUILD_PATTERNS = "build_patterns"
    ASSIGN_PRIMARY = "assign_primary"
    ASSIGN_FILLER = "assign_filler"
    RECONCILE = "reconcile"
    DONE = "done"


@dataclass
class AllocationConfig:
    """Configuration for the allocation engine.

    Attributes:
        seed: Seed for the staff shuffle. None draws a fresh seed, which is
            reported on the result so the run can be repeated.
        shuffle_staff: Shuffle the staff order once per run.
        primary_max_occupants: Occupants per rotation side during the
            primary and filler passes.
        reconcile_max_occupants: Occupants per rotation side allowed by the
            second reconcile sweep.
        filler_marker: Substring of the duty name marking filler duties.
        propagate_to_all_days: Copy occupants onto every day of a pattern.
    """

    seed: Optional[int] = None
    shuffle_staff: bool = True
    primary_max_occupants: int = 1
    reconcile_max_occupants: int = 2
    filler_marker: str = "Hall"
    propagate_to_all_days: bool = True

    def __post_init__(self):
        if self.primary_max_occupants < 1:
            raise ValueError("primary_max_occupants must be at least 1")
        if self.reconcile_max_occupants < self.primary_max_occupants:
            raise ValueError(
                "reconcile_max_occupants must not be below primary_max_occupants"
            )


@dataclass(frozen=True)
class AssignmentRecord:
    """One committed assignment, in commit order."""

    staff_name: str
    key: DutyKey
    duty_name: str
    weight: int
    phase: AllocationPhase


@dataclass
class EngineContext:
    """All mutable state of one allocation run."""

    calendar: SchoolCalendar
    staff: list[StaffMember]
    config: AllocationConfig
    eligibility_policy: EligibilityPolicy
    seed: int
    rng: random.Random
    patterns: Optional[PatternTable] = None
    phase: AllocationPhase = AllocationPhase.BUILD_PATTERNS
    phase_log: list[AllocationPhase] = field(default_factory=list)
    assignments: list[AssignmentRecord] = field(default_factory=list)

    def enter(self, phase: AllocationPhase) -> None:
        self.phase = phase
        self.phase_log.append(phase)
        logger.debug("Entering phase %s", phase.value)


@dataclass(frozen=True)
class StaffDutySummary:
    """Per-staff outcome of a run."""

    name: str
    role: StaffRole
    tier: LoadTier
    assigned_count: int
    quota: int
    semester_totals: tuple[int, int]
    duties_per_term: tuple[int, int, int, int]

    @classmethod
    def from_member(cls, member: StaffMember) -> "StaffDutySummary":
        return cls(
            name=member.name,
            role=member.role,
            tier=member.tier,
            assigned_count=member.assigned_count,
            quota=member.quota,
            semester_totals=tuple(member.semester_totals),
            duties_per_term=tuple(member.duties_per_term),
        )

    @property
    def is_under_quota(self) -> bool:
        return self.assigned_count < self.quota

    @property
    def year_total(self) -> int:
        return sum(self.semester_totals)


@dataclass
class AllocationResult:
    """Output of one allocation run.

    Attributes:
        roster: Filled duties per pattern.
        summaries: Dict mapping staff name to StaffDutySummary.
        patterns: Pattern table the run worked on.
        assignments: Committed assignments in commit order.
        seed: Seed used for the staff shuffle.
        phases: Phases entered, in order.
    """

    roster: DutyRoster
    summaries: dict[str, StaffDutySummary]
    patterns: PatternTable
    assignments: list[AssignmentRecord]
    seed: int
    phases: list[AllocationPhase] = field(default_factory=list)

    @property
    def under_quota(self) -> list[StaffDutySummary]:
        return [s for s in self.summaries.values() if s.is_under_quota]

    @property
    def total_weight_assigned(self) -> int:
        return sum(record.weight for record in self.assignments)


class DutyAssigner:
    """Pattern-based greedy allocation engine.

    The engine mutates the duty grid of the calendar's school days in place
    and the assignment counters of the staff members it is given.

    Example:
        >>> assigner = DutyAssigner(AllocationConfig(seed=7))
        >>> result = assigner.run(calendar, staff)
        >>> result.roster.lookup(0, 0, Rotation.DAY1, 2)
    """

    def __init__(
        self,
        config: Optional[AllocationConfig] = None,
        eligibility_policy: Optional[EligibilityPolicy] = None,
    ):
        self.config = config or AllocationConfig()
        self.eligibility_policy = eligibility_policy or DefaultEligibilityPolicy()

    def create_context(
        self,
        calendar: SchoolCalendar,
        staff: list[StaffMember],
    ) -> EngineContext:
        seed = self.config.seed
        if seed is None:
            seed = random.randrange(2**31)
        return EngineContext(
            calendar=calendar,
            staff=list(staff),
            config=self.config,
            eligibility_policy=self.eligibility_policy,
            seed=seed,
            rng=random.Random(seed),
        )

    def run(
        self,
        calendar: SchoolCalendar,
        staff: list[StaffMember],
    ) -> AllocationResult:
        """Allocate duties for the whole school year.

        Args:
            calendar: Initialized school calendar.
            staff: Staff members; their counters are updated in place.

        Returns:
            AllocationResult with the roster and per-staff summaries.
        """
        context = self.create_context(calendar, staff)

        # Runs start from an empty grid and zeroed counters
        for day in calendar.school_days():
            for duty in day.duties:
                duty.day1_occupants.clear()
                duty.day2_occupants.clear()
        for member in context.staff:
            member.reset_for_year()

        self.build_patterns(context)

        order = list(context.staff)
        if self.config.shuffle_staff:
            context.rng.shuffle(order)

        for semester in SEMESTERS:
            if not context.patterns.has_weight(semester):
                logger.debug("Semester %d has no school days, skipping", semester + 1)
                continue

            participants = self._participants(order, semester)
            for member in participants:
                member.reset_for_semester()

            self.assign_primary(context, semester, participants)
            self.assign_filler(context, semester, participants)
            self.reconcile(context, semester, participants)

            for member in participants:
                if member.is_under_quota:
                    logger.info(
                        "%s is under quota in semester %d: %d/%d",
                        member.name, semester + 1, member.assigned_count, member.quota,
                    )

        context.enter(AllocationPhase.DONE)
        if self.config.propagate_to_all_days:
            self.propagate(context)

        return self._build_result(context)

    def build_patterns(self, context: EngineContext) -> PatternTable:
        """Group school days into weighted pattern buckets."""
        context.enter(AllocationPhase.BUILD_PATTERNS)
        context.patterns = PatternTable.build(context.calendar)
        logger.debug(
            "Built %d patterns covering %d school days",
            sum(1 for bucket in context.patterns if bucket.weight > 0),
            context.patterns.total_weight(),
        )
        return context.patterns

    def assign_primary(
        self,
        context: EngineContext,
        semester: int,
        participants: list[StaffMember],
    ) -> None:
        """Give each member non-filler duties until quota or no progress."""
        context.enter(AllocationPhase.ASSIGN_PRIMARY)
        buckets = context.patterns.semester_buckets(semester)
        marker = self.config.filler_marker

        for member in participants:
            self._fill_until_stable(
                context,
                member,
                buckets,
                self.config.primary_max_occupants,
                lambda duty: not duty.is_filler(marker),
            )

    def assign_filler(
        self,
        context: EngineContext,
        semester: int,
        participants: list[StaffMember],
    ) -> None:
        """Top up members still under quota with filler duties."""
        context.enter(AllocationPhase.ASSIGN_FILLER)
        buckets = context.patterns.semester_buckets(semester)
        marker = self.config.filler_marker

        for member in participants:
            if not member.is_under_quota:
                continue
            self._fill_until_stable(
                context,
                member,
                buckets,
                self.config.primary_max_occupants,
                lambda duty: duty.is_filler(marker),
            )

    def reconcile(
        self,
        context: EngineContext,
        semester: int,
        participants: list[StaffMember],
    ) -> None:
        """Spend remaining quota on empty slots, then on second occupants."""
        context.enter(AllocationPhase.RECONCILE)
        buckets = context.patterns.semester_buckets(semester)

        sweeps = [self.config.primary_max_occupants]
        if self.config.reconcile_max_occupants > self.config.primary_max_occupants:
            sweeps.append(self.config.reconcile_max_occupants)

        for max_occupants in sweeps:
            for member in participants:
                if not member.is_under_quota:
                    continue
                self._fill_until_stable(
                    context, member, buckets, max_occupants, lambda duty: True
                )

    def propagate(self, context: EngineContext) -> int:
        """Copy representative-day occupants onto every day of each pattern.

        Returns:
            Number of days updated.
        """
        updated = 0
        for bucket in context.patterns:
            representative = bucket.representative
            if representative is None:
                continue
            rotation = bucket.key.rotation
            for day in bucket.days[1:]:
                for time_slot, position, duty in representative.iter_slots():
                    target = day.duty_slots[time_slot][position]
                    if target is not None:
                        target.copy_occupants_from(duty, rotation)
                updated += 1
        logger.debug("Propagated occupants onto %d days", updated)
        return updated

    def _participants(
        self,
        order: list[StaffMember],
        semester: int,
    ) -> list[StaffMember]:
        participants = []
        for member in order:
            if member.quota <= 0:
                logger.debug("Skipping %s: no duty quota", member.name)
                continue
            if not member.is_active_in_semester(semester):
                logger.debug(
                    "Skipping %s: no classes in semester %d", member.name, semester + 1
                )
                continue
            participants.append(member)
        return participants

    def _fill_until_stable(
        self,
        context: EngineContext,
        member: StaffMember,
        buckets: list[PatternBucket],
        max_occupants: int,
        accepts: Callable[[Duty], bool],
    ) -> None:
        # A later, lighter pattern may still fit after a heavier one failed
        while member.is_under_quota:
            if self._scan(context, member, buckets, max_occupants, accepts) == 0:
                break

    def _scan(
        self,
        context: EngineContext,
        member: StaffMember,
        buckets: list[PatternBucket],
        max_occupants: int,
        accepts: Callable[[Duty], bool],
    ) -> int:
        """One pass over the representative days; returns assignments made."""
        made = 0
        for bucket in buckets:
            day = bucket.representative
            if day is None:
                continue
            for time_slot, position, duty in day.iter_slots():
                if not member.is_under_quota:
                    return made
                if not accepts(duty):
                    continue
                if self._try_assign(
                    context, member, bucket, time_slot, position, duty, max_occupants
                ):
                    made += 1
        return made

    def _try_assign(
        self,
        context: EngineContext,
        member: StaffMember,
        bucket: PatternBucket,
        time_slot: int,
        position: int,
        duty: Duty,
        max_occupants: int,
    ) -> bool:
        pattern = bucket.key
        rotation = pattern.rotation
        key = DutyKey(pattern.term, pattern.weekday, rotation, time_slot, position)

        if member.has_duty(key) or duty.has_occupant(member.name):
            return False
        # Day 1 and Day 2 of a weekday share one roster row
        if member.has_duty(replace(key, rotation=rotation.other)):
            return False
        if duty.is_filled(rotation, max_occupants):
            return False
        if not member.can_take(bucket.weight):
            return False
        if not eligible(member, time_slot, context.eligibility_policy):
            return False

        duty.add_occupant(rotation, member.name)
        member.assign(key, bucket.weight)
        context.assignments.append(
            AssignmentRecord(
                staff_name=member.name,
                key=key,
                duty_name=duty.name,
                weight=bucket.weight,
                phase=context.phase,
            )
        )
        return True

    def _build_result(self, context: EngineContext) -> AllocationResult:
        roster = DutyRoster()
        for bucket in context.patterns:
            representative = bucket.representative
            if representative is None:
                continue
            pattern = bucket.key
            for time_slot, position, duty in representative.iter_slots():
                roster.add(
                    RosterEntry(
                        key=DutyKey(
                            pattern.term, pattern.weekday, pattern.rotation,
                            time_slot, position,
                        ),
                        duty_name=duty.name,
                        room=duty.room,
                        time_slot_label=duty.time_slot_label,
                        day1_occupants=frozenset(duty.day1_occupants),
                        day2_occupants=frozenset(duty.day2_occupants),
                        weight=bucket.weight,
                    )
                )

        summaries = {
            member.name: StaffDutySummary.from_member(member) for member in context.staff
        }

        return AllocationResult(
            roster=roster,
            summaries=summaries,
            patterns=context.patterns,
            assignments=list(context.assignments),
            seed=context.seed,
            phases=list(context.phase_log),
        )
