"""Main scheduler interface.

This module provides the high-level DutyScheduler class that builds the
calendar and staff models from raw records, runs the allocation engine and
reports statistics.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from dutyroster.domain.calendar import Holiday, SchoolCalendar, SchoolYear
from dutyroster.domain.models import DutyCatalog, StaffRole
from dutyroster.domain.policies import (
    DefaultEligibilityPolicy,
    DefaultQuotaPolicy,
    EligibilityPolicy,
    QuotaPolicy,
    RotationPolicy,
)
from dutyroster.domain.staff import StaffMember
from dutyroster.scheduling.duty_assigner import (
    AllocationConfig,
    AllocationResult,
    DutyAssigner,
)


@dataclass
class StaffRecord:
    """Raw staff roster line: a name and its ten timetable periods."""

    name: str
    timetable: list[str] = field(default_factory=list)
    role_override: Optional[StaffRole] = None
    quota_override: Optional[int] = None


class DutyScheduler:
    """High-level scheduler for generating a year's duty roster.

    Example:
        >>> scheduler = DutyScheduler(config=AllocationConfig(seed=42))
        >>> calendar = scheduler.build_calendar(holidays)
        >>> staff = scheduler.build_staff(records)
        >>> result = scheduler.generate(calendar, staff)
    """

    def __init__(
        self,
        school_year: Optional[SchoolYear] = None,
        config: Optional[AllocationConfig] = None,
        rotation_policy: Optional[RotationPolicy] = None,
        quota_policy: Optional[QuotaPolicy] = None,
        eligibility_policy: Optional[EligibilityPolicy] = None,
        catalog: Optional[DutyCatalog] = None,
    ):
        """Initialize scheduler with configuration and policies.

        Args:
            school_year: Year boundaries, term starts and rotation anchors.
            config: Allocation engine configuration.
            rotation_policy: Rule deciding Day 1 / Day 2 for each date.
            quota_policy: Rule mapping classification to semester quota.
            eligibility_policy: Rule deciding free periods per duty slot.
            catalog: Duty slots stamped onto every school day.
        """
        self.school_year = school_year or SchoolYear()
        self.config = config or AllocationConfig()
        self.rotation_policy = rotation_policy
        self.quota_policy = quota_policy or DefaultQuotaPolicy()
        self.eligibility_policy = eligibility_policy or DefaultEligibilityPolicy()
        self.catalog = catalog or DutyCatalog.default()

        self.assigner = DutyAssigner(
            config=self.config,
            eligibility_policy=self.eligibility_policy,
        )

    def build_calendar(
        self,
        holidays: Optional[Iterable[Holiday]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> SchoolCalendar:
        calendar = SchoolCalendar(
            school_year=self.school_year,
            rotation_policy=self.rotation_policy,
            catalog=self.catalog,
        )
        calendar.initialize_year(start_date, end_date, holidays)
        return calendar

    def build_staff(self, records: Iterable[StaffRecord]) -> list[StaffMember]:
        """Create staff members, keeping the roster order."""
        return [
            StaffMember(
                name=record.name,
                timetable=list(record.timetable),
                role_override=record.role_override,
                quota_override=record.quota_override,
                quota_policy=self.quota_policy,
            )
            for record in records
        ]

    def generate(
        self,
        calendar: SchoolCalendar,
        staff: list[StaffMember],
    ) -> AllocationResult:
        return self.assigner.run(calendar, staff)

    def generate_with_stats(
        self,
        calendar: SchoolCalendar,
        staff: list[StaffMember],
    ) -> tuple[AllocationResult, dict]:
        """Generate the roster and return statistics.

        Returns:
            Tuple of (result, stats_dict).
        """
        result = self.generate(calendar, staff)

        stats = self._calculate_stats(result, calendar, staff)

        return result, stats

    def _calculate_stats(
        self,
        result: AllocationResult,
        calendar: SchoolCalendar,
        staff: list[StaffMember],
    ) -> dict:
        """Calculate roster statistics."""
        weighted_entries = [e for e in result.roster.entries.values() if e.weight > 0]
        unfilled = result.roster.unfilled()
        with_quota = [s for s in result.summaries.values() if s.quota > 0]

        return {
            "total_staff": len(staff),
            "staff_with_quota": len(with_quota),
            "staff_under_quota": len(result.under_quota),
            "school_days": len(calendar.school_days()),
            "holidays": len(calendar.holidays),
            "weighted_patterns": sum(1 for b in result.patterns if b.weight > 0),
            "duty_slots": len(weighted_entries),
            "filled_slots": len(weighted_entries) - len(unfilled),
            "unfilled_slots": len(unfilled),
            "assignments": len(result.assignments),
            "total_duty_weight": result.total_weight_assigned,
            "seed": result.seed,
        }
