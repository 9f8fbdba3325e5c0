"""Validation module for verifying roster correctness.

This module re-checks a finished allocation against the staff models and,
optionally, the calendar's duty grid. Every generated roster should pass
validation before being exported.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from dutyroster.domain.calendar import SchoolCalendar
from dutyroster.domain.models import DutyKey, Rotation, semester_of_term
from dutyroster.domain.policies import (
    DefaultEligibilityPolicy,
    EligibilityPolicy,
)
from dutyroster.domain.staff import StaffMember
from dutyroster.scheduling.duty_assigner import AllocationConfig, AllocationResult


class ValidationErrorType(Enum):
    """Types of validation errors."""

    QUOTA_EXCEEDED = "quota_exceeded"
    OCCUPANCY_EXCEEDED = "occupancy_exceeded"
    ROTATION_CONFLICT = "rotation_conflict"
    INELIGIBLE_OCCUPANT = "ineligible_occupant"
    UNKNOWN_STAFF = "unknown_staff"
    ZERO_QUOTA_ASSIGNED = "zero_quota_assigned"
    COUNT_MISMATCH = "count_mismatch"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    staff_name: Optional[str] = None
    key: Optional[DutyKey] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.staff_name:
            parts.append(f"{self.staff_name}:")
        parts.append(self.message)
        if self.key is not None:
            parts.append(f"({self.key})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating a roster."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)


class RosterValidator:
    """Validates an allocation result against quotas, occupancy and eligibility.

    Example:
        >>> validator = RosterValidator()
        >>> result = validator.validate(allocation, staff, calendar)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def __init__(
        self,
        config: Optional[AllocationConfig] = None,
        eligibility_policy: Optional[EligibilityPolicy] = None,
    ):
        self.config = config or AllocationConfig()
        self.eligibility_policy = eligibility_policy or DefaultEligibilityPolicy()

    def validate(
        self,
        allocation: AllocationResult,
        staff: list[StaffMember],
        calendar: Optional[SchoolCalendar] = None,
    ) -> ValidationResult:
        """Validate a complete allocation.

        Args:
            allocation: Result of an allocation run.
            staff: Staff members the run was given.
            calendar: Calendar whose duty grid was filled, to check every
                real day as well as the pattern roster.

        Returns:
            ValidationResult with is_valid flag and any errors.
        """
        result = ValidationResult(is_valid=True)
        staff_map = {member.name: member for member in staff}

        semester_weights = self._validate_entries(allocation, staff_map, result)
        self._validate_rows(allocation, result)
        self._validate_quotas(semester_weights, staff_map, allocation, result)

        if calendar is not None:
            self._validate_calendar(calendar, result)

        for summary in allocation.under_quota:
            result.add_warning(
                f"{summary.name} is under quota: {summary.assigned_count}/{summary.quota}"
            )

        unfilled = allocation.roster.unfilled()
        if unfilled:
            result.add_warning(f"{len(unfilled)} duty slots have no occupant")

        return result

    def _validate_entries(
        self,
        allocation: AllocationResult,
        staff_map: dict[str, StaffMember],
        result: ValidationResult,
    ) -> dict[tuple[str, int], int]:
        """Check each roster entry; returns weight held per (name, semester)."""
        max_occupants = self.config.reconcile_max_occupants
        semester_weights: dict[tuple[str, int], int] = {}

        for key, entry in allocation.roster.entries.items():
            occupants = entry.occupants(key.rotation)

            if len(occupants) > max_occupants:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.OCCUPANCY_EXCEEDED,
                        message=(
                            f"{entry.duty_name} has {len(occupants)} occupants "
                            f"(max {max_occupants})"
                        ),
                        key=key,
                    )
                )

            for name in sorted(occupants):
                member = staff_map.get(name)
                if member is None:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.UNKNOWN_STAFF,
                            message=f"Unknown staff member on {entry.duty_name}",
                            staff_name=name,
                            key=key,
                        )
                    )
                    continue

                if not self.eligibility_policy.is_eligible(member.timetable, key.time_slot):
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.INELIGIBLE_OCCUPANT,
                            message=f"Teaches during {entry.time_slot_label}",
                            staff_name=name,
                            key=key,
                        )
                    )

                bucket = (name, semester_of_term(key.term))
                semester_weights[bucket] = semester_weights.get(bucket, 0) + entry.weight

        return semester_weights

    def _validate_rows(
        self,
        allocation: AllocationResult,
        result: ValidationResult,
    ) -> None:
        """Check that nobody holds both rotation sides of one exported row."""
        for row in allocation.roster.rows():
            for name in sorted(row.day1_occupants & row.day2_occupants):
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.ROTATION_CONFLICT,
                        message=f"Holds {row.duty_name} on both Day 1 and Day 2",
                        staff_name=name,
                        key=DutyKey(
                            row.term, row.weekday, Rotation.DAY1,
                            row.time_slot, row.position,
                        ),
                    )
                )

    def _validate_quotas(
        self,
        semester_weights: dict[tuple[str, int], int],
        staff_map: dict[str, StaffMember],
        allocation: AllocationResult,
        result: ValidationResult,
    ) -> None:
        for (name, semester), weight in sorted(semester_weights.items()):
            member = staff_map.get(name)
            if member is None or weight == 0:
                continue

            if member.quota == 0:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.ZERO_QUOTA_ASSIGNED,
                        message=f"Holds duties worth {weight} with no quota",
                        staff_name=name,
                    )
                )
            elif weight > member.quota:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.QUOTA_EXCEEDED,
                        message=(
                            f"Semester {semester + 1} duties {weight} exceed "
                            f"quota {member.quota}"
                        ),
                        staff_name=name,
                        details={"semester": semester, "weight": weight},
                    )
                )

            summary = allocation.summaries.get(name)
            if summary is not None and summary.semester_totals[semester] != weight:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.COUNT_MISMATCH,
                        message=(
                            f"Semester {semester + 1} total "
                            f"{summary.semester_totals[semester]} does not match "
                            f"roster weight {weight}"
                        ),
                        staff_name=name,
                    )
                )

    def _validate_calendar(
        self,
        calendar: SchoolCalendar,
        result: ValidationResult,
    ) -> None:
        max_occupants = self.config.reconcile_max_occupants
        for day in calendar.school_days():
            for time_slot, position, duty in day.iter_slots():
                for rotation in Rotation:
                    if duty.occupant_count(rotation) > max_occupants:
                        result.add_error(
                            ValidationError(
                                error_type=ValidationErrorType.OCCUPANCY_EXCEEDED,
                                message=(
                                    f"{duty.name} on {day.date} has "
                                    f"{duty.occupant_count(rotation)} {rotation.label} occupants"
                                ),
                            )
                        )
                for name in duty.day1_occupants & duty.day2_occupants:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.ROTATION_CONFLICT,
                            message=f"Holds {duty.name} on both sides on {day.date}",
                            staff_name=name,
                        )
                    )
