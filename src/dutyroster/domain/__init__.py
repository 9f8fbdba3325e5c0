"""Domain models and business rules for duty allocation."""

from dutyroster.domain.calendar import (
    Day,
    Holiday,
    SchoolCalendar,
    SchoolYear,
)
from dutyroster.domain.models import (
    Classification,
    Duty,
    DutyCatalog,
    DutyKey,
    DutyRoster,
    DutySlot,
    LoadTier,
    Rotation,
    RosterEntry,
    RosterRow,
    StaffRole,
)
from dutyroster.domain.policies import (
    CalendarDayRotation,
    DefaultEligibilityPolicy,
    DefaultQuotaPolicy,
    EligibilityPolicy,
    QuotaPolicy,
    RotationPolicy,
    SchoolDayRotation,
    SlotRule,
    eligible,
)
from dutyroster.domain.staff import StaffMember, classify

__all__ = [
    # Calendar
    "Day",
    "Holiday",
    "SchoolCalendar",
    "SchoolYear",
    # Models
    "Classification",
    "Duty",
    "DutyCatalog",
    "DutyKey",
    "DutyRoster",
    "DutySlot",
    "LoadTier",
    "Rotation",
    "RosterEntry",
    "RosterRow",
    "StaffRole",
    # Staff
    "StaffMember",
    "classify",
    # Policies
    "CalendarDayRotation",
    "DefaultEligibilityPolicy",
    "DefaultQuotaPolicy",
    "EligibilityPolicy",
    "QuotaPolicy",
    "RotationPolicy",
    "SchoolDayRotation",
    "SlotRule",
    "eligible",
]
