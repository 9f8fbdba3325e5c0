"""Tests for roster validation."""

from datetime import date

import pytest

from dutyroster.domain.calendar import SchoolCalendar, SchoolYear
from dutyroster.domain.models import DutyCatalog, DutyKey, DutySlot, RosterEntry, Rotation
from dutyroster.domain.staff import StaffMember
from dutyroster.scheduling.duty_assigner import AllocationConfig, DutyAssigner
from dutyroster.validation.validator import RosterValidator, ValidationErrorType

FREE = [""] * 10


class TestRosterValidator:
    """Tests for RosterValidator."""

    @pytest.fixture
    def validator(self):
        return RosterValidator()

    @pytest.fixture
    def calendar(self):
        calendar = SchoolCalendar(
            school_year=SchoolYear.single_term(date(2024, 9, 2), date(2024, 9, 6)),
            catalog=DutyCatalog([DutySlot("Front Foyer", "Main Entrance", "Period 1", 0)]),
        )
        calendar.initialize_year()
        return calendar

    @pytest.fixture
    def staff(self):
        return [
            StaffMember("A", FREE, quota_override=3),
            StaffMember("B", FREE, quota_override=3),
        ]

    @pytest.fixture
    def allocation(self, calendar, staff):
        return DutyAssigner(AllocationConfig(seed=4)).run(calendar, staff)

    def _error_types(self, result):
        return {error.error_type for error in result.errors}

    def _entry(self, day1=(), day2=(), weekday=0, rotation=Rotation.DAY1, weight=1):
        return RosterEntry(
            key=DutyKey(0, weekday, rotation, 0, 0),
            duty_name="Front Foyer",
            room="Main Entrance",
            time_slot_label="Period 1",
            day1_occupants=frozenset(day1),
            day2_occupants=frozenset(day2),
            weight=weight,
        )

    def test_generated_roster_is_valid(self, validator, allocation, staff, calendar):
        """A freshly generated roster passes validation."""
        result = validator.validate(allocation, staff, calendar)
        assert result.is_valid, [str(e) for e in result.errors]

    def test_under_quota_is_a_warning(self, validator, calendar):
        """Unmet quotas warn without failing validation."""
        staff = [StaffMember("A", FREE, quota_override=10)]
        allocation = DutyAssigner(AllocationConfig(seed=1)).run(calendar, staff)
        result = validator.validate(allocation, staff, calendar)

        assert result.is_valid is True
        assert any("A is under quota: 5/10" in w for w in result.warnings)

    def test_unfilled_slots_warn(self, validator, calendar):
        """Empty weighted slots are reported as a warning."""
        staff = [StaffMember("A", FREE, quota_override=2)]
        allocation = DutyAssigner(AllocationConfig(seed=1)).run(calendar, staff)
        result = validator.validate(allocation, staff)

        assert result.is_valid is True
        assert any("3 duty slots have no occupant" in w for w in result.warnings)

    def test_quota_exceeded(self, validator, allocation, staff):
        """Holding more weight than the quota is an error."""
        staff[0].quota = 1
        result = validator.validate(allocation, staff)
        assert ValidationErrorType.QUOTA_EXCEEDED in self._error_types(result)

    def test_zero_quota_assigned(self, validator, allocation, staff):
        """Any duty held with a zero quota is an error."""
        staff[1].quota = 0
        result = validator.validate(allocation, staff)
        assert ValidationErrorType.ZERO_QUOTA_ASSIGNED in self._error_types(result)

    def test_ineligible_occupant(self, validator, allocation, staff):
        """An occupant teaching during the slot is an error."""
        staff[0].set_period(0, "MPM2D-01")
        result = validator.validate(allocation, staff)
        assert ValidationErrorType.INELIGIBLE_OCCUPANT in self._error_types(result)

    def test_unknown_staff(self, validator, allocation, staff):
        """Names missing from the staff list are errors."""
        allocation.roster.add(self._entry(day1={"Ghost"}))
        result = validator.validate(allocation, staff)
        assert ValidationErrorType.UNKNOWN_STAFF in self._error_types(result)

    def test_occupancy_exceeded(self, validator, allocation):
        """More than two occupants per side is an error."""
        staff = [StaffMember(name, FREE, quota_override=10) for name in "XYZ"]
        allocation.roster.add(self._entry(day1={"X", "Y", "Z"}))
        result = validator.validate(allocation, staff)
        assert ValidationErrorType.OCCUPANCY_EXCEEDED in self._error_types(result)

    def test_rotation_conflict(self, validator, allocation, staff):
        """The same name on both sides of one exported row is an error."""
        allocation.roster.add(self._entry(day1={"A"}))
        allocation.roster.add(self._entry(day2={"A"}, rotation=Rotation.DAY2))
        result = validator.validate(allocation, staff)

        conflicts = [
            e for e in result.errors
            if e.error_type == ValidationErrorType.ROTATION_CONFLICT
        ]
        assert [e.staff_name for e in conflicts] == ["A"]
        assert conflicts[0].key.weekday == 0

    def test_rotation_sides_split_across_patterns(self, validator, staff):
        """Day 1 and Day 2 patterns of one weekday are checked together."""
        calendar = SchoolCalendar(
            school_year=SchoolYear.single_term(date(2024, 9, 2), date(2024, 9, 13)),
            catalog=DutyCatalog([DutySlot("Front Foyer", "Main Entrance", "Period 1", 0)]),
        )
        calendar.initialize_year()
        allocation = DutyAssigner(AllocationConfig(seed=4)).run(calendar, staff)
        assert validator.validate(allocation, staff, calendar).is_valid

        allocation.roster.add(self._entry(day1={"B"}))
        allocation.roster.add(self._entry(day2={"B"}, rotation=Rotation.DAY2))
        result = validator.validate(allocation, staff, calendar)
        assert ValidationErrorType.ROTATION_CONFLICT in self._error_types(result)

    def test_calendar_grid_checked(self, validator, allocation, staff, calendar):
        """Occupancy on real days is checked as well as the roster."""
        duty = calendar.get_day(date(2024, 9, 2)).duties[0]
        duty.day1_occupants.update({"A", "B", "C"})
        result = validator.validate(allocation, staff, calendar)
        assert ValidationErrorType.OCCUPANCY_EXCEEDED in self._error_types(result)

    def test_error_str(self, validator, allocation, staff):
        """Errors render their type, staff member and key."""
        allocation.roster.add(self._entry(day1={"Ghost"}))
        result = validator.validate(allocation, staff)
        text = str(result.errors[0])
        assert text.startswith("[unknown_staff] Ghost:")
        assert "T1 MON Day 1" in text
