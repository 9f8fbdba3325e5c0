"""Tests for staff classification, quotas and duty bookkeeping."""

import pytest

from dutyroster.domain.models import DutyKey, LoadTier, Rotation, StaffRole
from dutyroster.domain.staff import (
    StaffMember,
    classify,
    count_filled_periods,
    normalize_timetable,
    parse_course_codes,
    time_allocation,
)


def timetable(*taught: int, code: str = "MPM2D-01") -> list[str]:
    """Ten-period timetable teaching `code` in the given periods."""
    periods = [""] * 10
    for index in taught:
        periods[index] = code
    return periods


class TestCourseCodes:
    """Tests for course code parsing."""

    def test_first_token_upper_cased(self):
        """The code is the first token before a space or dash."""
        assert parse_course_codes("mpm2d-01") == ["MPM2D"]
        assert parse_course_codes("ENG2D 02") == ["ENG2D"]

    def test_quotes_and_multiple_courses(self):
        """Quoted cells may hold several comma-separated courses."""
        assert parse_course_codes('"mpm2d-01, eng2d 02"') == ["MPM2D", "ENG2D"]

    def test_empty_cell(self):
        """Blank cells hold no codes."""
        assert parse_course_codes("") == []
        assert parse_course_codes("   ") == []


class TestClassify:
    """Tests for load tier and role classification."""

    def test_full_time(self):
        """Six taught periods is a full-time load."""
        result = classify(timetable(0, 1, 2, 3, 5, 6))
        assert result.tier is LoadTier.FULL_TIME
        assert result.role is StaffRole.REGULAR
        assert result.filled_periods == 6
        assert result.excluded is False

    def test_over_full_time_counts_optional_period(self):
        """An occupied optional period counts toward the load."""
        result = classify(timetable(0, 1, 2, 3, 4, 5, 6))
        assert result.tier is LoadTier.OVER_FULL_TIME
        assert result.filled_periods == 7

    @pytest.mark.parametrize(
        "taught,tier",
        [
            ((0, 1, 2, 3, 5), LoadTier.FIVE_SIXTHS),
            ((0, 1, 2, 3), LoadTier.FOUR_SIXTHS),
            ((0, 1, 2), LoadTier.THREE_SIXTHS),
            ((0, 1), LoadTier.TWO_SIXTHS),
            ((0,), LoadTier.ONE_SIXTH),
            ((), LoadTier.NO_LOAD),
        ],
    )
    def test_partial_loads(self, taught, tier):
        """Fewer taught periods step down through the tiers."""
        assert classify(timetable(*taught)).tier is tier

    def test_time_allocation(self):
        """Allocation divides by eight plus any occupied optional periods."""
        assert time_allocation(timetable(0, 1, 2, 3, 5, 6)) == pytest.approx(6 / 8)
        assert time_allocation(timetable(0, 1, 2, 3, 4, 5, 6)) == pytest.approx(7 / 9)
        assert count_filled_periods(timetable(4, 9)) == 2

    def test_guidance_code_excludes(self):
        """A guidance course marks the member excluded."""
        result = classify(timetable(0, 1, 2, code="2GU-01"))
        assert result.excluded is True
        assert result.role is StaffRole.GUIDANCE

    @pytest.mark.parametrize("code", ["PPL1O-01", "1CO-02", "RCR-01", "1RC", "GLE2O", "2LI-01"])
    def test_exclusion_codes(self, code):
        """Every exclusion family marks the member excluded."""
        periods = timetable(0, 1, 2, 3)
        periods[5] = code
        assert classify(periods).excluded is True

    def test_library_stays_regular(self):
        """Library staff are excluded without a role of their own."""
        result = classify(timetable(0, 1, code="2LI-01"))
        assert result.role is StaffRole.REGULAR
        assert result.excluded is True

    def test_dominant_family_wins(self):
        """The most frequent family selects the role."""
        periods = timetable(0, 1, code="PPL1O")
        periods[2] = "1CO"
        assert classify(periods).role is StaffRole.GYM

    def test_family_tie_prefers_coop(self):
        """Equal counts resolve in the fixed family order."""
        periods = timetable(0, code="PPL1O")
        periods[1] = "1CO"
        assert classify(periods).role is StaffRole.COOP


class TestStaffMember:
    """Tests for StaffMember quota and bookkeeping."""

    @pytest.fixture
    def member(self):
        """Full-time member with quota 14."""
        return StaffMember("Smith", timetable(0, 1, 2, 3, 5, 6))

    def _key(self, term=0, weekday=0, time_slot=0):
        return DutyKey(term, weekday, Rotation.DAY1, time_slot, 0)

    def test_quota_from_tier(self, member):
        """Full-time staff owe 14 duties per semester."""
        assert member.quota == 14
        assert member.tier is LoadTier.FULL_TIME

    def test_excluded_quota_is_zero(self):
        """Exclusion zeroes the quota regardless of load."""
        member = StaffMember("Jones", timetable(0, 1, 2, 3, 5, 6, code="2GU-01"))
        assert member.quota == 0

    def test_role_override_quotas(self):
        """Guidance and department heads get flat quotas."""
        assert StaffMember("G", role_override=StaffRole.GUIDANCE).quota == 25
        assert StaffMember("H", role_override=StaffRole.HEAD).quota == 10

    def test_quota_override_wins(self):
        """An explicit quota beats everything else."""
        member = StaffMember("X", timetable(0, code="2GU-01"), quota_override=5)
        assert member.quota == 5

    def test_set_period_recomputes(self, member):
        """Changing the timetable refreshes classification and quota."""
        member.set_period(6, "")
        assert member.tier is LoadTier.FIVE_SIXTHS
        assert member.quota == 11

        member.set_period(0, "PPL1O")
        assert member.quota == 0

    def test_set_period_out_of_range(self, member):
        """Only ten periods exist."""
        with pytest.raises(ValueError):
            member.set_period(10, "MPM2D")

    def test_timetable_normalized(self):
        """Short timetables are padded, long ones rejected."""
        assert normalize_timetable(["A"]) == ["A"] + [""] * 9
        with pytest.raises(ValueError):
            normalize_timetable(["A"] * 11)
        assert len(StaffMember("P", ["MPM2D"]).timetable) == 10

    def test_semester_activity(self):
        """Semester activity follows the matching half of the timetable."""
        member = StaffMember("S2", timetable(5, 6, 7))
        assert member.has_class_in_semester(0) is False
        assert member.has_class_in_semester(1) is True
        assert member.is_active_in_semester(0) is False

    def test_override_members_always_active(self):
        """Non-teaching staff with an override take duties every semester."""
        member = StaffMember("G", role_override=StaffRole.GUIDANCE)
        assert member.is_active_in_semester(0) is True
        assert member.is_active_in_semester(1) is True

    def test_assign_accumulates(self, member):
        """Assignments add their weight to every counter."""
        member.assign(self._key(term=0), 3)
        member.assign(self._key(term=1, weekday=2), 4)
        assert member.assigned_count == 7
        assert member.duties_per_term == [3, 4, 0, 0]
        assert member.semester_totals == [7, 0]
        assert member.remaining_quota == 7

    def test_assign_refuses_duplicate(self, member):
        """Holding the same duty twice is refused without mutation."""
        member.assign(self._key(), 2)
        with pytest.raises(ValueError):
            member.assign(self._key(), 2)
        assert member.assigned_count == 2

    def test_assign_refuses_over_quota(self, member):
        """A weight past the quota is refused without mutation."""
        member.assign(self._key(), 10)
        with pytest.raises(ValueError):
            member.assign(self._key(weekday=1), 5)
        assert member.assigned_count == 10
        assert len(member.assigned_duties) == 1
        assert member.can_take(4) is True

    def test_reset_for_semester_keeps_year_totals(self, member):
        """Semester reset clears the live counters only."""
        member.assign(self._key(), 4)
        member.reset_for_semester()
        assert member.assigned_count == 0
        assert member.assigned_duties == set()
        assert member.semester_totals == [4, 0]
        assert member.duties_per_term[0] == 4

    def test_str_lists_periods(self, member):
        """The text form shows each period."""
        text = str(member)
        assert "Smith" in text
        assert "Period 5*: FREE" in text
