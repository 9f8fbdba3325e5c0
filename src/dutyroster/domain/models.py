"""Domain models for the duty roster.

This module contains the duty catalog, the per-day duty objects with their
two rotation-side occupant sets, the stable keys used to identify duties
across passes, and the roster output read back after allocation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

WEEKDAY_NAMES = ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY")
SCHOOL_WEEKDAYS = tuple(range(len(WEEKDAY_NAMES)))

TERMS = (0, 1, 2, 3)
SEMESTER_TERMS = {0: (0, 1), 1: (2, 3)}


def semester_of_term(term: int) -> int:
    """Semester index (0 or 1) that a term belongs to."""
    return 0 if term < 2 else 1


class Rotation(Enum):
    """Side of the two-day Day 1 / Day 2 timetable cycle."""

    DAY1 = "day1"
    DAY2 = "day2"

    @classmethod
    def from_flag(cls, is_day1: bool) -> "Rotation":
        return cls.DAY1 if is_day1 else cls.DAY2

    @property
    def label(self) -> str:
        return "Day 1" if self is Rotation.DAY1 else "Day 2"

    @property
    def other(self) -> "Rotation":
        return Rotation.DAY2 if self is Rotation.DAY1 else Rotation.DAY1


class StaffRole(Enum):
    """Role tag derived from the dominant course family of a timetable."""

    REGULAR = "regular"  # Standard classroom teacher
    COOP = "coop"  # Co-operative education
    GYM = "gym"  # Physical education
    GUIDANCE = "guidance"
    CREDIT_RECOVERY = "credit_recovery"
    HEAD = "head"  # Department head, only ever set as an override


class LoadTier(Enum):
    """Teaching load measured in sixths of a full-time timetable."""

    OVER_FULL_TIME = "over_full_time"  # >6/6
    FULL_TIME = "full_time"  # 6/6
    FIVE_SIXTHS = "five_sixths"
    FOUR_SIXTHS = "four_sixths"
    THREE_SIXTHS = "three_sixths"
    TWO_SIXTHS = "two_sixths"
    ONE_SIXTH = "one_sixth"
    NO_LOAD = "no_load"  # 0/6

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


@dataclass(frozen=True)
class Classification:
    """Derived classification of a staff timetable.

    Attributes:
        role: Role tag from the dominant course family (or an override).
        tier: Teaching-load tier.
        filled_periods: Number of occupied periods counted toward the load.
        time_allocation: Fraction of the teaching year that is filled.
        excluded: True if any course code is on the duty exclusion list.
    """

    role: StaffRole = StaffRole.REGULAR
    tier: LoadTier = LoadTier.NO_LOAD
    filled_periods: int = 0
    time_allocation: float = 0.0
    excluded: bool = False


@dataclass(frozen=True)
class DutyKey:
    """Stable identifier of a duty within the pattern model.

    Attributes:
        term: Term number (0-3).
        weekday: Weekday index (0 = Monday .. 4 = Friday).
        rotation: Day 1 or Day 2.
        time_slot: Index of the duty time slot in the day.
        position: Position within the time slot.
    """

    term: int
    weekday: int
    rotation: Rotation
    time_slot: int
    position: int

    def __str__(self) -> str:
        return (
            f"T{self.term + 1} {WEEKDAY_NAMES[self.weekday][:3]} "
            f"{self.rotation.label} slot {self.time_slot + 1}.{self.position + 1}"
        )


@dataclass(frozen=True)
class DutySlot:
    """A catalog entry: one supervisory post stamped onto every school day.

    Attributes:
        name: Duty name (e.g. "Cafeteria A").
        room: Default room or area.
        time_slot_label: Human-readable time slot (e.g. "Lunch A").
        time_slot: Index of the time slot in the day grid.
        position: Position within the time slot.
    """

    name: str
    room: str
    time_slot_label: str
    time_slot: int
    position: int = 0

    def is_filler(self, marker: str = "Hall") -> bool:
        return marker.lower() in self.name.lower()


@dataclass
class Duty:
    """A duty on one calendar date with its Day 1 and Day 2 occupants."""

    name: str
    room: str
    time_slot_label: str
    day1_occupants: set[str] = field(default_factory=set)
    day2_occupants: set[str] = field(default_factory=set)

    @classmethod
    def from_slot(cls, slot: DutySlot) -> "Duty":
        return cls(name=slot.name, room=slot.room, time_slot_label=slot.time_slot_label)

    def occupants(self, rotation: Rotation) -> set[str]:
        """Occupant set for one rotation side."""
        return self.day1_occupants if rotation is Rotation.DAY1 else self.day2_occupants

    def add_occupant(self, rotation: Rotation, name: str) -> None:
        """Add a staff name to a rotation side. Adding twice is a no-op.

        Raises:
            ValueError: If the name already occupies the other side.
        """
        if name in self.occupants(rotation.other):
            raise ValueError(
                f"{name} already holds {self.name} on {rotation.other.label}"
            )
        self.occupants(rotation).add(name)

    def has_occupant(self, name: str) -> bool:
        return name in self.day1_occupants or name in self.day2_occupants

    def occupant_count(self, rotation: Rotation) -> int:
        return len(self.occupants(rotation))

    def is_filled(self, rotation: Rotation, max_occupants: int = 1) -> bool:
        return self.occupant_count(rotation) >= max_occupants

    def is_filler(self, marker: str = "Hall") -> bool:
        return marker.lower() in self.name.lower()

    def copy_occupants_from(self, other: "Duty", rotation: Rotation) -> None:
        """Replace one side's occupants with those of another duty."""
        target = self.occupants(rotation)
        target.clear()
        target.update(other.occupants(rotation))


class DutyCatalog:
    """Ordered catalog of duty slots, identical for every school day.

    The default catalog describes an 11-slot duty day with one post per
    slot. Duties whose name contains "Hall" are filler duties.
    """

    def __init__(self, slots: list[DutySlot]):
        self._slots = sorted(slots, key=lambda s: (s.time_slot, s.position))
        self.time_slots = max((s.time_slot for s in self._slots), default=-1) + 1
        self.positions = max((s.position for s in self._slots), default=-1) + 1

    @classmethod
    def default(cls) -> "DutyCatalog":
        """The standard 11-slot duty day."""
        return cls([
            DutySlot("Front Foyer", "Main Entrance", "Period 1", 0),
            DutySlot("Library Supervision", "Library", "Period 2", 1),
            DutySlot("Cafeteria A", "Cafeteria", "Lunch A", 2),
            DutySlot("Cafeteria B", "Cafeteria", "Lunch B", 3),
            DutySlot("Main Hall", "Main Hall", "Period 3", 4),
            DutySlot("Upper Hall", "Second Floor", "Period 4", 5),
            DutySlot("DDC", "Room 114", "Period 5", 6),
            DutySlot("Lower Hall", "Tech Wing", "Period 6", 7),
            DutySlot("Student Services", "Guidance Office", "Period 7", 8),
            DutySlot("East Hall", "East Wing", "Period 8", 9),
            DutySlot("Bus Loop", "North Doors", "Period 9", 10),
        ])

    @property
    def slots(self) -> list[DutySlot]:
        return list(self._slots)

    def __iter__(self) -> Iterator[DutySlot]:
        return iter(self._slots)

    def __len__(self) -> int:
        return len(self._slots)

    def stamp(self, day) -> None:
        """Place a fresh Duty for every catalog slot on a school day."""
        day.ensure_grid(self.time_slots, self.positions)
        for slot in self._slots:
            day.add_duty(slot.time_slot, slot.position, Duty.from_slot(slot))

    def get(self, time_slot: int, position: int = 0) -> Optional[DutySlot]:
        for slot in self._slots:
            if slot.time_slot == time_slot and slot.position == position:
                return slot
        return None


@dataclass(frozen=True)
class RosterRow:
    """One exported roster line: a weekday's duty with both rotation sides."""

    term: int
    weekday: int
    time_slot: int
    position: int
    duty_name: str
    time_slot_label: str
    day1_occupants: frozenset[str]
    day2_occupants: frozenset[str]

    @property
    def term_label(self) -> str:
        return f"Term {self.term + 1}"

    @property
    def weekday_name(self) -> str:
        return WEEKDAY_NAMES[self.weekday]


@dataclass(frozen=True)
class RosterEntry:
    """Filled duty of one pattern as recorded in the roster."""

    key: DutyKey
    duty_name: str
    room: str
    time_slot_label: str
    day1_occupants: frozenset[str]
    day2_occupants: frozenset[str]
    weight: int

    def occupants(self, rotation: Rotation) -> frozenset[str]:
        return self.day1_occupants if rotation is Rotation.DAY1 else self.day2_occupants


@dataclass
class DutyRoster:
    """Allocation output: filled duties per (term, weekday, rotation, slot).

    Attributes:
        entries: Dict mapping DutyKey to the recorded RosterEntry.
    """

    entries: dict[DutyKey, RosterEntry] = field(default_factory=dict)

    def add(self, entry: RosterEntry) -> None:
        self.entries[entry.key] = entry

    def lookup(
        self,
        term: int,
        weekday: int,
        rotation: Rotation,
        time_slot: int,
        position: int = 0,
    ) -> tuple[frozenset[str], frozenset[str]]:
        """Occupant pair (Day 1, Day 2) of the duty on that pattern.

        Returns a pair of empty sets when the pattern has no school days.
        """
        entry = self.entries.get(DutyKey(term, weekday, rotation, time_slot, position))
        if entry is None:
            return frozenset(), frozenset()
        return entry.day1_occupants, entry.day2_occupants

    def rows(self) -> list[RosterRow]:
        """Rows merging the Day 1 and Day 2 patterns of each weekday.

        Ordered by term, weekday, then time slot and position. A row is
        emitted when either rotation side of the weekday has school days.
        """
        merged: dict[tuple[int, int, int, int], dict] = {}
        for key in sorted(self.entries, key=_key_order):
            entry = self.entries[key]
            row_key = (key.term, key.weekday, key.time_slot, key.position)
            row = merged.setdefault(
                row_key,
                {
                    "duty_name": entry.duty_name,
                    "time_slot_label": entry.time_slot_label,
                    Rotation.DAY1: frozenset(),
                    Rotation.DAY2: frozenset(),
                },
            )
            row[key.rotation] = entry.occupants(key.rotation)

        return [
            RosterRow(
                term=term,
                weekday=weekday,
                time_slot=time_slot,
                position=position,
                duty_name=data["duty_name"],
                time_slot_label=data["time_slot_label"],
                day1_occupants=data[Rotation.DAY1],
                day2_occupants=data[Rotation.DAY2],
            )
            for (term, weekday, time_slot, position), data in merged.items()
        ]

    def unfilled(self) -> list[RosterEntry]:
        """Weighted entries with nobody on their rotation side."""
        return [
            entry
            for key, entry in sorted(self.entries.items(), key=lambda kv: _key_order(kv[0]))
            if entry.weight > 0 and not entry.occupants(key.rotation)
        ]

    def duties_for(self, name: str) -> list[RosterEntry]:
        """Entries held by one staff member."""
        return [
            entry
            for key, entry in sorted(self.entries.items(), key=lambda kv: _key_order(kv[0]))
            if name in entry.occupants(key.rotation)
        ]

    def terms(self) -> list[int]:
        return sorted({key.term for key in self.entries})


def _key_order(key: DutyKey) -> tuple:
    return (
        key.term,
        key.weekday,
        key.time_slot,
        key.position,
        0 if key.rotation is Rotation.DAY1 else 1,
    )
