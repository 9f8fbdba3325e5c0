"""Command-line interface for the duty roster tool."""

import argparse
import logging
import sys
from typing import Optional

from dutyroster.domain.calendar import SchoolYear
from dutyroster.domain.models import StaffRole
from dutyroster.domain.policies import CalendarDayRotation, SchoolDayRotation
from dutyroster.domain.staff import StaffMember
from dutyroster.loaders.ics_reader import read_holidays
from dutyroster.loaders.staff_reader import read_staff
from dutyroster.output.csv_exporter import CSVExporter
from dutyroster.output.pdf_generator import PDFGenerator
from dutyroster.output.report_generator import ReportGenerator
from dutyroster.scheduling.duty_assigner import AllocationConfig
from dutyroster.scheduling.scheduler import DutyScheduler, StaffRecord
from dutyroster.validation.validator import RosterValidator

ROTATIONS = {
    "calendar": CalendarDayRotation,
    "school": SchoolDayRotation,
}

SAMPLE_COURSES = (
    "MPM2D", "ENG2D", "SNC2D", "CHC2D", "FSF1D", "AVI1O",
    "MCR3U", "ENG3U", "SBI3U", "CGC1D", "TEJ3M", "BAF3M",
)


def create_sample_staff(count: int = 40) -> list[StaffRecord]:
    """Create sample staff records for demos.

    Most members teach full time with varying free periods; every tenth is
    part time and a few carry guidance or phys-ed codes.
    """
    records = []
    for i in range(count):
        timetable = [""] * 10

        # Six taught periods, with the free ones rotating across the roster
        free = {i % 4, 5 + (i + 1) % 4}
        taught = [p for p in range(10) if p not in free and p not in (4, 9)]
        if i % 10 == 9:
            taught = taught[:3]  # part time

        for n, period in enumerate(taught):
            course = SAMPLE_COURSES[(i + n) % len(SAMPLE_COURSES)]
            timetable[period] = f"{course}-{(i % 3) + 1:02d}"

        if i % 13 == 6:
            timetable[taught[0]] = "2GU-01"
        elif i % 17 == 11:
            timetable[taught[0]] = "PPL1O-02"

        records.append(StaffRecord(name=f"Teacher {i + 1:02d}", timetable=timetable))

    records.append(
        StaffRecord(name="Guidance Lead", role_override=StaffRole.GUIDANCE)
    )
    return records


def _build_scheduler(seed: Optional[int], rotation: str, year: SchoolYear) -> DutyScheduler:
    return DutyScheduler(
        school_year=year,
        config=AllocationConfig(seed=seed),
        rotation_policy=ROTATIONS[rotation](),
    )


def _print_results(
    scheduler: DutyScheduler,
    stats: dict,
    result,
    staff: list[StaffMember],
    calendar,
) -> bool:
    print(f"\nDuty roster generated (seed {stats['seed']})")
    print(f"  School days: {stats['school_days']} ({stats['holidays']} holidays)")
    print(f"  Patterns: {stats['weighted_patterns']}")
    print(f"  Slots filled: {stats['filled_slots']}/{stats['duty_slots']}")
    print(f"  Staff under quota: {stats['staff_under_quota']}/{stats['staff_with_quota']}")

    validator = RosterValidator(scheduler.config, scheduler.eligibility_policy)
    validation = validator.validate(result, staff, calendar)

    if validation.is_valid:
        print("\n  Validation: PASSED")
    else:
        print(f"\n  Validation: FAILED ({len(validation.errors)} errors)")
        for error in validation.errors[:5]:
            print(f"    - {error}")
        if len(validation.errors) > 5:
            print(f"    ... and {len(validation.errors) - 5} more errors")

    for warning in validation.warnings[:5]:
        print(f"  Warning: {warning}")
    if len(validation.warnings) > 5:
        print(f"  ... and {len(validation.warnings) - 5} more warnings")

    return validation.is_valid


def _write_outputs(result, csv_path=None, pdf_path=None, text_path=None) -> None:
    if csv_path:
        rows = CSVExporter().export(result.roster, csv_path)
        print(f"\nCSV written: {csv_path} ({rows} rows)")
    if text_path:
        ReportGenerator().generate(result, text_path)
        print(f"Report written: {text_path}")
    if pdf_path:
        print(f"\nGenerating PDF: {pdf_path}")
        PDFGenerator().generate(result, pdf_path)
        print("  PDF created successfully!")


def run_demo(
    staff_count: int = 40,
    seed: Optional[int] = None,
    rotation: str = "calendar",
    csv_path: Optional[str] = None,
    pdf_path: Optional[str] = None,
    text_path: Optional[str] = None,
) -> int:
    """Run a demo allocation over the default school year."""
    print(f"Generating demo roster for {staff_count} staff...")

    scheduler = _build_scheduler(seed, rotation, SchoolYear())
    calendar = scheduler.build_calendar()
    staff = scheduler.build_staff(create_sample_staff(staff_count))

    result, stats = scheduler.generate_with_stats(calendar, staff)
    valid = _print_results(scheduler, stats, result, staff, calendar)
    _write_outputs(result, csv_path, pdf_path, text_path)
    return 0 if valid else 2


def run_roster(
    calendar_path: str,
    staff_path: str,
    seed: Optional[int] = None,
    rotation: str = "calendar",
    closures_only: bool = False,
    csv_path: Optional[str] = None,
    pdf_path: Optional[str] = None,
    text_path: Optional[str] = None,
) -> int:
    """Allocate duties from an ICS calendar feed and a staff CSV."""
    feed = read_holidays(calendar_path, closures_only=closures_only)
    records = read_staff(staff_path)
    print(f"Calendar loaded with {len(feed.holidays)} holidays")
    print(f"Staff loaded: {len(records)} members")

    year = SchoolYear()
    if feed.last_day is not None and feed.last_day > year.start_date:
        year = SchoolYear(
            start_date=year.start_date,
            end_date=feed.last_day,
            term_starts=year.term_starts,
        )
    print(f"School year: {year.start_date} to {year.end_date}")

    scheduler = _build_scheduler(seed, rotation, year)
    calendar = scheduler.build_calendar(feed.holidays)
    staff = scheduler.build_staff(records)

    result, stats = scheduler.generate_with_stats(calendar, staff)
    valid = _print_results(scheduler, stats, result, staff, calendar)
    _write_outputs(result, csv_path, pdf_path, text_path)
    return 0 if valid else 2


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=None,
        help="Seed for the staff shuffle (default: random, printed)",
    )
    parser.add_argument(
        "--rotation", "-r",
        type=str,
        default="calendar",
        choices=sorted(ROTATIONS),
        help="Day 1 / Day 2 rule: calendar-day or school-day parity (default: calendar)",
    )
    parser.add_argument("--csv", type=str, help="Output CSV file path")
    parser.add_argument("--pdf", type=str, help="Output PDF file path")
    parser.add_argument("--text", type=str, help="Output text report path")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Duty Roster - School Duty Allocation Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                          Run demo with 40 sample staff
  %(prog)s demo --seed 7 --csv out.csv   Reproducible demo with CSV output
  %(prog)s demo --pdf roster.pdf         Generate PDF output

  %(prog)s run calendar.ics staff.csv    Allocate from real inputs
  %(prog)s run cal.ics staff.csv --closures-only --rotation school
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Log progress (-v info, -vv debug)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    demo_parser = subparsers.add_parser("demo", help="Run demo roster generation")
    demo_parser.add_argument(
        "--count", "-c",
        type=int,
        default=40,
        help="Number of sample staff to generate (default: 40)",
    )
    _add_common_arguments(demo_parser)

    run_parser = subparsers.add_parser("run", help="Generate a roster from input files")
    run_parser.add_argument("calendar", type=str, help="ICS calendar feed")
    run_parser.add_argument("staff", type=str, help="Staff timetable CSV")
    run_parser.add_argument(
        "--closures-only",
        action="store_true",
        help="Only treat closure events (PA days, breaks, exams) as holidays",
    )
    _add_common_arguments(run_parser)

    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if args.command == "demo":
        return run_demo(
            args.count, args.seed, args.rotation, args.csv, args.pdf, args.text
        )
    elif args.command == "run":
        try:
            return run_roster(
                args.calendar,
                args.staff,
                args.seed,
                args.rotation,
                args.closures_only,
                args.csv,
                args.pdf,
                args.text,
            )
        except (OSError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
