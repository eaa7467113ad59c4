"""Command-line interface for the shiftroster scheduling tool."""

import argparse
import logging
import sys
from datetime import date, timedelta
from typing import Optional

from shiftroster.domain.calendar import month_dates
from shiftroster.domain.models import LeaveRecord
from shiftroster.exceptions import ConfigurationError
from shiftroster.output.debug_generator import DebugGenerator
from shiftroster.output.pdf_generator import PDFGenerator
from shiftroster.output.sinks import JsonOutputSink
from shiftroster.output.summary import SummaryCalculator
from shiftroster.scheduling.scheduler import RosterResult, RosterScheduler, Stage
from shiftroster.sources.calendar_source import StaticCalendarSource
from shiftroster.sources.configuration import JsonConfigurationSource, MappingConfigurationSource
from shiftroster.sources.leave import JsonLeaveSource, StaticLeaveSource

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_INVALID = 2

SAMPLE_NAMES = [
    "Alice", "Bob", "Carol", "David", "Eve", "Frank", "Grace", "Henry",
    "Ivy", "Jack", "Kate", "Leo", "Mia", "Noah", "Olivia", "Paul",
]

SAMPLE_SHIFTS = [
    {"code": "D8", "category": "regular", "hours": 8, "description": "Day shift"},
    {"code": "D4", "category": "regular", "hours": 4, "description": "Half day"},
    {"code": "W8", "category": "weekend", "hours": 8, "description": "Weekend shift"},
    {"code": "OC", "category": "on_call", "hours": 10, "description": "On-call"},
    {"code": "OFF", "category": "rest", "description": "Rest day"},
    {"code": "LV", "category": "leave", "description": "Annual leave"},
]


def create_sample_config(count: int = 8) -> dict:
    """Create a sample roster configuration mapping.

    Args:
        count: Number of staff members to create.
    """
    staff = []
    for i in range(count):
        name = SAMPLE_NAMES[i % len(SAMPLE_NAMES)]
        if i >= len(SAMPLE_NAMES):
            name = f"{name}{i // len(SAMPLE_NAMES) + 1}"
        staff.append({"name": name, "email": f"{name.lower()}@example.com"})

    return {
        "staff": staff,
        "shifts": SAMPLE_SHIFTS,
        "rules": {
            "weekday_min_staff": max(count // 2, 1),
            "weekend_min_staff": 1,
            "on_call_shift_code": "OC",
            "paired_rest_enabled": count >= 4,
            "paired_rest_days": "Friday,Saturday",
            "min_rest_hours_between_shifts": 11,
        },
    }


def create_sample_leave(count: int, year: int, month: int) -> list[LeaveRecord]:
    """One short leave block for every third staff member."""
    dates = month_dates(year, month)
    records = []
    for i in range(0, count, 3):
        name = SAMPLE_NAMES[i % len(SAMPLE_NAMES)]
        if i >= len(SAMPLE_NAMES):
            name = f"{name}{i // len(SAMPLE_NAMES) + 1}"
        start = dates[min(7 + i, len(dates) - 3)]
        records.append(LeaveRecord(name, start, start + timedelta(days=2)))
    return records


def print_result(result: RosterResult) -> None:
    """Print a run summary to stdout."""
    state = result.state
    summary = SummaryCalculator().calculate(state)

    print(f"\n{'=' * 60}")
    print(f"Roster: {state.year:04d}-{state.month:02d}")
    print(f"{'=' * 60}")
    print(f"  Staff: {state.staff_count}")
    print(f"  Stages run: {', '.join(stage.value for stage in result.completed_stages)}")

    report = result.balancer_report
    if report is not None:
        status = "converged" if report.converged else "stopped"
        print(f"  Balancer: {report.iterations} move(s), {status}")

    print("\nMonthly Summary:")
    for row in summary.monthly:
        print(
            f"  {row.staff_name:<12} {row.assigned_hours:6.1f} h / {row.target_hours:6.1f} h "
            f"({row.difference:+.1f})  rest {row.rest_days}/{row.target_rest_days}  "
            f"weekend {row.weekend_shifts}  on-call {row.on_call_shifts}"
        )

    validation = result.validation
    if validation is None:
        print("\nValidation: SKIPPED")
    elif validation.is_valid:
        print("\nValidation: PASSED")
    else:
        print(f"\nValidation: FAILED ({len(validation.errors)} errors)")
        for error in validation.errors[:10]:
            print(f"    - {error}")
        if len(validation.errors) > 10:
            print(f"    ... and {len(validation.errors) - 10} more errors")

    if validation is not None and validation.warnings:
        print(f"\nSoft goals missed ({len(validation.warnings)}):")
        for warning in validation.warnings:
            print(f"    - {warning}")

    warnings = [record for record in result.diagnostics if record.level == "WARNING"]
    if warnings:
        print(f"\nWarnings ({len(warnings)}):")
        for record in warnings[:5]:
            print(f"    - {record.message}")
        if len(warnings) > 5:
            print(f"    ... and {len(warnings) - 5} more warnings")


def _exit_code(result: RosterResult) -> int:
    if result.validation is None or result.validation.is_valid:
        return EXIT_OK
    return EXIT_INVALID


def run_generate(args: argparse.Namespace) -> int:
    """Generate a roster from configuration files."""
    try:
        config_source = JsonConfigurationSource(args.config)
        calendar_source = (
            StaticCalendarSource.from_json(args.holidays)
            if args.holidays
            else StaticCalendarSource()
        )
        leave_source = JsonLeaveSource(args.leave) if args.leave else None
        stop_after = Stage(args.stop_after) if args.stop_after else None

        result = RosterScheduler().generate(
            args.year,
            args.month,
            config_source,
            calendar_source,
            leave_source,
            stop_after=stop_after,
        )
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    print_result(result)
    if args.verbose:
        print()
        print(DebugGenerator().generate_to_string(result.state))
    if args.json:
        JsonOutputSink(args.json).write(result)
        print(f"\nJSON written to {args.json}")
    if args.pdf:
        PDFGenerator().generate(result.state, args.pdf)
        print(f"PDF written to {args.pdf}")
    return _exit_code(result)


def run_demo(
    count: int = 8,
    year: Optional[int] = None,
    month: Optional[int] = None,
    output_path: Optional[str] = None,
) -> int:
    """Run a demo roster generation with a sample roster."""
    today = date.today()
    year = year or today.year
    month = month or today.month
    print(f"Generating demo roster for {count} staff, {year:04d}-{month:02d}...")

    result = RosterScheduler().generate(
        year,
        month,
        MappingConfigurationSource(create_sample_config(count)),
        StaticCalendarSource(),
        StaticLeaveSource(create_sample_leave(count, year, month)),
    )
    print_result(result)

    if output_path:
        print(f"\nGenerating PDF: {output_path}")
        PDFGenerator().generate(result.state, output_path)
        print("  PDF created successfully!")
    return _exit_code(result)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="shiftroster - Monthly Shift Roster Generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                               Demo roster for 8 staff
  %(prog)s demo --count 12 --pdf roster.pdf   Demo with PDF output

  %(prog)s generate --config roster.json --year 2024 --month 4
  %(prog)s generate --config roster.json --year 2024 --month 4 \\
      --leave leave.json --holidays holidays.json --json out.json
  %(prog)s generate --config roster.json --year 2024 --month 4 --stop-after weekend
        """,
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    generate_parser = subparsers.add_parser("generate", help="Generate a roster from files")
    generate_parser.add_argument("--config", required=True, help="Roster configuration JSON")
    generate_parser.add_argument("--year", type=int, required=True, help="Year to schedule")
    generate_parser.add_argument("--month", type=int, required=True, help="Month to schedule (1-12)")
    generate_parser.add_argument("--leave", help="Leave requests JSON")
    generate_parser.add_argument("--holidays", help="Holidays and shutdown days JSON")
    generate_parser.add_argument("--json", help="Write the roster to this JSON file")
    generate_parser.add_argument("--pdf", help="Write the roster to this PDF file")
    generate_parser.add_argument(
        "--stop-after",
        choices=[stage.value for stage in Stage],
        help="Stop after the named stage",
    )
    generate_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log at DEBUG level and print the full grid",
    )

    demo_parser = subparsers.add_parser("demo", help="Run demo roster generation")
    demo_parser.add_argument(
        "--count", "-c",
        type=int,
        default=8,
        help="Number of staff to generate (default: 8)",
    )
    demo_parser.add_argument("--year", type=int, help="Year (default: current)")
    demo_parser.add_argument("--month", type=int, help="Month (default: current)")
    demo_parser.add_argument("--pdf", "-o", help="Output PDF file path")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if getattr(args, "verbose", False):
        logging.getLogger("shiftroster").setLevel(logging.DEBUG)

    if args.command == "generate":
        return run_generate(args)
    elif args.command == "demo":
        return run_demo(args.count, args.year, args.month, args.pdf)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
