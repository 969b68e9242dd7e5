"""Command-line interface for the shift roster tracker."""

import argparse
import logging
import sys
from datetime import date, timedelta
from typing import Optional

from shifttracker.config import TrackerConfig, load_config
from shifttracker.domain.errors import TrackerError, ValidationFailed
from shifttracker.domain.models import (
    AssignmentSource,
    PatternAssignment,
    Person,
    PersonStatus,
    Position,
    RotationPattern,
    ShiftType,
    StraightsAssignment,
    Team,
)
from shifttracker.output.pdf_generator import PDFGenerator
from shifttracker.output.text_report import TextReportGenerator
from shifttracker.scheduling.rotation import (
    coverage_by_date,
    coverage_gaps,
    pattern_window,
    team_offsets,
)
from shifttracker.storage.records import HEADERS
from shifttracker.storage.repository import RosterRepository
from shifttracker.storage.sheets import SheetsTableStore
from shifttracker.storage.tables import JsonTableStore, MemoryTableStore, TableStore

TEAM_COLORS = ["Red", "Blue", "Green", "Yellow", "Purple", "Orange", "Gray", "Teal"]


def create_sample_roster(
    team_count: int = 5,
    people_per_team: int = 4,
    reference_start_date: date = date(2024, 1, 1),
    cycle_length: int = 28,
) -> tuple[list[Team], list[Position], list[Person]]:
    """Create a sample roster for demos and testing.

    Teams are staggered evenly across the cycle; every team gets an
    operator and a lead position.

    Args:
        team_count: Number of teams to create.
        people_per_team: People on each team.
        reference_start_date: Reference date for the team pattern assignments.
        cycle_length: Cycle length used to stagger the teams.
    """
    first_names = [
        "Alice", "Bob", "Carol", "David", "Eve", "Frank", "Grace", "Henry",
        "Ivy", "Jack", "Kate", "Leo", "Mia", "Noah", "Olivia", "Paul",
        "Quinn", "Rose", "Sam", "Tina", "Uma", "Victor", "Wendy", "Xavier",
    ]
    last_names = ["Adams", "Brown", "Clark", "Diaz", "Evans", "Foster", "Gray"]

    team_ids = [f"T{i + 1}" for i in range(team_count)]
    offsets = team_offsets(team_ids, cycle_length)

    teams = []
    positions = []
    people = []
    for t, team_id in enumerate(team_ids):
        teams.append(
            Team(
                id=team_id,
                name=f"Team {chr(ord('A') + t)}",
                color=TEAM_COLORS[t % len(TEAM_COLORS)],
                pattern_assignment=PatternAssignment(
                    pattern_id="RP001",
                    reference_start_date=reference_start_date,
                    offset_days=offsets[team_id],
                ),
            )
        )
        positions.append(Position(id=f"{team_id}-OP", name="Operator", team_id=team_id, min_staffing=2))
        positions.append(Position(id=f"{team_id}-LD", name="Lead", team_id=team_id, min_staffing=1))

        for p in range(people_per_team):
            i = t * people_per_team + p
            first = first_names[i % len(first_names)]
            if i >= len(first_names):
                first = f"{first}{i // len(first_names) + 1}"
            people.append(
                Person(
                    id=f"P{i + 1:03d}",
                    first_name=first,
                    last_name=last_names[i % len(last_names)],
                    team_id=team_id,
                    position_id=f"{team_id}-LD" if p == 0 else f"{team_id}-OP",
                )
            )

    return teams, positions, people


def seed_repository(repo: RosterRepository, team_count: int = 5, people_per_team: int = 4) -> None:
    """Store the default pattern and a sample roster in a repository."""
    pattern = repo.config.default_rotation_pattern()
    repo.save_pattern(pattern)
    teams, positions, people = create_sample_roster(
        team_count,
        people_per_team,
        repo.config.reference_start_date,
        pattern.cycle_length_days,
    )
    for team in teams:
        repo.save_team(team)
    for position in positions:
        repo.save_position(position)
    for person in people:
        repo.save_person(person)


def open_store(config: TrackerConfig, store_path: Optional[str], use_sheets: bool) -> TableStore:
    """Open the table store selected on the command line."""
    if use_sheets:
        return SheetsTableStore.from_service_account(
            config.credentials_file, config.spreadsheet_id, headers=HEADERS
        )
    return JsonTableStore(store_path or "roster.json")


def print_assignments(assignments, names: dict[str, str]) -> None:
    if not assignments:
        print("  (nobody)")
        return
    for a in assignments:
        start = a.start_time.strftime("%H:%M") if a.start_time else "--:--"
        end = a.end_time.strftime("%H:%M") if a.end_time else "--:--"
        marker = "" if a.source is AssignmentSource.PATTERN else f" [{a.source.value}]"
        print(
            f"  {a.shift_type.value:<10} {start}-{end}  "
            f"{names.get(a.person_id, a.person_id):<20} {a.location}{marker}"
        )


def run_demo(days: int = 28, start: Optional[date] = None, output_path: Optional[str] = None) -> None:
    """Run an in-memory demo of generation, swaps and straights."""
    start = start or date.today()
    print(f"Generating demo roster for {days} days from {start}...")

    repo = RosterRepository(MemoryTableStore())
    seed_repository(repo)
    result, stats = repo.generate_schedule_with_stats(start, days)

    print(f"\nRows created: {result.created}")
    print(f"People scheduled: {stats['people']}")
    print(f"  Day shifts:   {stats['day_shifts']}")
    print(f"  Night shifts: {stats['night_shifts']}")
    print(f"  Days off:     {stats['days_off']}")

    # Staggering check
    pattern = repo.active_pattern()
    offsets = {t.id: t.pattern_assignment.offset_days for t in repo.teams()}
    gaps = coverage_gaps(
        coverage_by_date(pattern, repo.config.reference_start_date, offsets, start, days)
    )
    print(f"\nTeam offsets: {offsets}")
    print(f"Coverage gaps: {len(gaps)}")

    # Straights week for the first person, a swap between the first two teams
    people = repo.people()
    monday = start + timedelta(days=(7 - start.weekday()) % 7)
    repo.save_straights(
        StraightsAssignment(
            id="ST-DEMO",
            person_id=people[0].id,
            start_date=monday,
            end_date=monday + timedelta(days=4),
            notes="Demo straights week",
        )
    )
    swap = repo.request_swap(people[1].id, people[5].id, start, start + timedelta(days=1))
    repo.approve_swap(swap.id, approved_by="demo", on_date=start)
    repo.complete_swap(swap.id)
    print(f"Swap {swap.id}: {people[1].id} <-> {people[5].id}")

    names = repo.person_names()
    print(f"\nWho's working on {start}:")
    print_assignments(repo.whos_working(start), names)

    if output_path:
        roster = {p.id: repo.person_schedule(p.id, start, days) for p in people}
        PDFGenerator().generate(roster, {p.id: p for p in people}, output_path)
        print(f"\nPDF saved to: {output_path}")


def run_shift(pattern_text: str, on_date: date, reference: date, offset: int, days: int = 1) -> None:
    pattern = RotationPattern.from_string("CLI", "Command line", pattern_text)
    for d, shift in pattern_window(pattern, reference, on_date, days, offset):
        print(f"{d} ({d:%a}): {shift.value}")


def run_offsets(team_count: int, cycle_length: int) -> None:
    team_ids = [f"T{i + 1}" for i in range(team_count)]
    for team_id, offset in team_offsets(team_ids, cycle_length).items():
        print(f"  {team_id}: {offset}")


def run_report(
    repo: RosterRepository,
    start: date,
    days: int,
    pdf_path: Optional[str],
    text_path: Optional[str],
) -> None:
    people = [p for p in repo.people() if p.status is PersonStatus.ACTIVE]
    roster = {p.id: repo.person_schedule(p.id, start, days) for p in people}
    people_map = {p.id: p for p in people}
    if pdf_path:
        PDFGenerator().generate(roster, people_map, pdf_path)
        print(f"PDF saved to: {pdf_path}")
    if text_path:
        TextReportGenerator().generate(roster, people_map, text_path)
        print(f"Report saved to: {text_path}")
    if not pdf_path and not text_path:
        print(TextReportGenerator().generate_to_string(roster, people_map))


def run_swap(repo: RosterRepository, args: argparse.Namespace) -> None:
    if args.action == "request":
        swap = repo.request_swap(
            args.requestor, args.requestee, args.original_date, args.swap_date, notes=args.notes
        )
    elif args.action == "approve":
        swap = repo.approve_swap(args.swap_id, args.approved_by)
    elif args.action == "reject":
        swap = repo.reject_swap(args.swap_id)
    else:
        swap = repo.complete_swap(args.swap_id)
    print(f"Swap {swap.id}: {swap.status.value}")


def _date_arg(text: str) -> date:
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {text!r}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Shift Tracker - Rotation Roster Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                              Run an in-memory demo
  %(prog)s demo --output roster.pdf          Demo with PDF output
  %(prog)s shift --date 2024-01-08           Shift on a date (DuPont, offset 0)
  %(prog)s shift --date 2024-01-01 -d 28     Preview a whole cycle
  %(prog)s offsets --teams 5 --cycle 28      Stagger offsets for 5 teams

  %(prog)s init                              Seed roster.json with sample data
  %(prog)s generate --start 2024-03-01       Generate the default horizon
  %(prog)s whos-working --date 2024-03-01    List who is on duty
  %(prog)s swap request P001 P005 2024-03-04 2024-03-06
  %(prog)s report --start 2024-03-01 --pdf roster.pdf
        """,
    )
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument("--store", help="JSON store file (default: roster.json)")
    parser.add_argument(
        "--sheets",
        action="store_true",
        help="Use the Google Sheets store from the config instead of a file",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Run an in-memory demo")
    demo_parser.add_argument("--days", "-d", type=int, default=28, help="Days to generate (default: 28)")
    demo_parser.add_argument("--start", type=_date_arg, help="First date (default: today)")
    demo_parser.add_argument("--output", "-o", type=str, help="Output PDF file path")

    # Shift command
    shift_parser = subparsers.add_parser("shift", help="Evaluate a pattern on a date")
    shift_parser.add_argument("--date", type=_date_arg, required=True, help="Date to evaluate")
    shift_parser.add_argument("--pattern", "-p", type=str, help="Comma-separated codes (default: DuPont)")
    shift_parser.add_argument("--reference", type=_date_arg, help="Reference start date")
    shift_parser.add_argument("--offset", type=int, default=0, help="Offset in days (default: 0)")
    shift_parser.add_argument("--days", "-d", type=int, default=1, help="Days to preview (default: 1)")

    # Offsets command
    offsets_parser = subparsers.add_parser("offsets", help="Compute staggered team offsets")
    offsets_parser.add_argument("--teams", "-t", type=int, default=5, help="Number of teams (default: 5)")
    offsets_parser.add_argument("--cycle", "-c", type=int, default=28, help="Cycle length (default: 28)")

    # Init command
    init_parser = subparsers.add_parser("init", help="Seed the store with a sample roster")
    init_parser.add_argument("--teams", "-t", type=int, default=5, help="Number of teams (default: 5)")
    init_parser.add_argument("--per-team", type=int, default=4, help="People per team (default: 4)")

    # Generate command
    generate_parser = subparsers.add_parser("generate", help="Generate schedule rows")
    generate_parser.add_argument("--start", type=_date_arg, required=True, help="First date")
    generate_parser.add_argument("--days", "-d", type=int, help="Days to generate (default: config)")
    generate_parser.add_argument("--pattern-id", help="Pattern to use (default: active pattern)")
    generate_parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace existing generated rows instead of skipping them",
    )

    # Who's working command
    working_parser = subparsers.add_parser("whos-working", help="List people on duty on a date")
    working_parser.add_argument("--date", type=_date_arg, required=True, help="Date to query")
    working_parser.add_argument(
        "--shift",
        choices=[s.value for s in ShiftType if s is not ShiftType.OFF],
        help="Only this shift type",
    )

    # Swap command
    swap_parser = subparsers.add_parser("swap", help="Request and process shift swaps")
    swap_actions = swap_parser.add_subparsers(dest="action", required=True)
    request_parser = swap_actions.add_parser("request", help="Request a swap")
    request_parser.add_argument("requestor")
    request_parser.add_argument("requestee")
    request_parser.add_argument("original_date", type=_date_arg)
    request_parser.add_argument("swap_date", type=_date_arg)
    request_parser.add_argument("--notes", default="")
    approve_parser = swap_actions.add_parser("approve", help="Approve a pending swap")
    approve_parser.add_argument("swap_id")
    approve_parser.add_argument("--approved-by", required=True)
    for action in ("reject", "complete"):
        action_parser = swap_actions.add_parser(action, help=f"{action.capitalize()} a swap")
        action_parser.add_argument("swap_id")

    # Report command
    report_parser = subparsers.add_parser("report", help="Write a roster report")
    report_parser.add_argument("--start", type=_date_arg, required=True, help="First date")
    report_parser.add_argument("--days", "-d", type=int, default=28, help="Days to include (default: 28)")
    report_parser.add_argument("--pdf", help="Output PDF file path")
    report_parser.add_argument("--text", help="Output text file path")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)

        if args.command == "demo":
            run_demo(args.days, args.start, args.output)
            return 0
        elif args.command == "shift":
            run_shift(
                args.pattern or config.default_pattern,
                args.date,
                args.reference or config.reference_start_date,
                args.offset,
                args.days,
            )
            return 0
        elif args.command == "offsets":
            run_offsets(args.teams, args.cycle)
            return 0
        elif args.command is None:
            parser.print_help()
            return 1

        if args.sheets and not (config.spreadsheet_id and config.credentials_file):
            print("Error: --sheets needs spreadsheet_id and credentials_file in the config")
            return 1
        repo = RosterRepository(open_store(config, args.store, args.sheets), config)

        if args.command == "init":
            seed_repository(repo, args.teams, args.per_team)
            print(f"Seeded {args.teams} teams with {args.per_team} people each")
        elif args.command == "generate":
            result = repo.generate_schedule(
                args.start,
                args.days,
                pattern_id=args.pattern_id,
                overwrite_existing=args.overwrite,
            )
            print(
                f"Created {result.created}, replaced {result.replaced}, "
                f"skipped {result.skipped}"
            )
        elif args.command == "whos-working":
            shift_type = ShiftType(args.shift) if args.shift else None
            print(f"Working on {args.date} ({args.date:%A}):")
            print_assignments(repo.whos_working(args.date, shift_type), repo.person_names())
        elif args.command == "swap":
            run_swap(repo, args)
        elif args.command == "report":
            run_report(repo, args.start, args.days, args.pdf, args.text)
        return 0
    except ValidationFailed as e:
        for error in e.errors:
            print(f"Error: {error}")
        return 1
    except TrackerError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
