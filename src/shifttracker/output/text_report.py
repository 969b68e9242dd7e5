"""Text report output for roster analysis.

This module creates a plain text report to review:
- Daily headcount per shift type
- Dates on which the Day or Night shift is uncovered
- Per-person shift totals, including swapped and straights days
"""

from collections import defaultdict
from datetime import date
from pathlib import Path
from typing import Union

from shifttracker.domain.models import (
    AssignmentSource,
    EffectiveAssignment,
    Person,
    ShiftType,
)
from shifttracker.scheduling.rotation import coverage_gaps

Roster = dict[str, list[EffectiveAssignment]]


class TextReportGenerator:
    """Generates text reports for a resolved roster.

    Creates human-readable text showing:
    - Per-date headcount histogram
    - Coverage gaps
    - Per-person totals
    """

    def generate(
        self,
        roster: Roster,
        people: dict[str, Person],
        output_path: Union[str, Path],
        title: str = "Shift Roster",
    ) -> str:
        """Generate the report and save to file.

        Args:
            roster: Person id -> resolved assignments over the same dates.
            people: Person id -> Person, for names.
            output_path: Path to save the text file.
            title: Report title.

        Returns:
            The generated text content.
        """
        content = self._generate_content(roster, people, title)
        Path(output_path).write_text(content)
        return content

    def generate_to_string(
        self,
        roster: Roster,
        people: dict[str, Person],
        title: str = "Shift Roster",
    ) -> str:
        """Generate the report and return it as a string."""
        return self._generate_content(roster, people, title)

    def _coverage(self, roster: Roster) -> dict[date, dict[ShiftType, list[str]]]:
        coverage: dict[date, dict[ShiftType, list[str]]] = defaultdict(
            lambda: {shift: [] for shift in ShiftType}
        )
        for assignments in roster.values():
            for a in assignments:
                coverage[a.date][a.shift_type].append(a.person_id)
        return dict(coverage)

    def _generate_content(self, roster: Roster, people: dict[str, Person], title: str) -> str:
        """Generate the full report content."""
        lines = []
        coverage = self._coverage(roster)
        dates = sorted(coverage)

        # Header
        lines.append("=" * 80)
        lines.append(f"{title.upper()} REPORT")
        lines.append("=" * 80)
        lines.append("")

        lines.append(f"Total People: {len(roster)}")
        if dates:
            lines.append(f"Date Range: {dates[0]} - {dates[-1]} ({len(dates)} days)")
        else:
            lines.append("Date Range: (empty)")
        lines.append("")

        # Daily headcount
        lines.append("-" * 80)
        lines.append("DAILY HEADCOUNT (D = Day, N = Night, S = Straights)")
        lines.append("-" * 80)
        lines.append("")
        for d in dates:
            by_shift = coverage[d]
            day = len(by_shift[ShiftType.DAY])
            night = len(by_shift[ShiftType.NIGHT])
            straights = len(by_shift[ShiftType.STRAIGHTS])
            bar = "D" * day + "N" * night + "S" * straights
            lines.append(
                f"  {d} {d:%a}  D:{day:3d}  N:{night:3d}  S:{straights:3d}  |{bar}"
            )
        lines.append("")

        # Gaps
        lines.append("-" * 80)
        lines.append("COVERAGE GAPS")
        lines.append("-" * 80)
        lines.append("")
        gaps = coverage_gaps(coverage)
        if gaps:
            for d, shift in gaps:
                lines.append(f"  WARNING: No {shift.value} coverage on {d} ({d:%a})")
        else:
            lines.append("  Day and Night shifts are covered on every date.")
        lines.append("")

        # Per-person totals
        lines.append("-" * 80)
        lines.append("PER-PERSON TOTALS")
        lines.append("-" * 80)
        lines.append("")
        lines.append(
            f"  {'Person':<24} {'Team':<6} {'Day':>4} {'Night':>6} {'Off':>4} "
            f"{'Str':>4} {'Swap':>5}"
        )

        def sort_key(person_id: str):
            person = people.get(person_id)
            return (person.team_id, person_id) if person else ("", person_id)

        for person_id in sorted(roster, key=sort_key):
            person = people.get(person_id)
            name = person.full_name if person else person_id
            team = person.team_id if person else ""
            counts = {shift: 0 for shift in ShiftType}
            swapped = 0
            for a in roster[person_id]:
                counts[a.shift_type] += 1
                if a.source is AssignmentSource.SWAP:
                    swapped += 1
            lines.append(
                f"  {name[:24]:<24} {team:<6} {counts[ShiftType.DAY]:>4} "
                f"{counts[ShiftType.NIGHT]:>6} {counts[ShiftType.OFF]:>4} "
                f"{counts[ShiftType.STRAIGHTS]:>4} {swapped:>5}"
            )
        lines.append("")
        lines.append("=" * 80)

        return "\n".join(lines)
