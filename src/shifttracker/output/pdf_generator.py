"""PDF generation for roster output.

This module creates printable PDF rosters showing:
- A person-by-date grid with one coloured cell per resolved shift
- Daily headcount per shift type
- A summary page with totals per person
"""

from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Union

from shifttracker.domain.models import (
    AssignmentSource,
    EffectiveAssignment,
    Person,
    ShiftType,
)

# Color definitions (RGB tuples, 0-1 scale)
COLORS = {
    ShiftType.DAY: (1.0, 0.85, 0.4),  # Amber
    ShiftType.NIGHT: (0.35, 0.4, 0.7),  # Navy
    ShiftType.OFF: (0.95, 0.95, 0.95),  # Light gray
    ShiftType.STRAIGHTS: (0.45, 0.7, 0.45),  # Green
    "swap": (0.8, 0.3, 0.3),  # Red border for swapped cells
}

CELL_LABELS = {
    ShiftType.DAY: "D",
    ShiftType.NIGHT: "N",
    ShiftType.OFF: "",
    ShiftType.STRAIGHTS: "S",
}

Roster = dict[str, list[EffectiveAssignment]]


class PDFGenerator:
    """Generates printable roster PDFs.

    Example:
        >>> roster = {p.id: repo.person_schedule(p.id, start, 28) for p in people}
        >>> generator = PDFGenerator()
        >>> generator.generate(roster, {p.id: p for p in people}, "roster.pdf")
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
        days_per_page: int = 14,
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin
        self.days_per_page = days_per_page

    def generate(
        self,
        roster: Roster,
        people: dict[str, Person],
        output_path: Union[str, Path],
        title: str = "Shift Roster",
        include_summary: bool = True,
    ) -> None:
        """Generate a roster PDF and save to file.

        Args:
            roster: Person id -> resolved assignments, one per date, all
                people covering the same dates.
            people: Person id -> Person, for names.
            output_path: Path to save the PDF.
            title: Page title.
            include_summary: Whether to include the summary page.
        """
        try:
            from reportlab.lib.pagesizes import letter, landscape
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )

        c = canvas.Canvas(str(output_path), pagesize=landscape(letter))
        self._draw(c, roster, people, title, include_summary)
        c.save()

    def generate_to_buffer(
        self,
        roster: Roster,
        people: dict[str, Person],
        title: str = "Shift Roster",
        include_summary: bool = True,
    ) -> BytesIO:
        """Generate a roster PDF and return it as a bytes buffer."""
        try:
            from reportlab.lib.pagesizes import letter, landscape
            from reportlab.pdfgen import canvas
        except ImportError:
            raise ImportError(
                "reportlab is required for PDF generation. "
                "Install with: pip install reportlab"
            )

        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=landscape(letter))
        self._draw(c, roster, people, title, include_summary)
        c.save()
        buffer.seek(0)
        return buffer

    def _draw(self, c, roster: Roster, people: dict[str, Person], title: str, include_summary: bool) -> None:
        dates = self._roster_dates(roster)
        if not dates:
            self._draw_header(c, title, "No schedule rows")
            c.showPage()
            return

        self._draw_grid_pages(c, roster, people, dates, title)
        if include_summary:
            self._draw_summary_page(c, roster, people, dates, title)

    @staticmethod
    def _roster_dates(roster: Roster) -> list[date]:
        dates = set()
        for assignments in roster.values():
            dates.update(a.date for a in assignments)
        return sorted(dates)

    def _sorted_people(self, roster: Roster, people: dict[str, Person]) -> list[str]:
        def key(person_id: str):
            person = people.get(person_id)
            if person is None:
                return ("", person_id)
            return (person.team_id, person.last_name, person.first_name)

        return sorted(roster, key=key)

    def _draw_grid_pages(
        self,
        c,
        roster: Roster,
        people: dict[str, Person],
        dates: list[date],
        title: str,
    ) -> None:
        """Draw the person-by-date grid, paging over both axes."""
        row_height = 16
        header_height = 60
        footer_height = 60
        usable_height = self.page_height - 2 * self.margin - header_height - footer_height
        rows_per_page = max(1, int(usable_height / row_height) - 2)

        grid_left = self.margin + 130  # Space for names
        grid_width = self.page_width - self.margin - grid_left

        person_ids = self._sorted_people(roster, people)
        lookup = {
            (pid, a.date): a for pid, assignments in roster.items() for a in assignments
        }

        date_chunks = [
            dates[i : i + self.days_per_page]
            for i in range(0, len(dates), self.days_per_page)
        ]
        row_chunks = [
            person_ids[i : i + rows_per_page]
            for i in range(0, len(person_ids), rows_per_page)
        ] or [[]]
        total_pages = len(date_chunks) * len(row_chunks)

        page_num = 0
        for chunk_dates in date_chunks:
            cell_width = grid_width / len(chunk_dates)
            for chunk_people in row_chunks:
                page_num += 1
                subtitle = f"{chunk_dates[0]:%b %d, %Y} - {chunk_dates[-1]:%b %d, %Y}"
                self._draw_header(c, title, subtitle)

                y = self.page_height - self.margin - header_height
                self._draw_date_axis(c, chunk_dates, grid_left, y, cell_width)

                for person_id in chunk_people:
                    y -= row_height
                    self._draw_person_row(
                        c,
                        person_id,
                        people,
                        chunk_dates,
                        lookup,
                        grid_left,
                        cell_width,
                        y,
                        row_height - 2,
                    )

                y -= row_height + 4
                self._draw_headcount_row(c, chunk_dates, lookup, grid_left, cell_width, y)

                self._draw_legend(c, self.margin, self.margin + 10)
                c.setFont("Helvetica", 9)
                c.drawCentredString(
                    self.page_width / 2,
                    self.margin - 10,
                    f"Page {page_num} of {total_pages}",
                )
                c.showPage()

    def _draw_header(self, c, title: str, subtitle: str) -> None:
        """Draw page header with title and date range."""
        c.setFont("Helvetica-Bold", 16)
        c.drawString(self.margin, self.page_height - self.margin - 20, title)
        c.setFont("Helvetica", 10)
        c.drawString(self.margin, self.page_height - self.margin - 35, subtitle)

    def _draw_date_axis(self, c, dates: list[date], x: float, y: float, cell_width: float) -> None:
        """Draw weekday and day-of-month labels above each column."""
        c.setFont("Helvetica", 7)
        c.setFillColorRGB(0, 0, 0)
        for i, d in enumerate(dates):
            cx = x + i * cell_width + cell_width / 2
            c.drawCentredString(cx, y + 8, d.strftime("%a"))
            c.drawCentredString(cx, y, d.strftime("%d"))

    def _draw_person_row(
        self,
        c,
        person_id: str,
        people: dict[str, Person],
        dates: list[date],
        lookup: dict,
        x: float,
        cell_width: float,
        y: float,
        height: float,
    ) -> None:
        """Draw one person's name and a cell per date."""
        person = people.get(person_id)
        name = person.full_name if person else person_id
        team = person.team_id if person else ""

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 8)
        c.drawString(self.margin, y + height / 2 - 3, f"{name[:20]}")
        c.setFont("Helvetica", 6)
        c.drawRightString(x - 4, y + height / 2 - 3, team)

        for i, d in enumerate(dates):
            assignment = lookup.get((person_id, d))
            shift = assignment.shift_type if assignment else ShiftType.OFF
            cx = x + i * cell_width

            c.setFillColorRGB(*COLORS[shift])
            c.rect(cx, y, cell_width - 1, height, fill=1, stroke=0)

            if assignment and assignment.source is AssignmentSource.SWAP:
                c.setStrokeColorRGB(*COLORS["swap"])
                c.setLineWidth(1)
                c.rect(cx, y, cell_width - 1, height, fill=0, stroke=1)

            label = CELL_LABELS[shift]
            if label:
                if shift is ShiftType.NIGHT:
                    c.setFillColorRGB(1, 1, 1)
                else:
                    c.setFillColorRGB(0, 0, 0)
                c.setFont("Helvetica-Bold", 7)
                c.drawCentredString(cx + cell_width / 2, y + height / 2 - 2.5, label)

    def _draw_headcount_row(self, c, dates: list[date], lookup: dict, x: float, cell_width: float, y: float) -> None:
        """Draw day and night headcount under the grid."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 7)
        c.drawString(self.margin, y, "On duty (D / N)")
        c.setFont("Helvetica", 7)
        for i, d in enumerate(dates):
            day = night = 0
            for (_, on_date), assignment in lookup.items():
                if on_date != d:
                    continue
                if assignment.shift_type in (ShiftType.DAY, ShiftType.STRAIGHTS):
                    day += 1
                elif assignment.shift_type is ShiftType.NIGHT:
                    night += 1
            c.drawCentredString(x + i * cell_width + cell_width / 2, y, f"{day}/{night}")

    def _draw_legend(self, c, x: float, y: float) -> None:
        """Draw legend for colors."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 8)
        c.drawString(x, y, "Legend:")

        items = [
            (ShiftType.DAY, "Day"),
            (ShiftType.NIGHT, "Night"),
            (ShiftType.OFF, "Off"),
            (ShiftType.STRAIGHTS, "Straights"),
        ]

        c.setFont("Helvetica", 7)
        current_x = x + 45
        for key, label in items:
            c.setFillColorRGB(*COLORS[key])
            c.rect(current_x, y - 2, 12, 10, fill=1, stroke=1)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(current_x + 15, y, label)
            current_x += 70

        c.setStrokeColorRGB(*COLORS["swap"])
        c.rect(current_x, y - 2, 12, 10, fill=0, stroke=1)
        c.setStrokeColorRGB(0, 0, 0)
        c.drawString(current_x + 15, y, "Swapped")

    def _draw_summary_page(
        self,
        c,
        roster: Roster,
        people: dict[str, Person],
        dates: list[date],
        title: str,
    ) -> None:
        """Draw summary page with shift totals per person."""
        self._draw_header(
            c,
            f"{title} - Summary",
            f"{dates[0]:%b %d, %Y} - {dates[-1]:%b %d, %Y} ({len(dates)} days)",
        )

        y = self.page_height - self.margin - 70
        c.setFont("Helvetica-Bold", 9)
        columns = [("Name", 0), ("Team", 150), ("Day", 210), ("Night", 250),
                   ("Off", 290), ("Straights", 330), ("Swapped", 390)]
        for label, offset in columns:
            c.drawString(self.margin + offset, y, label)
        y -= 14

        c.setFont("Helvetica", 8)
        for person_id in self._sorted_people(roster, people):
            if y < self.margin + 20:
                c.showPage()
                y = self.page_height - self.margin - 20
                c.setFont("Helvetica", 8)

            counts = {shift: 0 for shift in ShiftType}
            swapped = 0
            for assignment in roster[person_id]:
                counts[assignment.shift_type] += 1
                if assignment.source is AssignmentSource.SWAP:
                    swapped += 1

            person = people.get(person_id)
            values = [
                person.full_name if person else person_id,
                person.team_id if person else "",
                str(counts[ShiftType.DAY]),
                str(counts[ShiftType.NIGHT]),
                str(counts[ShiftType.OFF]),
                str(counts[ShiftType.STRAIGHTS]),
                str(swapped),
            ]
            for (_, offset), value in zip(columns, values):
                c.drawString(self.margin + offset, y, value[:24])
            y -= 12

        c.showPage()
