"""PDF generation for roster output.

This module creates printable PDF rosters showing:
- The month grid, one row per staff member, colored by shift category
- Daily headcount under the grid
- A monthly summary page with hours, rest days and weekend/on-call load
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from shiftroster.domain.models import DayKind, ScheduleState, ShiftCategory
from shiftroster.output.summary import RosterSummary, SummaryCalculator

# Color definitions (RGB tuples, 0-1 scale)
COLORS = {
    ShiftCategory.REGULAR: (0.75, 0.88, 0.75),  # Green
    ShiftCategory.WEEKEND: (0.70, 0.78, 0.95),  # Blue
    ShiftCategory.ON_CALL: (0.95, 0.75, 0.45),  # Orange
    ShiftCategory.REST: (0.95, 0.95, 0.95),  # Light gray
    ShiftCategory.LEAVE: (1.0, 0.9, 0.5),  # Yellow
    "weekend_header": (0.85, 0.85, 0.85),
    "holiday_header": (0.95, 0.80, 0.80),
    "empty": (1.0, 1.0, 1.0),
}


def _require_reportlab():
    try:
        from reportlab.lib.pagesizes import landscape, letter
        from reportlab.pdfgen import canvas
    except ImportError:
        raise ImportError(
            "reportlab is required for PDF generation. "
            "Install with: pip install reportlab"
        )
    return canvas, landscape(letter)


class PDFGenerator:
    """Generates printable PDF rosters.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate(state, "roster.pdf")
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 30,
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin

    def generate(
        self,
        state: ScheduleState,
        output_path: Union[str, Path],
        include_summary: bool = True,
    ) -> None:
        """Generate the PDF roster and save to file.

        Args:
            state: Schedule state to render.
            output_path: Path to save the PDF.
            include_summary: Whether to include the summary page.
        """
        canvas, pagesize = _require_reportlab()
        c = canvas.Canvas(str(output_path), pagesize=pagesize)
        self._draw(c, state, include_summary)
        c.save()

    def generate_to_buffer(self, state: ScheduleState, include_summary: bool = True) -> BytesIO:
        """Generate the PDF roster and return it as a bytes buffer."""
        canvas, pagesize = _require_reportlab()
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=pagesize)
        self._draw(c, state, include_summary)
        c.save()
        buffer.seek(0)
        return buffer

    def _draw(self, c, state: ScheduleState, include_summary: bool) -> None:
        summary = SummaryCalculator().calculate(state)
        self._draw_grid_pages(c, state)
        if include_summary:
            self._draw_summary_page(c, state, summary)

    def _draw_grid_pages(self, c, state: ScheduleState) -> None:
        """Draw the month grid, paginating by staff rows."""
        row_height = 16
        header_height = 70
        footer_height = 50
        name_width = 100
        usable_height = self.page_height - 2 * self.margin - header_height - footer_height
        rows_per_page = max(int(usable_height / row_height) - 1, 1)

        grid_left = self.margin + name_width
        cell_width = (self.page_width - self.margin - grid_left) / max(state.day_count, 1)

        staff_indices = list(range(state.staff_count))
        total_pages = max((len(staff_indices) + rows_per_page - 1) // rows_per_page, 1)

        for page_num in range(total_pages):
            page_rows = staff_indices[page_num * rows_per_page:(page_num + 1) * rows_per_page]
            self._draw_header(c, state)

            y = self.page_height - self.margin - header_height
            self._draw_day_header(c, state, grid_left, y, cell_width, row_height)

            for staff_index in page_rows:
                y -= row_height
                self._draw_staff_row(c, state, staff_index, grid_left, y, cell_width, row_height)

            if page_num == total_pages - 1:
                y -= row_height
                self._draw_headcount_row(c, state, grid_left, y, cell_width, row_height)

            self._draw_legend(c, self.margin, self.margin + 10)
            c.setFont("Helvetica", 9)
            c.drawCentredString(
                self.page_width / 2,
                self.margin - 10,
                f"Page {page_num + 1} of {total_pages}",
            )
            c.showPage()

    def _draw_header(self, c, state: ScheduleState) -> None:
        first = state.days[0].date
        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            f"Monthly Roster - {first.strftime('%B %Y')}",
        )
        c.setFont("Helvetica", 10)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 35,
            f"Staff: {state.staff_count}    Days: {state.day_count}",
        )

    def _draw_day_header(self, c, state: ScheduleState, x: float, y: float, cell_width: float, height: float) -> None:
        c.setFont("Helvetica-Bold", 7)
        for day in state.days:
            cx = x + day.index * cell_width
            fill = self._header_color(day.day_kind)
            if fill is not None:
                c.setFillColorRGB(*fill)
                c.rect(cx, y, cell_width, height, fill=1, stroke=0)
            c.setFillColorRGB(0, 0, 0)
            c.drawCentredString(cx + cell_width / 2, y + height / 2 + 1, str(day.date.day))
            c.setFont("Helvetica", 5)
            c.drawCentredString(cx + cell_width / 2, y + 2, day.date.strftime("%a")[:2])
            c.setFont("Helvetica-Bold", 7)

    def _header_color(self, kind: DayKind) -> Optional[tuple]:
        if kind == DayKind.WEEKEND:
            return COLORS["weekend_header"]
        if kind in (DayKind.HOLIDAY, DayKind.SHUTDOWN):
            return COLORS["holiday_header"]
        return None

    def _draw_staff_row(
        self,
        c,
        state: ScheduleState,
        staff_index: int,
        x: float,
        y: float,
        cell_width: float,
        height: float,
    ) -> None:
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 8)
        c.drawString(self.margin, y + height / 2 - 3, state.staff[staff_index].name[:20])

        c.setStrokeColorRGB(0.6, 0.6, 0.6)
        c.setLineWidth(0.3)
        for day in state.days:
            code = state.code(staff_index, day.index)
            category = state.catalog.category(code)
            color = COLORS.get(category, COLORS["empty"])
            cx = x + day.index * cell_width
            c.setFillColorRGB(*color)
            c.rect(cx, y, cell_width, height, fill=1, stroke=1)
            if code:
                c.setFillColorRGB(0, 0, 0)
                c.setFont("Helvetica", 6)
                c.drawCentredString(cx + cell_width / 2, y + height / 2 - 2, code[:4])

    def _draw_headcount_row(self, c, state: ScheduleState, x: float, y: float, cell_width: float, height: float) -> None:
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 8)
        c.drawString(self.margin, y + height / 2 - 3, "Working")
        c.setFont("Helvetica", 7)
        for day in state.days:
            working = state.working_count(day.index)
            if working < day.min_staff:
                c.setFillColorRGB(0.8, 0, 0)
            else:
                c.setFillColorRGB(0, 0, 0)
            cx = x + day.index * cell_width
            c.drawCentredString(cx + cell_width / 2, y + height / 2 - 3, str(working))
        c.setFillColorRGB(0, 0, 0)

    def _draw_legend(self, c, x: float, y: float) -> None:
        """Draw legend for colors."""
        c.setFont("Helvetica-Bold", 8)
        c.setFillColorRGB(0, 0, 0)
        c.drawString(x, y, "Legend:")

        items = [
            (ShiftCategory.REGULAR, "Regular"),
            (ShiftCategory.WEEKEND, "Weekend"),
            (ShiftCategory.ON_CALL, "On-call"),
            (ShiftCategory.REST, "Rest"),
            (ShiftCategory.LEAVE, "Leave"),
        ]

        c.setFont("Helvetica", 7)
        current_x = x + 45
        for key, label in items:
            c.setFillColorRGB(*COLORS[key])
            c.rect(current_x, y - 2, 12, 10, fill=1, stroke=1)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(current_x + 15, y, label)
            current_x += 70

    def _draw_summary_page(self, c, state: ScheduleState, summary: RosterSummary) -> None:
        """Draw the monthly summary table."""
        first = state.days[0].date
        c.setFont("Helvetica-Bold", 16)
        c.setFillColorRGB(0, 0, 0)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            f"Roster Summary - {first.strftime('%B %Y')}",
        )

        columns = [
            ("Name", 150),
            ("Target h", 70),
            ("Assigned h", 70),
            ("Diff", 60),
            ("Rest", 50),
            ("Rest tgt", 60),
            ("Weekend", 60),
            ("On-call", 60),
            ("Pair", 40),
        ]
        y = self.page_height - self.margin - 60
        c.setFont("Helvetica-Bold", 9)
        x = self.margin
        for title, width in columns:
            c.drawString(x, y, title)
            x += width
        y -= 4
        c.line(self.margin, y, self.page_width - self.margin, y)

        c.setFont("Helvetica", 9)
        for row in summary.monthly:
            y -= 14
            if y < self.margin + 20:
                c.showPage()
                c.setFont("Helvetica", 9)
                y = self.page_height - self.margin - 20
            values = [
                row.staff_name[:28],
                f"{row.target_hours:.1f}",
                f"{row.assigned_hours:.1f}",
                f"{row.difference:+.1f}",
                str(row.rest_days),
                str(row.target_rest_days),
                str(row.weekend_shifts),
                str(row.on_call_shifts),
                "yes" if row.has_paired_rest else "-",
            ]
            x = self.margin
            for value, (_, width) in zip(values, columns):
                c.drawString(x, y, value)
                x += width

        uncovered = [d for d in summary.daily if d.on_call_required and not d.on_call_covered]
        understaffed = [d for d in summary.daily if d.headcount < d.min_staff]
        y -= 30
        c.setFont("Helvetica-Bold", 10)
        c.drawString(self.margin, y, "Coverage")
        c.setFont("Helvetica", 9)
        y -= 14
        c.drawString(
            self.margin + 20,
            y,
            f"Understaffed days: {len(understaffed)}    On-call gaps: {len(uncovered)}",
        )
        c.showPage()
