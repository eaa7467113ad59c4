"""Debug text output for roster analysis.

This module renders a schedule state as plain text:
- The month grid with one row per staff member
- Daily headcount against the minimum
- Per-staff hours, rest days and weekend/on-call load
"""

from pathlib import Path
from typing import Union

from shiftroster.domain.models import DayKind, ScheduleState

_EMPTY_CELL = "--"


class DebugGenerator:
    """Generates debug text output for a schedule state.

    The same text is logged at DEBUG level after each generation stage, so
    a partially filled grid is rendered as well as a finished one.
    """

    def generate(self, state: ScheduleState, output_path: Union[str, Path]) -> str:
        """Generate debug text output and save to file.

        Args:
            state: The schedule state to render.
            output_path: Path to save the text file.

        Returns:
            The generated text content.
        """
        content = self._generate_content(state)
        Path(output_path).write_text(content)
        return content

    def generate_to_string(self, state: ScheduleState) -> str:
        """Generate debug text output and return as string."""
        return self._generate_content(state)

    def _generate_content(self, state: ScheduleState) -> str:
        lines = []
        width = 12 + 5 * state.day_count

        lines.append("=" * width)
        lines.append(f"ROSTER DEBUG OUTPUT - {state.year:04d}-{state.month:02d}")
        lines.append("=" * width)
        lines.append(f"Staff: {state.staff_count}  Days: {state.day_count}  Weeks: {len(state.weeks)}")
        lines.append("")

        # Day header, weekends and holidays marked
        header = f"{'':<12}"
        kinds = f"{'':<12}"
        for day in state.days:
            header += f"{day.date.day:>5}"
            kinds += f"{self._kind_marker(day.day_kind):>5}"
        lines.append(header)
        lines.append(kinds)
        lines.append("-" * width)

        for staff_index, member in enumerate(state.staff):
            row = f"{member.name[:11]:<12}"
            for day_index in range(state.day_count):
                code = state.code(staff_index, day_index) or _EMPTY_CELL
                if state.is_locked(staff_index, day_index):
                    code = code + "*"
                row += f"{code:>5}"
            lines.append(row)

        lines.append("-" * width)
        headcount = f"{'Working':<12}"
        minimum = f"{'Minimum':<12}"
        for day in state.days:
            headcount += f"{state.working_count(day.index):>5}"
            minimum += f"{day.min_staff:>5}"
        lines.append(headcount)
        lines.append(minimum)
        lines.append("")

        lines.append("-" * 72)
        lines.append(
            f"{'Name':<20} {'Hours':>7} {'Target':>7} {'Rest':>5} {'R.Tgt':>5} "
            f"{'Wknd':>5} {'OnCall':>6} {'MaxRun':>6}"
        )
        lines.append("-" * 72)
        for profile in state.profiles:
            lines.append(
                f"{profile.name[:20]:<20} {profile.running_hours:>7.1f} "
                f"{profile.monthly_target_hours:>7.1f} {profile.running_rest_days:>5} "
                f"{profile.monthly_target_rest_days:>5} {profile.weekend_shift_count:>5} "
                f"{profile.on_call_count:>6} {profile.consecutive_work_streak:>6}"
            )

        if state.under_filled_days:
            lines.append("")
            under = ", ".join(
                state.days[d].date.isoformat() for d in sorted(state.under_filled_days)
            )
            lines.append(f"Under-filled days: {under}")

        lines.append("")
        lines.append("* locked cell (leave, paired rest or shutdown)")
        return "\n".join(lines) + "\n"

    def _kind_marker(self, kind: DayKind) -> str:
        return {
            DayKind.WEEKDAY: "",
            DayKind.WEEKEND: "we",
            DayKind.HOLIDAY: "hol",
            DayKind.SHUTDOWN: "shut",
        }[kind]
