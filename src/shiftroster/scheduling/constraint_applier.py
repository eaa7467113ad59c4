"""Pre-assignment of fixed cells: leave, shutdown rest and paired rest."""

import logging
from typing import Optional

from shiftroster.domain.models import DayKind, ScheduleState

logger = logging.getLogger(__name__)


class ConstraintApplier:
    """Writes the cells every later stage must work around.

    All cells written here are locked. Leave is stamped unconditionally,
    regardless of staffing levels.
    """

    def apply(self, state: ScheduleState) -> None:
        leave_cells = self._apply_leave(state)
        shutdown_cells = self._apply_shutdown_rest(state)
        paired = 0
        if state.rules.paired_rest_enabled:
            paired = self._assign_paired_rest(state)
        logger.info(
            "Constraints applied: %d leave cell(s), %d shutdown rest cell(s), "
            "%d paired rest block(s)",
            leave_cells,
            shutdown_cells,
            paired,
        )

    def _apply_leave(self, state: ScheduleState) -> int:
        written = 0
        for record in state.leave_records:
            staff_index = state.staff_index(record.staff_name)
            for day in state.days:
                if record.covers(day.date):
                    state.assign(staff_index, day.index, record.code, lock=True)
                    written += 1
        return written

    def _apply_shutdown_rest(self, state: ScheduleState) -> int:
        rest_code = state.rules.rest_shift_code
        written = 0
        for day in state.days:
            if day.day_kind != DayKind.SHUTDOWN:
                continue
            for staff_index in range(state.staff_count):
                if state.grid.is_empty(staff_index, day.index):
                    state.assign(staff_index, day.index, rest_code, lock=True)
                    written += 1
        return written

    def _assign_paired_rest(self, state: ScheduleState) -> int:
        rest_code = state.rules.rest_shift_code
        assigned = 0
        for staff_index, member in enumerate(state.staff):
            first = self._find_pair(state, staff_index)
            if first is None:
                logger.warning(
                    "No feasible paired rest block for %s in %04d-%02d",
                    member.name,
                    state.year,
                    state.month,
                )
                continue
            state.assign(staff_index, first, rest_code, lock=True)
            state.assign(staff_index, first + 1, rest_code, lock=True)
            assigned += 1
            logger.debug(
                "Paired rest for %s on %s and %s",
                member.name,
                state.days[first].date.isoformat(),
                state.days[first + 1].date.isoformat(),
            )
        return assigned

    def _find_pair(self, state: ScheduleState, staff_index: int) -> Optional[int]:
        """Earliest feasible first day of a rest pair, or None."""
        anchor, second = state.rules.paired_rest_days
        for day in state.days[:-1]:
            following = state.days[day.index + 1]
            if day.day_of_week != anchor or following.day_of_week != second:
                continue
            if not (
                state.grid.is_empty(staff_index, day.index)
                and state.grid.is_empty(staff_index, following.index)
            ):
                continue
            if all(
                self._available_without(state, staff_index, d.index) >= d.min_staff
                for d in (day, following)
            ):
                return day.index
        return None

    def _available_without(self, state: ScheduleState, staff_index: int, day_index: int) -> int:
        """Other staff whose cell is still empty or already work."""
        available = 0
        for other in range(state.staff_count):
            if other == staff_index:
                continue
            code = state.grid.get(other, day_index)
            if code is None or state.catalog.is_work(code):
                available += 1
        return available
