"""Rotation of on-call duty."""

import logging
from typing import Optional

from shiftroster.domain.models import ScheduleState, ShiftCategory

logger = logging.getLogger(__name__)


class OnCallAllocator:
    """Converts working shifts on on-call days into on-call shifts.

    Runs after the weekday stage so every day kind has working staff to
    draw from. Each on-call day gets one shift per configured code, the
    primary first and then the secondary, on different staff members.
    Only staff already working a regular or weekend shift that day are
    candidates, and nobody holds on-call on two consecutive days. The
    upgrade must keep the weekly ceiling and the minimum rest between
    shifts. The member with the fewest on-call shifts so far is chosen,
    ties going to roster order.
    """

    def allocate(self, state: ScheduleState) -> None:
        codes = state.rules.on_call_codes(state.staff_count)
        if not codes:
            logger.info("On-call disabled: no on-call shift configured")
            return

        covered = 0
        for day in state.days:
            if not day.on_call_required:
                continue
            column = [state.code(s, day.index) for s in range(state.staff_count)]
            for code in codes:
                if code in column:
                    covered += 1
                    continue
                chosen = self._choose(state, day.index, code)
                if chosen is None:
                    logger.warning("No on-call candidate for %s (%s)", day.date.isoformat(), code)
                    continue

                previous_code = state.code(chosen, day.index)
                hours_before = state.profiles[chosen].running_hours
                state.assign(chosen, day.index, code)
                column[chosen] = code
                covered += 1
                logger.debug(
                    "On-call %s for %s on %s replaces %s (%+.1f h)",
                    code,
                    state.staff[chosen].name,
                    day.date.isoformat(),
                    previous_code,
                    state.profiles[chosen].running_hours - hours_before,
                )

        logger.info("On-call covered %d shift(s)", covered)

    def _choose(self, state: ScheduleState, day_index: int, code: str) -> Optional[int]:
        extra_hours = state.catalog.hours(code)
        ceiling = state.rules.max_weekly_hours
        candidates = []
        for s in range(state.staff_count):
            if state.is_locked(s, day_index) or not self._holds_convertible_shift(state, s, day_index):
                continue
            if self._on_call_adjacent(state, s, day_index):
                continue
            stat = state.weekly_stat(s, day_index)
            replaced = state.catalog.hours(state.code(s, day_index))
            if stat.assigned_hours - replaced + extra_hours > ceiling:
                continue
            if not state.rest_gap_ok(s, day_index, code):
                continue
            candidates.append(s)
        if not candidates:
            return None
        return min(candidates, key=lambda s: (state.profiles[s].on_call_count, s))

    def _holds_convertible_shift(self, state: ScheduleState, staff_index: int, day_index: int) -> bool:
        category = state.category(staff_index, day_index)
        return (
            category in (ShiftCategory.REGULAR, ShiftCategory.WEEKEND)
            and state.is_work(staff_index, day_index)
        )

    def _on_call_adjacent(self, state: ScheduleState, staff_index: int, day_index: int) -> bool:
        neighbours = [d for d in (day_index - 1, day_index + 1) if 0 <= d < state.day_count]
        return any(state.category(staff_index, d) == ShiftCategory.ON_CALL for d in neighbours)
