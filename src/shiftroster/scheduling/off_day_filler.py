"""Rest-day top-up and grid saturation."""

import logging

from shiftroster.domain.models import DayKind, ScheduleState, ShiftCategory

logger = logging.getLogger(__name__)


class OffDayFiller:
    """Guarantees rest-day targets where staffing allows, then saturates.

    Empty cells count towards a staff member's rest because they all become
    rest at the end of this stage. Remaining deficits are left for the
    validator to report.
    """

    def fill(self, state: ScheduleState) -> None:
        for staff_index in range(state.staff_count):
            self._top_up_rest(state, staff_index)
        saturated = saturate(state)
        logger.info("Rest days topped up; %d empty cell(s) saturated with rest", saturated)

    def _top_up_rest(self, state: ScheduleState, staff_index: int) -> None:
        rules = state.rules
        profile = state.profiles[staff_index]
        outstanding = profile.monthly_target_rest_days - state.count_cells(
            staff_index, lambda code: code is None or state.catalog.is_rest(code)
        )
        if outstanding <= 0:
            return

        for day in state.days:
            if outstanding <= 0:
                break
            if day.day_kind != DayKind.WEEKDAY:
                continue
            d = day.index
            if state.is_locked(staff_index, d):
                continue
            if not (
                state.category(staff_index, d) == ShiftCategory.REGULAR
                and state.is_work(staff_index, d)
            ):
                continue
            if state.working_count(d) - 1 < day.min_staff:
                continue
            if state.rest_run_if_assigned(staff_index, d) > rules.max_consecutive_rest_days:
                continue
            state.assign(staff_index, d, rules.rest_shift_code)
            outstanding -= 1
            logger.debug(
                "Converted %s to rest for %s", day.date.isoformat(), profile.name
            )

        if outstanding > 0:
            logger.warning(
                "%s is %d rest day(s) short of the target of %d",
                profile.name,
                outstanding,
                profile.monthly_target_rest_days,
            )


def saturate(state: ScheduleState) -> int:
    """Write the rest code into every empty cell.

    Returns:
        Number of cells written.
    """
    rest_code = state.rules.rest_shift_code
    cells = state.grid.empty_cells()
    for staff_index, day_index in cells:
        state.assign(staff_index, day_index, rest_code)
    return len(cells)
