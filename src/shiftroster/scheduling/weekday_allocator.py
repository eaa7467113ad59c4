"""Greedy assignment of weekday shifts.

The allocator makes repeated passes over the month's weekdays. Each pass
gives every day that is still below its target at most one additional
shift, so coverage grows evenly across the month instead of filling early
days first. Passes stop once a pass assigns nothing.

Weekly targets do not carry over between weeks, so a member who rests a
paired weekday in one week and works a weekend day in another ends the
passes short for the month. A top-up pass assigns further weekday shifts
to anyone still below the monthly target by more than the hour tolerance.

Finally every row is scanned for rest runs that would grow past the limit
once the remaining empty cells become rest. Such runs are broken by moving
a regular shift of the same week into the run, or by adding one.
"""

import logging
from typing import Iterable, Optional

from shiftroster.domain.models import DayKind, DayProfile, ScheduleState, ShiftCategory

logger = logging.getLogger(__name__)


class WeekdayAllocator:
    """Assigns regular shifts on weekdays towards weekly hour targets."""

    def allocate(self, state: ScheduleState) -> int:
        """Fill weekday cells until no day can take another shift.

        Args:
            state: State to fill in place.

        Returns:
            Number of shifts assigned.
        """
        weekdays = [day for day in state.days if day.day_kind == DayKind.WEEKDAY]
        max_passes = state.day_count * state.staff_count
        total = 0
        passes = 0

        while passes < max_passes:
            passes += 1
            added = 0
            for day in weekdays:
                working = state.working_count(day.index)
                if working >= day.target_staff:
                    continue
                if self._assign_one(state, day, below_min=working < day.min_staff):
                    added += 1
            total += added
            if added == 0:
                break
        else:
            logger.warning("Weekday allocation stopped after %d passes", max_passes)

        logger.info("Assigned %d weekday shift(s) in %d pass(es)", total, passes)

        topped_up = self._top_up_month(state, weekdays)
        if topped_up:
            logger.info("Assigned %d shift(s) towards monthly targets", topped_up)
        added = self._break_rest_runs(state)
        if added:
            logger.info("Added %d shift(s) to break long rest runs", added)
        return total + topped_up + added

    def _assign_one(self, state: ScheduleState, day: DayProfile, below_min: bool) -> bool:
        candidates = []
        for s in range(state.staff_count):
            if not state.grid.is_empty(s, day.index) or state.is_locked(s, day.index):
                continue
            ratio = state.weekly_stat(s, day.index).ratio
            if not below_min and ratio >= 1.0:
                continue
            candidates.append((ratio, s))
        candidates.sort()

        for _, s in candidates:
            code = self._choose_shift(state, s, day.index)
            if code is None:
                continue
            state.assign(s, day.index, code)
            logger.debug(
                "Weekday shift %s for %s on %s",
                code,
                state.staff[s].name,
                day.date.isoformat(),
            )
            return True
        return False

    def _fitting_shifts(self, state: ScheduleState, staff_index: int, day_index: int) -> list[str]:
        """Weekday shifts that keep the weekly ceiling and the minimum rest."""
        rules = state.rules
        if state.work_run_if_assigned(staff_index, day_index) > rules.max_consecutive_work_days:
            return []
        stat = state.weekly_stat(staff_index, day_index)
        return [
            code for code in rules.weekday_shift_codes
            if stat.assigned_hours + state.catalog.hours(code) <= rules.max_weekly_hours
            and state.rest_gap_ok(staff_index, day_index, code)
        ]

    def _choose_shift(self, state: ScheduleState, staff_index: int, day_index: int) -> Optional[str]:
        """Longest shift within the remaining weekly need, else the shortest.

        Shifts that would break the weekly ceiling are never offered, and
        nothing is offered when working the day would make the work run too
        long.
        """
        catalog = state.catalog
        fitting = self._fitting_shifts(state, staff_index, day_index)
        if not fitting:
            return None

        stat = state.weekly_stat(staff_index, day_index)
        need = stat.target_hours - stat.assigned_hours
        within_need = [code for code in fitting if catalog.hours(code) <= need]
        if within_need:
            return max(within_need, key=catalog.hours)
        return min(fitting, key=catalog.hours)

    def _top_up_month(self, state: ScheduleState, weekdays: list[DayProfile]) -> int:
        tolerance = state.rules.hours_tolerance
        added = 0
        for s, profile in enumerate(state.profiles):
            while profile.monthly_target_hours - profile.running_hours > tolerance:
                if self._spare_rest(state, s) <= 0:
                    break
                need = profile.monthly_target_hours - profile.running_hours
                open_days = sorted(
                    (
                        day for day in weekdays
                        if state.grid.is_empty(s, day.index)
                        and not state.is_locked(s, day.index)
                        and state.working_count(day.index) < day.max_staff
                    ),
                    key=lambda day: (state.weekly_stat(s, day.index).ratio, day.index),
                )
                placed = False
                for day in open_days:
                    code = self._closest_shift(state, s, day.index, need)
                    if code is None:
                        continue
                    state.assign(s, day.index, code)
                    logger.debug(
                        "Monthly top-up %s for %s on %s", code, state.staff[s].name, day.date.isoformat()
                    )
                    added += 1
                    placed = True
                    break
                if not placed:
                    break
        return added

    def _closest_shift(
        self, state: ScheduleState, staff_index: int, day_index: int, need: float
    ) -> Optional[str]:
        """Shift bringing the month closest to its target, if it gets closer at all."""
        catalog = state.catalog
        fitting = self._fitting_shifts(state, staff_index, day_index)
        if not fitting:
            return None
        best = min(fitting, key=lambda code: (abs(need - catalog.hours(code)), -catalog.hours(code)))
        if abs(need - catalog.hours(best)) >= need:
            return None
        return best

    def _spare_rest(self, state: ScheduleState, staff_index: int) -> int:
        """Empty or rest cells beyond the monthly rest target."""
        free = state.count_cells(
            staff_index, lambda code: code is None or state.catalog.is_rest(code)
        )
        return free - state.profiles[staff_index].monthly_target_rest_days

    def _break_rest_runs(self, state: ScheduleState) -> int:
        limit = state.rules.max_consecutive_rest_days
        added = 0
        for s in range(state.staff_count):
            run = 0
            for d in range(state.day_count):
                code = state.code(s, d)
                if code is not None and not state.catalog.is_rest(code):
                    run = 0
                    continue
                run += 1
                if run <= limit:
                    continue

                window = range(d, d - limit - 1, -1)
                placed = self._work_inside(state, s, window)
                if placed is None:
                    logger.warning(
                        "Could not break the rest run of %s ending %s",
                        state.staff[s].name,
                        state.days[d].date.isoformat(),
                    )
                    run = 0
                    continue
                if placed[1]:
                    added += 1
                run = d - placed[0]
        return added

    def _work_inside(
        self, state: ScheduleState, staff_index: int, window: Iterable[int]
    ) -> Optional[tuple[int, bool]]:
        """Put a shift on a weekday of ``window``, latest day first.

        Returns the day used and whether the shift was added rather than
        moved, or None when no day of the window can take work.
        """
        for p in window:
            day = state.days[p]
            if (
                day.day_kind != DayKind.WEEKDAY
                or not state.grid.is_empty(staff_index, p)
                or state.is_locked(staff_index, p)
                or state.working_count(p) >= day.max_staff
            ):
                continue
            if self._move_into(state, staff_index, p):
                return p, False
            code = self._choose_shift(state, staff_index, p)
            if code is not None:
                state.assign(staff_index, p, code)
                logger.debug(
                    "Added %s for %s on %s to break a rest run",
                    code,
                    state.staff[staff_index].name,
                    day.date.isoformat(),
                )
                return p, True
        return None

    def _move_into(self, state: ScheduleState, staff_index: int, day_index: int) -> bool:
        """Move a regular shift of the same week onto ``day_index``."""
        limit = state.rules.max_consecutive_rest_days
        if state.work_run_if_assigned(staff_index, day_index) > state.rules.max_consecutive_work_days:
            return False
        for q in state.week_of(day_index).day_indices:
            if q == day_index or state.is_locked(staff_index, q):
                continue
            if state.category(staff_index, q) != ShiftCategory.REGULAR or not state.is_work(staff_index, q):
                continue
            if state.working_count(q) - 1 < state.days[q].min_staff:
                continue
            code = state.code(staff_index, q)
            if not state.rest_gap_ok(staff_index, day_index, code):
                continue

            state.assign(staff_index, day_index, code)
            state.assign(staff_index, q, None)
            if state.rest_run_if_assigned(staff_index, q) <= limit:
                logger.debug(
                    "Moved %s for %s from %s to %s to break a rest run",
                    code,
                    state.staff[staff_index].name,
                    state.days[q].date.isoformat(),
                    state.days[day_index].date.isoformat(),
                )
                return True
            state.assign(staff_index, q, code)
            state.assign(staff_index, day_index, None)
        return False
