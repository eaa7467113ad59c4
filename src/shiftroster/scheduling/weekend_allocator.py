"""Fair distribution of weekend and holiday shifts."""

import logging

from shiftroster.domain.models import ScheduleState

logger = logging.getLogger(__name__)


class WeekendAllocator:
    """Assigns the weekend shift on weekend and holiday days.

    Every eligible staff member gets a quota of the month's weekend slots;
    the remainder of an uneven split goes to the first staff in roster
    order. Days are filled in date order, preferring whoever has used the
    smallest share of their quota.
    """

    def allocate(self, state: ScheduleState) -> None:
        rules = state.rules
        weekend_days = [day for day in state.days if day.day_kind.is_weekend_like]
        code = rules.weekend_shift_code
        if not weekend_days or code is None:
            logger.info("No weekend or holiday slots to allocate")
            return

        eligible = [
            s for s in range(state.staff_count)
            if any(state.grid.is_empty(s, day.index) for day in weekend_days)
        ]
        total_slots = sum(day.min_staff for day in weekend_days)
        quotas = self._quotas(eligible, total_slots)
        assigned = {
            s: sum(1 for day in weekend_days if state.is_work(s, day.index))
            for s in eligible
        }

        filled = 0
        for day in weekend_days:
            needed = day.min_staff - state.working_count(day.index)
            if needed <= 0:
                continue

            candidates = [
                s for s in eligible
                if state.grid.is_empty(s, day.index)
                and not state.is_locked(s, day.index)
                and assigned[s] < quotas[s]
                and not self._works_adjacent(state, s, day.index)
                and state.work_run_if_assigned(s, day.index) <= rules.max_consecutive_work_days
                and state.rest_gap_ok(s, day.index, code)
            ]
            candidates.sort(key=lambda s: (assigned[s] / quotas[s], s))

            for s in candidates[:needed]:
                state.assign(s, day.index, code)
                assigned[s] += 1
                filled += 1
                logger.debug(
                    "Weekend shift %s for %s on %s", code, state.staff[s].name, day.date.isoformat()
                )

            if len(candidates) < needed:
                state.under_filled_days.add(day.index)
                logger.warning(
                    "Weekend day %s under-filled: %d of %d required staff assigned",
                    day.date.isoformat(),
                    state.working_count(day.index),
                    day.min_staff,
                )

        logger.info(
            "Allocated %d weekend shift(s) over %d day(s) among %d eligible staff",
            filled,
            len(weekend_days),
            len(eligible),
        )

    def _quotas(self, eligible: list[int], total_slots: int) -> dict[int, int]:
        if not eligible:
            return {}
        base, remainder = divmod(total_slots, len(eligible))
        return {
            s: base + (1 if rank < remainder else 0)
            for rank, s in enumerate(eligible)
        }

    def _works_adjacent(self, state: ScheduleState, staff_index: int, day_index: int) -> bool:
        """Whether the staff member works a neighbouring weekend or holiday day."""
        if not state.rules.enforce_paired_weekend_exclusivity:
            return False
        for neighbour in (day_index - 1, day_index + 1):
            if 0 <= neighbour < state.day_count:
                if state.days[neighbour].day_kind.is_weekend_like and state.is_work(
                    staff_index, neighbour
                ):
                    return True
        return False
