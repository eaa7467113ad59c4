"""Hard-constraint check for tentative grid edits.

A breach is a hashable key naming one violated hard constraint, e.g.
``("understaffed", day)`` or ``("work_streak", staff, day)``. Streak
breaches are keyed per day of the offending run, so shortening a run that
is already too long introduces no new key while extending it does.
"""

from typing import Hashable

from shiftroster.domain.models import ScheduleGrid, ScheduleState


def collect_breaches(state: ScheduleState, grid: ScheduleGrid) -> set[Hashable]:
    """All hard-constraint breaches present in a grid."""
    rules = state.rules
    catalog = state.catalog
    breaches: set[Hashable] = set()

    for day in state.days:
        if state.working_count(day.index, grid) < day.min_staff:
            breaches.add(("understaffed", day.index))

    for s in range(state.staff_count):
        row = grid.row(s)
        work_flags = [catalog.is_work(code) for code in row]
        rest_flags = [catalog.is_rest(code) for code in row]

        for week in state.weeks:
            hours = sum(catalog.hours(row[d]) for d in week.day_indices)
            if hours > rules.max_weekly_hours:
                breaches.add(("weekly_hours", s, week.index))

        for d in _days_in_long_runs(work_flags, rules.max_consecutive_work_days):
            breaches.add(("work_streak", s, d))
        for d in _days_in_long_runs(rest_flags, rules.max_consecutive_rest_days):
            breaches.add(("rest_streak", s, d))

        if rules.min_rest_hours_between_shifts > 0:
            for d in range(state.day_count - 1):
                gap = catalog.rest_hours_between(row[d], row[d + 1])
                if gap is not None and gap < rules.min_rest_hours_between_shifts:
                    breaches.add(("short_rest", s, d))

        rest_days = sum(rest_flags)
        if rest_days < state.profiles[s].monthly_target_rest_days:
            breaches.add(("rest_days_short", s))

        if rules.enforce_paired_weekend_exclusivity:
            for d in range(state.day_count - 1):
                if (
                    work_flags[d]
                    and work_flags[d + 1]
                    and state.days[d].day_kind.is_weekend_like
                    and state.days[d + 1].day_kind.is_weekend_like
                ):
                    breaches.add(("paired_weekend", s, d))

    return breaches


def _days_in_long_runs(flags: list[bool], limit: int) -> list[int]:
    days = []
    start = None
    for index, flag in enumerate(flags + [False]):
        if flag and start is None:
            start = index
        elif not flag and start is not None:
            if index - start > limit:
                days.extend(range(start, index))
            start = None
    return days


class SafetyPredicate:
    """Accepts a tentative grid when it adds no breach to the current one."""

    def __init__(self, state: ScheduleState):
        self.state = state

    def is_safe(self, tentative: ScheduleGrid) -> bool:
        current = collect_breaches(self.state, self.state.grid)
        proposed = collect_breaches(self.state, tentative)
        return proposed <= current
