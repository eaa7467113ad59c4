"""Local-search balancing of weekly hours.

The balancer repeatedly targets the week with the largest spread between
the most-over and the most-under staff member and tries, in order:

1. Give: the over member hands a shift to the under member, who is
   resting that day.
2. Swap: both work that day and exchange shifts, the over member holding
   the longer one.
3. Downgrade: the over member, when above target, has a shift replaced
   by a shorter one of the same category.

A move is kept only when it strictly shrinks the targeted week's spread
and the safety predicate accepts the resulting grid. It must also not grow
the two members' combined distance from their weekly targets, nor from
their monthly targets. Since every other week is untouched, the worst
spread never grows between iterations.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from shiftroster.domain.models import ScheduleGrid, ScheduleState, ShiftCategory, Week
from shiftroster.scheduling.off_day_filler import saturate
from shiftroster.scheduling.safety import SafetyPredicate

logger = logging.getLogger(__name__)

_MOVABLE = (ShiftCategory.REGULAR, ShiftCategory.WEEKEND)


class MoveKind(Enum):
    """Kinds of balancing move, in the order they are tried."""

    GIVE = "give"
    SWAP = "swap"
    DOWNGRADE = "downgrade"


@dataclass(frozen=True)
class WeekSpread:
    """Hour deviation spread of one week.

    Attributes:
        week_index: Week the spread belongs to.
        spread: Most-over deviation minus most-under deviation.
        over_staff: Staff index with the largest ``assigned - target``.
        under_staff: Staff index with the smallest ``assigned - target``.
    """

    week_index: int
    spread: float
    over_staff: int
    under_staff: int


@dataclass(frozen=True)
class BalancerMove:
    """A move applied by the balancer."""

    kind: MoveKind
    day_index: int
    over_staff: int
    under_staff: int
    before: tuple[Optional[str], Optional[str]]
    after: tuple[Optional[str], Optional[str]]


@dataclass
class BalancerReport:
    """Outcome of a balancing run.

    Attributes:
        iterations: Moves applied.
        converged: The worst spread fell below the tolerance.
        exhausted: The iteration bound was reached.
        spread_history: Worst spread at the start of every iteration.
        moves: Applied moves in order.
    """

    iterations: int = 0
    converged: bool = False
    exhausted: bool = False
    spread_history: list[float] = field(default_factory=list)
    moves: list[BalancerMove] = field(default_factory=list)


def week_spread(state: ScheduleState, grid: ScheduleGrid, week: Week) -> Optional[WeekSpread]:
    """Spread of ``assigned - target`` hours within a week.

    Only staff with a non-zero target or non-zero assigned hours that week
    take part. Returns None when fewer than two staff take part.
    """
    deviations = []
    for s, profile in enumerate(state.profiles):
        assigned = _week_hours(state, grid, s, week)
        target = profile.weekly_stats[week.index].target_hours
        if not target and not assigned:
            continue
        deviations.append((assigned - target, s))
    if len(deviations) < 2:
        return None

    # max/min keep the first of equal values, i.e. roster order
    over_dev, over = max(deviations, key=lambda item: item[0])
    under_dev, under = min(deviations, key=lambda item: item[0])
    return WeekSpread(week.index, over_dev - under_dev, over, under)


def _week_hours(state: ScheduleState, grid: ScheduleGrid, staff_index: int, week: Week) -> float:
    return sum(state.catalog.hours(grid.get(staff_index, d)) for d in week.day_indices)


def _distance(
    state: ScheduleState, grid: ScheduleGrid, week: Week, members: tuple[int, int]
) -> tuple[float, float]:
    """Combined weekly and monthly ``|assigned - target|`` of two members."""
    weekly = monthly = 0.0
    for s in members:
        profile = state.profiles[s]
        weekly += abs(
            _week_hours(state, grid, s, week) - profile.weekly_stats[week.index].target_hours
        )
        month_hours = sum(state.catalog.hours(code) for code in grid.row(s))
        monthly += abs(month_hours - profile.monthly_target_hours)
    return weekly, monthly


def find_worst_week(state: ScheduleState, grid: Optional[ScheduleGrid] = None) -> Optional[WeekSpread]:
    """Week with the largest spread; the earliest week wins ties."""
    grid = grid or state.grid
    worst = None
    for week in state.weeks:
        spread = week_spread(state, grid, week)
        if spread is None:
            continue
        if worst is None or spread.spread > worst.spread:
            worst = spread
    return worst


class Balancer:
    """Reduces weekly hour deviations through safe local moves."""

    def balance(self, state: ScheduleState) -> BalancerReport:
        rules = state.rules
        report = BalancerReport()
        safety = SafetyPredicate(state)

        while True:
            state.refresh()
            worst = find_worst_week(state)
            if worst is None:
                report.converged = True
                break
            report.spread_history.append(worst.spread)
            if worst.spread < rules.balancer_tolerance:
                report.converged = True
                break
            if report.iterations >= rules.balancer_max_iterations:
                report.exhausted = True
                logger.warning(
                    "Balancer stopped after %d iteration(s) with spread %.1f h in week %d",
                    report.iterations,
                    worst.spread,
                    worst.week_index + 1,
                )
                break

            move = self._find_move(state, safety, worst)
            if move is None:
                logger.info(
                    "No improving move for week %d (spread %.1f h); stopping",
                    worst.week_index + 1,
                    worst.spread,
                )
                break

            if move.after[1] != move.before[1]:
                state.assign(move.under_staff, move.day_index, move.after[1])
            state.assign(move.over_staff, move.day_index, move.after[0])
            report.moves.append(move)
            report.iterations += 1
            logger.debug(
                "%s on %s: %s %s->%s, %s %s->%s",
                move.kind.value,
                state.days[move.day_index].date.isoformat(),
                state.staff[move.over_staff].name,
                move.before[0],
                move.after[0],
                state.staff[move.under_staff].name,
                move.before[1],
                move.after[1],
            )

        saturated = saturate(state)
        if saturated:
            logger.info("Saturated %d empty cell(s) after balancing", saturated)
        logger.info(
            "Balancing finished after %d move(s); worst spread %s",
            report.iterations,
            f"{report.spread_history[-1]:.1f} h" if report.spread_history else "n/a",
        )
        return report

    def _find_move(
        self,
        state: ScheduleState,
        safety: SafetyPredicate,
        worst: WeekSpread,
    ) -> Optional[BalancerMove]:
        week = state.weeks[worst.week_index]
        for finder in (self._give, self._swap, self._downgrade):
            for d in week.day_indices:
                for move in finder(state, worst, d):
                    if self._accepts(state, safety, week, worst, move):
                        return move
        return None

    def _accepts(
        self,
        state: ScheduleState,
        safety: SafetyPredicate,
        week: Week,
        worst: WeekSpread,
        move: BalancerMove,
    ) -> bool:
        tentative = state.grid.copy()
        tentative.set(move.over_staff, move.day_index, move.after[0])
        tentative.set(move.under_staff, move.day_index, move.after[1])
        after = week_spread(state, tentative, week)
        if after is None or after.spread >= worst.spread:
            return False
        members = (move.over_staff, move.under_staff)
        weekly_before, monthly_before = _distance(state, state.grid, week, members)
        weekly_after, monthly_after = _distance(state, tentative, week, members)
        if weekly_after > weekly_before or monthly_after > monthly_before:
            return False
        return safety.is_safe(tentative)

    def _movable(self, state: ScheduleState, staff_index: int, day_index: int) -> bool:
        return (
            not state.is_locked(staff_index, day_index)
            and state.category(staff_index, day_index) in _MOVABLE
            and state.is_work(staff_index, day_index)
        )

    def _give(self, state: ScheduleState, worst: WeekSpread, d: int) -> Iterator[BalancerMove]:
        over, under = worst.over_staff, worst.under_staff
        if not self._movable(state, over, d) or state.is_locked(under, d):
            return
        under_code = state.code(under, d)
        if under_code is not None and not state.catalog.is_rest(under_code):
            return
        over_code = state.code(over, d)
        yield BalancerMove(
            MoveKind.GIVE,
            d,
            over,
            under,
            before=(over_code, under_code),
            after=(state.rules.rest_shift_code, over_code),
        )

    def _swap(self, state: ScheduleState, worst: WeekSpread, d: int) -> Iterator[BalancerMove]:
        over, under = worst.over_staff, worst.under_staff
        if not (self._movable(state, over, d) and self._movable(state, under, d)):
            return
        over_code, under_code = state.code(over, d), state.code(under, d)
        if state.category(over, d) != state.category(under, d):
            return
        if state.catalog.hours(over_code) <= state.catalog.hours(under_code):
            return
        yield BalancerMove(
            MoveKind.SWAP,
            d,
            over,
            under,
            before=(over_code, under_code),
            after=(under_code, over_code),
        )

    def _downgrade(self, state: ScheduleState, worst: WeekSpread, d: int) -> Iterator[BalancerMove]:
        over, under = worst.over_staff, worst.under_staff
        if not self._movable(state, over, d):
            return
        if state.weekly_stat(over, d).deviation <= 0:
            return
        catalog = state.catalog
        over_code = state.code(over, d)
        category = catalog.category(over_code)
        if category == ShiftCategory.REGULAR:
            pool = list(state.rules.weekday_shift_codes)
        else:
            pool = catalog.codes_in(category)
        shorter = [
            code for code in pool
            if 0 < catalog.hours(code) < catalog.hours(over_code)
        ]
        under_code = state.code(under, d)
        for replacement in sorted(shorter, key=catalog.hours, reverse=True):
            yield BalancerMove(
                MoveKind.DOWNGRADE,
                d,
                over,
                under,
                before=(over_code, under_code),
                after=(replacement, under_code),
            )
