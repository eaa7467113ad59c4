"""Daily, weekly and monthly roster summaries."""

from dataclasses import asdict, dataclass, field
from datetime import date

from shiftroster.domain.models import ScheduleState, ShiftCategory


@dataclass
class DailySummary:
    """Headcount of one day.

    Attributes:
        date: The day.
        day_kind: Classification value of the day.
        headcount: Staff working.
        min_staff: Required minimum.
        max_staff: Allowed maximum.
        on_call_required: Whether on-call cover is expected.
        on_call_covered: Whether an on-call shift is assigned.
    """

    date: date
    day_kind: str
    headcount: int
    min_staff: int
    max_staff: int
    on_call_required: bool
    on_call_covered: bool


@dataclass
class WeeklySummary:
    """Hours of one staff member in one week."""

    staff_name: str
    week_index: int
    start: date
    end: date
    target_hours: float
    assigned_hours: float
    rest_or_leave_days: int

    @property
    def deviation(self) -> float:
        return self.assigned_hours - self.target_hours


@dataclass
class MonthlySummary:
    """Month totals of one staff member."""

    staff_name: str
    target_hours: float
    assigned_hours: float
    rest_days: int
    target_rest_days: int
    weekend_shifts: int
    on_call_shifts: int
    has_paired_rest: bool

    @property
    def difference(self) -> float:
        return self.assigned_hours - self.target_hours


@dataclass
class RosterSummary:
    """All summary tables of a roster."""

    daily: list[DailySummary] = field(default_factory=list)
    weekly: list[WeeklySummary] = field(default_factory=list)
    monthly: list[MonthlySummary] = field(default_factory=list)

    def to_dict(self) -> dict:
        """JSON-friendly representation."""
        return {
            "daily": [_jsonable(asdict(row)) for row in self.daily],
            "weekly": [
                {**_jsonable(asdict(row)), "deviation": row.deviation} for row in self.weekly
            ],
            "monthly": [
                {**_jsonable(asdict(row)), "difference": row.difference} for row in self.monthly
            ],
        }


def _jsonable(row: dict) -> dict:
    return {
        key: value.isoformat() if isinstance(value, date) else value
        for key, value in row.items()
    }


class SummaryCalculator:
    """Derives summaries from the grid of a schedule state."""

    def calculate(self, state: ScheduleState) -> RosterSummary:
        state.refresh()
        return RosterSummary(
            daily=self._daily(state),
            weekly=self._weekly(state),
            monthly=self._monthly(state),
        )

    def _daily(self, state: ScheduleState) -> list[DailySummary]:
        rows = []
        for day in state.days:
            rows.append(
                DailySummary(
                    date=day.date,
                    day_kind=day.day_kind.value,
                    headcount=state.working_count(day.index),
                    min_staff=day.min_staff,
                    max_staff=day.max_staff,
                    on_call_required=day.on_call_required,
                    on_call_covered=any(
                        state.category(s, day.index) == ShiftCategory.ON_CALL
                        for s in range(state.staff_count)
                    ),
                )
            )
        return rows

    def _weekly(self, state: ScheduleState) -> list[WeeklySummary]:
        rows = []
        for profile in state.profiles:
            for week in state.weeks:
                stat = profile.weekly_stats[week.index]
                rows.append(
                    WeeklySummary(
                        staff_name=profile.name,
                        week_index=week.index,
                        start=state.days[week.first_day].date,
                        end=state.days[week.last_day].date,
                        target_hours=stat.target_hours,
                        assigned_hours=stat.assigned_hours,
                        rest_or_leave_days=stat.assigned_rest + stat.assigned_leave,
                    )
                )
        return rows

    def _monthly(self, state: ScheduleState) -> list[MonthlySummary]:
        return [
            MonthlySummary(
                staff_name=profile.name,
                target_hours=profile.monthly_target_hours,
                assigned_hours=profile.running_hours,
                rest_days=profile.running_rest_days,
                target_rest_days=profile.monthly_target_rest_days,
                weekend_shifts=profile.weekend_shift_count,
                on_call_shifts=profile.on_call_count,
                has_paired_rest=self._has_paired_rest(state, staff_index),
            )
            for staff_index, profile in enumerate(state.profiles)
        ]

    def _has_paired_rest(self, state: ScheduleState, staff_index: int) -> bool:
        if not state.rules.paired_rest_enabled:
            return False
        anchor, second = state.rules.paired_rest_days
        for day in state.days[:-1]:
            following = state.days[day.index + 1]
            if (
                day.day_of_week == anchor
                and following.day_of_week == second
                and state.catalog.is_rest(state.code(staff_index, day.index))
                and state.catalog.is_rest(state.code(staff_index, following.index))
            ):
                return True
        return False
