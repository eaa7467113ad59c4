"""Domain models for the roster engine.

This module contains the core data structures shared by every stage of a
scheduling run: the shift catalog, staff and leave records, per-day staffing
profiles, weeks, per-staff statistics and the mutable schedule state.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable, Iterator, Optional

if TYPE_CHECKING:
    from shiftroster.domain.rules import RuleSet


class ShiftCategory(Enum):
    """Category of a shift code.

    REGULAR, WEEKEND and ON_CALL shifts are work; REST and LEAVE are not.
    """

    REGULAR = "regular"
    WEEKEND = "weekend"
    ON_CALL = "on_call"
    REST = "rest"
    LEAVE = "leave"

    @property
    def is_work(self) -> bool:
        return self in (ShiftCategory.REGULAR, ShiftCategory.WEEKEND, ShiftCategory.ON_CALL)


class DayKind(Enum):
    """Classification of a calendar day."""

    WEEKDAY = "weekday"
    WEEKEND = "weekend"
    HOLIDAY = "holiday"
    SHUTDOWN = "shutdown"  # Facility closed, nobody works

    @property
    def is_weekend_like(self) -> bool:
        """Weekend and holiday days are staffed with the weekend shift."""
        return self in (DayKind.WEEKEND, DayKind.HOLIDAY)


class LeaveStatus(Enum):
    """Approval status of a leave request."""

    APPROVED = "approved"
    PENDING = "pending"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ShiftDefinition:
    """A shift code that may appear in a grid cell.

    Attributes:
        code: Short code written into the grid (e.g. "D8").
        category: Category of the shift.
        duration_hours: Paid hours of the shift. Only work shifts count.
        description: Human-readable description.
        start_hour: Hour of day the shift starts, used for rest between
            shifts on consecutive days.
    """

    code: str
    category: ShiftCategory
    duration_hours: float = 0.0
    description: str = ""
    start_hour: float = 9.0

    @property
    def is_work(self) -> bool:
        """A shift is work when its category is work and it has a duration."""
        return self.category.is_work and self.duration_hours > 0

    @property
    def hours(self) -> float:
        """Hours contributed to the staff member's totals."""
        return self.duration_hours if self.is_work else 0.0


class ShiftCatalog:
    """Immutable lookup of shift definitions by code.

    Catalog order is preserved and is used wherever several codes of one
    category are candidates.
    """

    def __init__(self, definitions: Iterable[ShiftDefinition]):
        self._definitions: dict[str, ShiftDefinition] = {}
        for definition in definitions:
            self._definitions[definition.code] = definition

    def __contains__(self, code: object) -> bool:
        return code in self._definitions

    def __iter__(self) -> Iterator[ShiftDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def get(self, code: Optional[str]) -> Optional[ShiftDefinition]:
        if code is None:
            return None
        return self._definitions.get(code)

    def category(self, code: Optional[str]) -> Optional[ShiftCategory]:
        definition = self.get(code)
        return definition.category if definition else None

    def hours(self, code: Optional[str]) -> float:
        definition = self.get(code)
        return definition.hours if definition else 0.0

    def is_work(self, code: Optional[str]) -> bool:
        definition = self.get(code)
        return definition is not None and definition.is_work

    def is_rest(self, code: Optional[str]) -> bool:
        return self.category(code) == ShiftCategory.REST

    def codes_in(self, category: ShiftCategory) -> list[str]:
        """All codes of a category, in catalog order."""
        return [d.code for d in self._definitions.values() if d.category == category]

    def shortest(self, codes: Iterable[str]) -> Optional[str]:
        """Shortest shift among the given codes; first one wins ties."""
        known = [code for code in codes if code in self._definitions]
        if not known:
            return None
        return min(known, key=self.hours)

    def rest_hours_between(self, first: Optional[str], second: Optional[str]) -> Optional[float]:
        """Hours off between ``first`` and ``second`` worked on the following day.

        Returns None unless both codes are work shifts.
        """
        if not (self.is_work(first) and self.is_work(second)):
            return None
        earlier, later = self._definitions[first], self._definitions[second]
        return 24 + later.start_hour - (earlier.start_hour + earlier.duration_hours)


@dataclass(frozen=True)
class StaffMember:
    """A member of the roster.

    Attributes:
        name: Unique display name. Used to match leave records.
        email: Contact email.
        phone: Contact phone number.
    """

    name: str
    email: str = ""
    phone: str = ""


@dataclass(frozen=True)
class LeaveRecord:
    """An approved leave period for one staff member.

    Attributes:
        staff_name: Name of the staff member on leave.
        start_date: First day of leave (inclusive).
        end_date: Last day of leave (inclusive).
        code: Leave shift code written into the grid. None means the rule
            set's default leave code.
        status: Approval status. Only APPROVED records reach the engine.
    """

    staff_name: str
    start_date: date
    end_date: date
    code: Optional[str] = None
    status: LeaveStatus = LeaveStatus.APPROVED

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def overlaps_month(self, year: int, month: int) -> bool:
        month_key = (year, month)
        return (
            (self.start_date.year, self.start_date.month) <= month_key
            <= (self.end_date.year, self.end_date.month)
        )


@dataclass
class DayProfile:
    """Staffing requirements for one day of the month.

    Attributes:
        index: Zero-based day index within the month.
        date: Calendar date.
        day_kind: Classification of the day.
        holiday_name: Name of the holiday, if any.
        min_staff: Minimum number of staff working.
        target_staff: Desired number of staff working.
        max_staff: Maximum number of staff working.
        on_call_required: Whether exactly one on-call shift is expected.
    """

    index: int
    date: date
    day_kind: DayKind
    holiday_name: str = ""
    min_staff: int = 0
    target_staff: int = 0
    max_staff: int = 0
    on_call_required: bool = False

    @property
    def day_of_week(self) -> int:
        """Monday is 0 and Sunday is 6."""
        return self.date.weekday()

    @property
    def day_name(self) -> str:
        return self.date.strftime("%A")


@dataclass(frozen=True)
class Week:
    """A Monday to Sunday run of days, clipped to the month.

    Attributes:
        index: Zero-based week index within the month.
        day_indices: Day indices belonging to this week, ascending.
    """

    index: int
    day_indices: tuple[int, ...]

    def __contains__(self, day_index: object) -> bool:
        return day_index in self.day_indices

    @property
    def first_day(self) -> int:
        return self.day_indices[0]

    @property
    def last_day(self) -> int:
        return self.day_indices[-1]


@dataclass
class WeeklyStat:
    """Per-staff statistics for one week."""

    week_index: int
    target_hours: float = 0.0
    assigned_hours: float = 0.0
    assigned_rest: int = 0
    assigned_leave: int = 0

    @property
    def deviation(self) -> float:
        return self.assigned_hours - self.target_hours

    @property
    def ratio(self) -> float:
        """Share of the weekly target already assigned.

        A week without target counts as fully served.
        """
        if self.target_hours <= 0:
            return 1.0
        return self.assigned_hours / self.target_hours


@dataclass
class StaffProfile:
    """Targets and running statistics for one staff member.

    Targets are set once by the context builder. Everything else is
    re-derived from the grid by ``ScheduleState.refresh_staff``.

    Attributes:
        name: Staff member name.
        monthly_target_hours: Hours the member should work this month.
        monthly_target_rest_days: Rest days the member should receive.
        running_hours: Hours of work currently assigned.
        running_rest_days: Rest cells currently assigned.
        consecutive_work_streak: Longest run of consecutive work days.
        consecutive_rest_streak: Longest run of consecutive rest days.
        weekend_shift_count: Work shifts on weekend or holiday days.
        on_call_count: On-call shifts assigned.
        weekly_stats: One entry per week of the month.
    """

    name: str
    monthly_target_hours: float = 0.0
    monthly_target_rest_days: int = 0
    running_hours: float = 0.0
    running_rest_days: int = 0
    consecutive_work_streak: int = 0
    consecutive_rest_streak: int = 0
    weekend_shift_count: int = 0
    on_call_count: int = 0
    weekly_stats: list[WeeklyStat] = field(default_factory=list)

    @property
    def hours_deviation(self) -> float:
        return self.running_hours - self.monthly_target_hours


class ScheduleGrid:
    """Staff x day matrix of shift codes. None marks an unassigned cell."""

    def __init__(
        self,
        staff_count: int,
        day_count: int,
        cells: Optional[list[list[Optional[str]]]] = None,
    ):
        self.staff_count = staff_count
        self.day_count = day_count
        if cells is None:
            cells = [[None] * day_count for _ in range(staff_count)]
        self._cells = cells

    def get(self, staff_index: int, day_index: int) -> Optional[str]:
        return self._cells[staff_index][day_index]

    def set(self, staff_index: int, day_index: int, code: Optional[str]) -> None:
        self._cells[staff_index][day_index] = code

    def is_empty(self, staff_index: int, day_index: int) -> bool:
        return self._cells[staff_index][day_index] is None

    def row(self, staff_index: int) -> list[Optional[str]]:
        return list(self._cells[staff_index])

    def column(self, day_index: int) -> list[Optional[str]]:
        return [row[day_index] for row in self._cells]

    def empty_cells(self) -> list[tuple[int, int]]:
        """All unassigned cells, staff-major."""
        return [
            (s, d)
            for s in range(self.staff_count)
            for d in range(self.day_count)
            if self._cells[s][d] is None
        ]

    def is_saturated(self) -> bool:
        return not self.empty_cells()

    def copy(self) -> "ScheduleGrid":
        return ScheduleGrid(
            self.staff_count,
            self.day_count,
            [list(row) for row in self._cells],
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScheduleGrid):
            return NotImplemented
        return self._cells == other._cells


def run_length(flags: list[bool], index: int) -> int:
    """Length of the run of True values through ``index``.

    ``flags[index]`` is treated as True whatever its value, so the result is
    the run length the cell would belong to if it were set.
    """
    length = 1
    i = index - 1
    while i >= 0 and flags[i]:
        length += 1
        i -= 1
    i = index + 1
    while i < len(flags) and flags[i]:
        length += 1
        i += 1
    return length


def longest_run(flags: Iterable[bool]) -> int:
    best = current = 0
    for flag in flags:
        current = current + 1 if flag else 0
        best = max(best, current)
    return best


@dataclass
class ScheduleState:
    """The single mutable context of one scheduling run.

    Every stage receives the state explicitly and mutates it in place.
    Writes go through ``assign()`` so the affected staff profile is kept
    current; ``refresh()`` re-derives every profile from the grid.

    Attributes:
        year: Year being scheduled.
        month: Month being scheduled (1-12).
        rules: Rule configuration for the run.
        catalog: Shift definitions.
        staff: Roster in significant order.
        days: One profile per day of the month.
        weeks: Monday to Sunday weeks clipped to the month.
        grid: Staff x day assignment matrix.
        profiles: One profile per staff member, roster order.
        leave_records: Approved leave with resolved codes.
        locked: Cells written by the constraint stage (leave, paired rest,
            shutdown rest) that no later stage may change.
        under_filled_days: Days a stage could not bring up to minimum.
    """

    year: int
    month: int
    rules: "RuleSet"
    catalog: ShiftCatalog
    staff: list[StaffMember]
    days: list[DayProfile]
    weeks: list[Week]
    grid: ScheduleGrid
    profiles: list[StaffProfile]
    leave_records: list[LeaveRecord] = field(default_factory=list)
    locked: set[tuple[int, int]] = field(default_factory=set)
    under_filled_days: set[int] = field(default_factory=set)

    @property
    def staff_count(self) -> int:
        return len(self.staff)

    @property
    def day_count(self) -> int:
        return len(self.days)

    def staff_index(self, name: str) -> int:
        for index, member in enumerate(self.staff):
            if member.name == name:
                return index
        raise KeyError(f"Unknown staff member: {name}")

    def week_of(self, day_index: int) -> Week:
        for week in self.weeks:
            if day_index in week:
                return week
        raise IndexError(f"Day index {day_index} is outside the month")

    def weekly_stat(self, staff_index: int, day_index: int) -> WeeklyStat:
        """Statistics of the week containing ``day_index``."""
        week = self.week_of(day_index)
        return self.profiles[staff_index].weekly_stats[week.index]

    def code(self, staff_index: int, day_index: int) -> Optional[str]:
        return self.grid.get(staff_index, day_index)

    def category(self, staff_index: int, day_index: int) -> Optional[ShiftCategory]:
        return self.catalog.category(self.grid.get(staff_index, day_index))

    def is_work(self, staff_index: int, day_index: int, grid: Optional[ScheduleGrid] = None) -> bool:
        grid = grid or self.grid
        return self.catalog.is_work(grid.get(staff_index, day_index))

    def is_locked(self, staff_index: int, day_index: int) -> bool:
        return (staff_index, day_index) in self.locked

    def working_count(self, day_index: int, grid: Optional[ScheduleGrid] = None) -> int:
        grid = grid or self.grid
        return sum(1 for code in grid.column(day_index) if self.catalog.is_work(code))

    def work_run_if_assigned(self, staff_index: int, day_index: int) -> int:
        """Consecutive work run ``day_index`` would belong to if worked."""
        flags = [self.catalog.is_work(code) for code in self.grid.row(staff_index)]
        return run_length(flags, day_index)

    def rest_run_if_assigned(self, staff_index: int, day_index: int) -> int:
        """Consecutive rest run ``day_index`` would belong to if rested.

        Unassigned cells count as rest because they become rest on
        saturation.
        """
        flags = [
            code is None or self.catalog.is_rest(code)
            for code in self.grid.row(staff_index)
        ]
        return run_length(flags, day_index)

    def rest_gap_ok(self, staff_index: int, day_index: int, code: str) -> bool:
        """Whether ``code`` on ``day_index`` keeps the minimum rest to both neighbours."""
        minimum = self.rules.min_rest_hours_between_shifts
        if minimum <= 0:
            return True
        row = self.grid.row(staff_index)
        gaps = []
        if day_index > 0:
            gaps.append(self.catalog.rest_hours_between(row[day_index - 1], code))
        if day_index + 1 < self.day_count:
            gaps.append(self.catalog.rest_hours_between(code, row[day_index + 1]))
        return all(gap is None or gap >= minimum for gap in gaps)

    def assign(self, staff_index: int, day_index: int, code: Optional[str], lock: bool = False) -> None:
        """Write a cell and refresh the staff member's profile.

        Raises:
            ValueError: If the cell is locked and ``lock`` is not set.
        """
        if (staff_index, day_index) in self.locked and not lock:
            raise ValueError(
                f"Cell for {self.staff[staff_index].name} on "
                f"{self.days[day_index].date.isoformat()} is locked"
            )
        self.grid.set(staff_index, day_index, code)
        if lock:
            self.locked.add((staff_index, day_index))
        self.refresh_staff(staff_index)

    def refresh(self) -> None:
        """Re-derive every staff profile from the grid."""
        for staff_index in range(self.staff_count):
            self.refresh_staff(staff_index)

    def refresh_staff(self, staff_index: int) -> None:
        profile = self.profiles[staff_index]
        row = self.grid.row(staff_index)
        catalog = self.catalog

        work_flags = [catalog.is_work(code) for code in row]
        rest_flags = [catalog.is_rest(code) for code in row]

        profile.running_hours = sum(catalog.hours(code) for code in row)
        profile.running_rest_days = sum(rest_flags)
        profile.consecutive_work_streak = longest_run(work_flags)
        profile.consecutive_rest_streak = longest_run(rest_flags)
        profile.weekend_shift_count = sum(
            1 for day, worked in zip(self.days, work_flags)
            if worked and day.day_kind.is_weekend_like
        )
        profile.on_call_count = sum(
            1 for code in row if catalog.category(code) == ShiftCategory.ON_CALL
        )

        for week in self.weeks:
            stat = profile.weekly_stats[week.index]
            stat.assigned_hours = sum(catalog.hours(row[d]) for d in week.day_indices)
            stat.assigned_rest = sum(1 for d in week.day_indices if rest_flags[d])
            stat.assigned_leave = sum(
                1 for d in week.day_indices
                if catalog.category(row[d]) == ShiftCategory.LEAVE
            )

    def count_cells(self, staff_index: int, predicate: Callable[[Optional[str]], bool]) -> int:
        return sum(1 for code in self.grid.row(staff_index) if predicate(code))
