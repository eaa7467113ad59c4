"""Validation module for verifying roster correctness.

This module is the single source of truth for every hard and soft rule of
a finished roster. It re-derives all statistics from the grid itself and
never trusts the running counters kept during generation.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from shiftroster.domain.models import ScheduleState, ShiftCategory
from shiftroster.exceptions import ScheduleValidationError


class ValidationErrorType(Enum):
    """Types of validation errors."""

    UNASSIGNED_CELL = "unassigned_cell"
    UNDERSTAFFED = "understaffed"
    OVERSTAFFED = "overstaffed"
    WEEKLY_HOURS_EXCEEDED = "weekly_hours_exceeded"
    CONSECUTIVE_WORK_EXCEEDED = "consecutive_work_exceeded"
    CONSECUTIVE_REST_EXCEEDED = "consecutive_rest_exceeded"
    MISSING_PAIRED_REST = "missing_paired_rest"
    REST_DAYS_SHORT = "rest_days_short"
    MONTHLY_HOURS_DEVIATION = "monthly_hours_deviation"
    ON_CALL_UNCOVERED = "on_call_uncovered"
    BACK_TO_BACK_ON_CALL = "back_to_back_on_call"
    LEAVE_OVERWRITTEN = "leave_overwritten"
    INSUFFICIENT_REST = "insufficient_rest"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    staff_name: Optional[str] = None
    day: Optional[date] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.staff_name:
            parts.append(f"{self.staff_name}:")
        parts.append(self.message)
        if self.day is not None:
            parts.append(f"({self.day.isoformat()})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating a roster.

    Warnings report soft goals that were missed, such as an uneven weekend
    or on-call load. They never affect validity.
    """

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    def errors_of(self, error_type: ValidationErrorType) -> list[ValidationError]:
        return [e for e in self.errors if e.error_type == error_type]

    def errors_for(self, staff_name: str) -> list[ValidationError]:
        return [e for e in self.errors if e.staff_name == staff_name]

    def raise_for_errors(self) -> None:
        """Raise ScheduleValidationError if any error was recorded."""
        if self.errors:
            raise ScheduleValidationError(self.errors)


class RosterValidator:
    """Validates a finished roster against all rules.

    Every check runs; errors are aggregated rather than failing fast.

    Example:
        >>> validator = RosterValidator()
        >>> result = validator.validate(state)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def validate(self, state: ScheduleState) -> ValidationResult:
        """Validate the roster held by a schedule state.

        Args:
            state: State whose grid is checked.

        Returns:
            ValidationResult with is_valid flag and any errors.
        """
        result = ValidationResult(is_valid=True)

        self._check_saturation(state, result)
        self._check_staffing(state, result)
        self._check_leave(state, result)
        for staff_index in range(state.staff_count):
            self._check_weekly_hours(state, staff_index, result)
            self._check_streaks(state, staff_index, result)
            self._check_rest_and_hours(state, staff_index, result)
            self._check_paired_rest(state, staff_index, result)
            self._check_rest_between_shifts(state, staff_index, result)
        self._check_on_call(state, result)
        self._check_fairness(state, result)

        return result

    def _check_saturation(self, state: ScheduleState, result: ValidationResult) -> None:
        for staff_index, day_index in state.grid.empty_cells():
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.UNASSIGNED_CELL,
                    message="Cell has no assignment",
                    staff_name=state.staff[staff_index].name,
                    day=state.days[day_index].date,
                )
            )

    def _check_staffing(self, state: ScheduleState, result: ValidationResult) -> None:
        for day in state.days:
            working = state.working_count(day.index)
            if working < day.min_staff:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.UNDERSTAFFED,
                        message=f"{working} staff working, minimum is {day.min_staff}",
                        day=day.date,
                        details={
                            "working": working,
                            "min_staff": day.min_staff,
                            "logged_under_fill": day.index in state.under_filled_days,
                        },
                    )
                )
            elif working > day.max_staff:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.OVERSTAFFED,
                        message=f"{working} staff working, maximum is {day.max_staff}",
                        day=day.date,
                        details={"working": working, "max_staff": day.max_staff},
                    )
                )

    def _check_leave(self, state: ScheduleState, result: ValidationResult) -> None:
        for record in state.leave_records:
            staff_index = state.staff_index(record.staff_name)
            for day in state.days:
                if not record.covers(day.date):
                    continue
                actual = state.code(staff_index, day.index)
                if actual != record.code:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.LEAVE_OVERWRITTEN,
                            message=f"Approved leave {record.code} replaced by {actual}",
                            staff_name=record.staff_name,
                            day=day.date,
                        )
                    )

    def _check_weekly_hours(self, state: ScheduleState, staff_index: int, result: ValidationResult) -> None:
        max_hours = state.rules.max_weekly_hours
        row = state.grid.row(staff_index)
        for week in state.weeks:
            hours = sum(state.catalog.hours(row[d]) for d in week.day_indices)
            if hours > max_hours:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.WEEKLY_HOURS_EXCEEDED,
                        message=f"Week {week.index + 1}: {hours:g} h exceeds maximum of {max_hours:g} h",
                        staff_name=state.staff[staff_index].name,
                        day=state.days[week.first_day].date,
                        details={"week_index": week.index, "hours": hours},
                    )
                )

    def _check_streaks(self, state: ScheduleState, staff_index: int, result: ValidationResult) -> None:
        rules = state.rules
        row = state.grid.row(staff_index)
        checks = (
            (
                [state.catalog.is_work(code) for code in row],
                rules.max_consecutive_work_days,
                ValidationErrorType.CONSECUTIVE_WORK_EXCEEDED,
                "work",
            ),
            (
                [state.catalog.is_rest(code) for code in row],
                rules.max_consecutive_rest_days,
                ValidationErrorType.CONSECUTIVE_REST_EXCEEDED,
                "rest",
            ),
        )
        for flags, limit, error_type, label in checks:
            for start, length in _runs(flags):
                if length > limit:
                    result.add_error(
                        ValidationError(
                            error_type=error_type,
                            message=f"{length} consecutive {label} days, maximum is {limit}",
                            staff_name=state.staff[staff_index].name,
                            day=state.days[start].date,
                            details={"length": length},
                        )
                    )

    def _check_rest_and_hours(self, state: ScheduleState, staff_index: int, result: ValidationResult) -> None:
        profile = state.profiles[staff_index]
        row = state.grid.row(staff_index)
        name = state.staff[staff_index].name

        rest_days = sum(1 for code in row if state.catalog.is_rest(code))
        if rest_days < profile.monthly_target_rest_days:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.REST_DAYS_SHORT,
                    message=(
                        f"{rest_days} rest day(s), target is "
                        f"{profile.monthly_target_rest_days}"
                    ),
                    staff_name=name,
                    details={"rest_days": rest_days},
                )
            )

        hours = sum(state.catalog.hours(code) for code in row)
        deviation = hours - profile.monthly_target_hours
        if abs(deviation) > state.rules.hours_tolerance:
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.MONTHLY_HOURS_DEVIATION,
                    message=(
                        f"{hours:g} h assigned, target is {profile.monthly_target_hours:g} h "
                        f"({deviation:+g} h)"
                    ),
                    staff_name=name,
                    details={"hours": hours, "deviation": deviation},
                )
            )

    def _check_paired_rest(self, state: ScheduleState, staff_index: int, result: ValidationResult) -> None:
        rules = state.rules
        if not rules.paired_rest_enabled:
            return
        anchor, second = rules.paired_rest_days
        leave_free_pair = False
        for day in state.days[:-1]:
            following = state.days[day.index + 1]
            if day.day_of_week != anchor or following.day_of_week != second:
                continue
            if not any(
                state.category(staff_index, d) == ShiftCategory.LEAVE
                for d in (day.index, following.index)
            ):
                leave_free_pair = True
            if state.catalog.is_rest(state.code(staff_index, day.index)) and state.catalog.is_rest(
                state.code(staff_index, following.index)
            ):
                return
        if not leave_free_pair:
            return
        result.add_error(
            ValidationError(
                error_type=ValidationErrorType.MISSING_PAIRED_REST,
                message="No paired rest block this month",
                staff_name=state.staff[staff_index].name,
            )
        )

    def _check_rest_between_shifts(
        self, state: ScheduleState, staff_index: int, result: ValidationResult
    ) -> None:
        minimum = state.rules.min_rest_hours_between_shifts
        if minimum <= 0:
            return
        row = state.grid.row(staff_index)
        for d in range(state.day_count - 1):
            rest = state.catalog.rest_hours_between(row[d], row[d + 1])
            if rest is not None and rest < minimum:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.INSUFFICIENT_REST,
                        message=(
                            f"{rest:g} h rest between {row[d]} and {row[d + 1]}, "
                            f"minimum is {minimum:g} h"
                        ),
                        staff_name=state.staff[staff_index].name,
                        day=state.days[d].date,
                        details={"rest_hours": rest},
                    )
                )

    def _check_on_call(self, state: ScheduleState, result: ValidationResult) -> None:
        codes = state.rules.on_call_codes(state.staff_count)
        if not codes:
            return
        on_call = [
            [state.category(s, d) == ShiftCategory.ON_CALL for d in range(state.day_count)]
            for s in range(state.staff_count)
        ]
        for day in state.days:
            if not day.on_call_required:
                continue
            column = state.grid.column(day.index)
            for code in codes:
                if code not in column:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.ON_CALL_UNCOVERED,
                            message=f"No {code} on-call shift assigned",
                            day=day.date,
                            details={"code": code},
                        )
                    )
        for staff_index, row in enumerate(on_call):
            for d in range(state.day_count - 1):
                if row[d] and row[d + 1]:
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.BACK_TO_BACK_ON_CALL,
                            message="On-call on two consecutive days",
                            staff_name=state.staff[staff_index].name,
                            day=state.days[d].date,
                        )
                    )

    def _check_fairness(self, state: ScheduleState, result: ValidationResult) -> None:
        """Warn when weekend or on-call load differs by more than one shift."""
        members = [
            s for s, profile in enumerate(state.profiles)
            if profile.monthly_target_hours > 0
        ]
        if len(members) < 2:
            return
        catalog = state.catalog
        loads = {"weekend": {}, "on-call": {}}
        for s in members:
            row = state.grid.row(s)
            loads["weekend"][s] = sum(
                1 for day in state.days
                if day.day_kind.is_weekend_like and catalog.is_work(row[day.index])
            )
            loads["on-call"][s] = sum(
                1 for code in row if catalog.category(code) == ShiftCategory.ON_CALL
            )
        for label, counts in loads.items():
            low, high = min(counts.values()), max(counts.values())
            if high - low > 1:
                busiest = state.staff[max(counts, key=counts.get)].name
                result.add_warning(
                    f"Uneven {label} load: {low} to {high} shift(s) per member, most for {busiest}"
                )


def _runs(flags: list[bool]) -> list[tuple[int, int]]:
    """(start, length) of every run of True values."""
    runs = []
    start = None
    for index, flag in enumerate(flags + [False]):
        if flag and start is None:
            start = index
        elif not flag and start is not None:
            runs.append((start, index - start))
            start = None
    return runs
