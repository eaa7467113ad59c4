"""Construction of the schedule state for one run."""

import logging
from dataclasses import replace
from typing import Optional

from shiftroster.domain.calendar import CalendarDay, build_weeks, month_dates
from shiftroster.domain.models import (
    DayKind,
    DayProfile,
    LeaveRecord,
    ScheduleGrid,
    ScheduleState,
    ShiftCategory,
    StaffProfile,
    Week,
    WeeklyStat,
)
from shiftroster.domain.rules import DefaultStaffingPolicy, StaffingPolicy
from shiftroster.exceptions import ConfigurationError
from shiftroster.sources.configuration import RosterConfig

logger = logging.getLogger(__name__)


class ContextBuilder:
    """Builds a fresh ScheduleState from configuration, calendar and leave.

    The builder derives per-day staffing requirements, weeks and per-staff
    targets. It writes nothing into the grid.
    """

    def __init__(self, staffing_policy: Optional[StaffingPolicy] = None):
        self.staffing_policy = staffing_policy

    def build(
        self,
        year: int,
        month: int,
        config: RosterConfig,
        calendar_days: list[CalendarDay],
        leave_records: Optional[list[LeaveRecord]] = None,
    ) -> ScheduleState:
        """Build the state for a month.

        Args:
            year: Year to schedule.
            month: Month to schedule (1-12).
            config: Roster, shift catalog and rules.
            calendar_days: Classified days of the month.
            leave_records: Approved leave overlapping the month.

        Returns:
            State with day profiles, weeks and targets but an empty grid.

        Raises:
            ConfigurationError: On an empty roster, a calendar that does not
                match the month, or a leave code missing from the catalog.
        """
        if not config.staff:
            raise ConfigurationError("Staff roster is empty", resource="staff")

        rules = config.rules
        policy = self.staffing_policy or DefaultStaffingPolicy(rules)
        dates = month_dates(year, month)
        calendar_days = sorted(calendar_days, key=lambda d: d.date)
        if [d.date for d in calendar_days] != dates:
            raise ConfigurationError(
                f"Calendar for {year:04d}-{month:02d} has {len(calendar_days)} day(s), "
                f"expected {len(dates)}",
                resource="calendar",
            )

        names = [member.name for member in config.staff]
        records = self._resolve_leave(leave_records or [], names, config)

        # staff index -> day indices on leave
        leave_days: list[set[int]] = [set() for _ in names]
        for record in records:
            staff_index = names.index(record.staff_name)
            for day_index, day in enumerate(dates):
                if record.covers(day):
                    leave_days[staff_index].add(day_index)

        days = []
        for day_index, calendar_day in enumerate(calendar_days):
            on_leave = sum(1 for covered in leave_days if day_index in covered)
            min_staff, target_staff, max_staff = policy.requirements(
                calendar_day.day_kind,
                calendar_day.day_of_week,
                len(names),
                on_leave,
            )
            days.append(
                DayProfile(
                    index=day_index,
                    date=calendar_day.date,
                    day_kind=calendar_day.day_kind,
                    holiday_name=calendar_day.holiday_name,
                    min_staff=min_staff,
                    target_staff=target_staff,
                    max_staff=max_staff,
                    on_call_required=(
                        bool(rules.on_call_codes(len(names)))
                        and calendar_day.day_kind in rules.on_call_day_kinds
                    ),
                )
            )

        weeks = build_weeks(dates)
        profiles = [
            self._build_profile(name, leave_days[i], days, weeks, config)
            for i, name in enumerate(names)
        ]

        state = ScheduleState(
            year=year,
            month=month,
            rules=rules,
            catalog=config.catalog,
            staff=list(config.staff),
            days=days,
            weeks=weeks,
            grid=ScheduleGrid(len(names), len(days)),
            profiles=profiles,
            leave_records=records,
        )
        state.refresh()
        logger.info(
            "Built context for %04d-%02d: %d staff, %d days, %d weeks, %d leave record(s)",
            year,
            month,
            len(names),
            len(days),
            len(weeks),
            len(records),
        )
        return state

    def _resolve_leave(
        self,
        records: list[LeaveRecord],
        names: list[str],
        config: RosterConfig,
    ) -> list[LeaveRecord]:
        resolved = []
        for record in records:
            if record.staff_name not in names:
                logger.warning(
                    "Ignoring leave for unknown staff member '%s'", record.staff_name
                )
                continue
            code = record.code or config.rules.leave_shift_code
            definition = config.catalog.get(code)
            if definition is None or definition.category != ShiftCategory.LEAVE:
                raise ConfigurationError(
                    f"Leave code '{code}' for {record.staff_name} is not a LEAVE shift "
                    "in the shift catalog",
                    resource=code,
                )
            resolved.append(replace(record, code=code))
        return resolved

    def _build_profile(
        self,
        name: str,
        leave_days: set[int],
        days: list[DayProfile],
        weeks: list[Week],
        config: RosterConfig,
    ) -> StaffProfile:
        rules = config.rules
        weekly_stats = []
        for week in weeks:
            workdays = sum(
                1 for d in week.day_indices
                if days[d].day_kind == DayKind.WEEKDAY and d not in leave_days
            )
            weekly_stats.append(
                WeeklyStat(
                    week_index=week.index,
                    target_hours=rules.weekly_target_hours * workdays / rules.workdays_per_week,
                )
            )

        if rules.monthly_rest_days is not None:
            rest_target = rules.monthly_rest_days
        else:
            rest_target = sum(
                1 for day in days
                if day.day_kind != DayKind.WEEKDAY and day.index not in leave_days
            )

        return StaffProfile(
            name=name,
            monthly_target_hours=sum(stat.target_hours for stat in weekly_stats),
            monthly_target_rest_days=rest_target,
            weekly_stats=weekly_stats,
        )
