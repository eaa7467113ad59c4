"""Main scheduler interface.

This module provides the high-level RosterScheduler that runs the fixed
generation pipeline:

    context -> constraints -> weekend -> weekday -> on-call -> rest days
    -> balancing -> validation

On-call runs after the weekday stage so it can upgrade working shifts on
any day kind. Every stage mutates one ScheduleState in place. A run can
stop after any stage to inspect an intermediate grid.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from shiftroster.diagnostics import DiagnosticRecord, capture_diagnostics
from shiftroster.domain.calendar import CalendarDay
from shiftroster.domain.models import LeaveRecord, ScheduleState
from shiftroster.output.debug_generator import DebugGenerator
from shiftroster.scheduling.balancer import Balancer, BalancerReport
from shiftroster.scheduling.constraint_applier import ConstraintApplier
from shiftroster.scheduling.context_builder import ContextBuilder
from shiftroster.scheduling.off_day_filler import OffDayFiller
from shiftroster.scheduling.on_call_allocator import OnCallAllocator
from shiftroster.scheduling.weekday_allocator import WeekdayAllocator
from shiftroster.scheduling.weekend_allocator import WeekendAllocator
from shiftroster.sources.calendar_source import CalendarSource
from shiftroster.sources.configuration import ConfigurationSource, RosterConfig
from shiftroster.sources.leave import LeaveRequestSource
from shiftroster.validation.validator import RosterValidator, ValidationResult

logger = logging.getLogger(__name__)


class Stage(Enum):
    """Pipeline stages after context building, in execution order."""

    CONSTRAINTS = "constraints"
    WEEKEND = "weekend"
    WEEKDAY = "weekday"
    ON_CALL = "on_call"
    OFF_DAYS = "off_days"
    BALANCE = "balance"
    VALIDATE = "validate"


@dataclass
class RosterResult:
    """Outcome of a scheduling run.

    Attributes:
        state: Final (or intermediate, for staged runs) schedule state.
        completed_stages: Stages that ran, in order.
        balancer_report: Balancing outcome, if the stage ran.
        validation: Validation result, if the stage ran.
        diagnostics: Log messages emitted during the run.
    """

    state: ScheduleState
    completed_stages: list[Stage] = field(default_factory=list)
    balancer_report: Optional[BalancerReport] = None
    validation: Optional[ValidationResult] = None
    diagnostics: list[DiagnosticRecord] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.validation is not None and self.validation.is_valid

    def assignments(self) -> dict[str, dict[date, Optional[str]]]:
        """Grid as staff name -> date -> shift code."""
        return {
            member.name: {
                day.date: self.state.code(staff_index, day.index)
                for day in self.state.days
            }
            for staff_index, member in enumerate(self.state.staff)
        }


class RosterScheduler:
    """High-level scheduler for generating monthly rosters.

    Example:
        >>> scheduler = RosterScheduler()
        >>> result = scheduler.generate(
        ...     2024, 4,
        ...     JsonConfigurationSource("roster.json"),
        ...     StaticCalendarSource(),
        ... )
        >>> result.is_valid
    """

    def __init__(
        self,
        context_builder: Optional[ContextBuilder] = None,
        constraint_applier: Optional[ConstraintApplier] = None,
        weekend_allocator: Optional[WeekendAllocator] = None,
        weekday_allocator: Optional[WeekdayAllocator] = None,
        on_call_allocator: Optional[OnCallAllocator] = None,
        off_day_filler: Optional[OffDayFiller] = None,
        balancer: Optional[Balancer] = None,
        validator: Optional[RosterValidator] = None,
    ):
        self.context_builder = context_builder or ContextBuilder()
        self.constraint_applier = constraint_applier or ConstraintApplier()
        self.weekend_allocator = weekend_allocator or WeekendAllocator()
        self.weekday_allocator = weekday_allocator or WeekdayAllocator()
        self.on_call_allocator = on_call_allocator or OnCallAllocator()
        self.off_day_filler = off_day_filler or OffDayFiller()
        self.balancer = balancer or Balancer()
        self.validator = validator or RosterValidator()
        self.debug_generator = DebugGenerator()

    def generate(
        self,
        year: int,
        month: int,
        config_source: ConfigurationSource,
        calendar_source: CalendarSource,
        leave_source: Optional[LeaveRequestSource] = None,
        stop_after: Optional[Stage] = None,
    ) -> RosterResult:
        """Load inputs from sources and run the pipeline.

        Raises:
            ConfigurationError: If the inputs cannot support a run.
        """
        config = config_source.load()
        calendar_days = calendar_source.get_month(year, month)
        leave = leave_source.get_approved(year, month) if leave_source else []
        return self.run(year, month, config, calendar_days, leave, stop_after=stop_after)

    def run(
        self,
        year: int,
        month: int,
        config: RosterConfig,
        calendar_days: list[CalendarDay],
        leave_records: Optional[list[LeaveRecord]] = None,
        stop_after: Optional[Stage] = None,
    ) -> RosterResult:
        """Run the pipeline on already loaded inputs.

        Args:
            year: Year to schedule.
            month: Month to schedule (1-12).
            config: Roster, shift catalog and rules.
            calendar_days: Classified days of the month.
            leave_records: Approved leave overlapping the month.
            stop_after: Last stage to run. None runs everything.

        Returns:
            RosterResult with the state and whatever the stages produced.

        Raises:
            ConfigurationError: If the inputs cannot support a run.
        """
        with capture_diagnostics() as collector:
            logger.info("Generating roster for %04d-%02d", year, month)
            state = self.context_builder.build(year, month, config, calendar_days, leave_records)
            result = RosterResult(state=state)

            steps = [
                (Stage.CONSTRAINTS, lambda: self.constraint_applier.apply(state)),
                (Stage.WEEKEND, lambda: self.weekend_allocator.allocate(state)),
                (Stage.WEEKDAY, lambda: self.weekday_allocator.allocate(state)),
                (Stage.ON_CALL, lambda: self.on_call_allocator.allocate(state)),
                (Stage.OFF_DAYS, lambda: self.off_day_filler.fill(state)),
                (Stage.BALANCE, lambda: self._balance(state, result)),
                (Stage.VALIDATE, lambda: self._validate(state, result)),
            ]
            for stage, step in steps:
                step()
                result.completed_stages.append(stage)
                if stage in (Stage.CONSTRAINTS, Stage.OFF_DAYS):
                    self._log_snapshot(state, stage)
                if stage == stop_after:
                    logger.info("Stopping after stage %s", stage.value)
                    break

        result.diagnostics = list(collector.records)
        return result

    def _balance(self, state: ScheduleState, result: RosterResult) -> None:
        result.balancer_report = self.balancer.balance(state)

    def _validate(self, state: ScheduleState, result: RosterResult) -> None:
        result.validation = self.validator.validate(state)
        if result.validation.is_valid:
            logger.info("Roster is valid")
        else:
            logger.info("Roster has %d violation(s)", len(result.validation.errors))

    def _log_snapshot(self, state: ScheduleState, stage: Stage) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "State after %s:\n%s",
                stage.value,
                self.debug_generator.generate_to_string(state),
            )
