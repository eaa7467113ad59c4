"""Scheduling engine for generating monthly rosters."""

from shiftroster.scheduling.balancer import (
    Balancer,
    BalancerMove,
    BalancerReport,
    MoveKind,
    WeekSpread,
    find_worst_week,
)
from shiftroster.scheduling.constraint_applier import ConstraintApplier
from shiftroster.scheduling.context_builder import ContextBuilder
from shiftroster.scheduling.off_day_filler import OffDayFiller
from shiftroster.scheduling.on_call_allocator import OnCallAllocator
from shiftroster.scheduling.safety import SafetyPredicate, collect_breaches
from shiftroster.scheduling.scheduler import RosterResult, RosterScheduler, Stage
from shiftroster.scheduling.weekday_allocator import WeekdayAllocator
from shiftroster.scheduling.weekend_allocator import WeekendAllocator

__all__ = [
    # Pipeline
    "RosterScheduler",
    "RosterResult",
    "Stage",
    # Stages
    "ContextBuilder",
    "ConstraintApplier",
    "WeekendAllocator",
    "OnCallAllocator",
    "WeekdayAllocator",
    "OffDayFiller",
    "Balancer",
    # Balancing support
    "BalancerMove",
    "BalancerReport",
    "MoveKind",
    "WeekSpread",
    "find_worst_week",
    "SafetyPredicate",
    "collect_breaches",
]
