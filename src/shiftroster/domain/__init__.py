"""Domain models and business rules for roster scheduling."""

from shiftroster.domain.calendar import (
    CalendarDay,
    build_weeks,
    classify_month,
    month_dates,
)
from shiftroster.domain.models import (
    DayKind,
    DayProfile,
    LeaveRecord,
    LeaveStatus,
    ScheduleGrid,
    ScheduleState,
    ShiftCatalog,
    ShiftCategory,
    ShiftDefinition,
    StaffMember,
    StaffProfile,
    Week,
    WeeklyStat,
)
from shiftroster.domain.rules import (
    DefaultStaffingPolicy,
    RuleSet,
    StaffingPolicy,
)

__all__ = [
    # Models
    "DayKind",
    "DayProfile",
    "LeaveRecord",
    "LeaveStatus",
    "ScheduleGrid",
    "ScheduleState",
    "ShiftCatalog",
    "ShiftCategory",
    "ShiftDefinition",
    "StaffMember",
    "StaffProfile",
    "Week",
    "WeeklyStat",
    # Calendar
    "CalendarDay",
    "build_weeks",
    "classify_month",
    "month_dates",
    # Rules
    "DefaultStaffingPolicy",
    "RuleSet",
    "StaffingPolicy",
]
