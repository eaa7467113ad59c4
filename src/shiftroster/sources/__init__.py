"""Input sources for scheduling runs."""

from shiftroster.sources.calendar_source import CalendarSource, StaticCalendarSource
from shiftroster.sources.configuration import (
    ConfigurationSource,
    JsonConfigurationSource,
    MappingConfigurationSource,
    RosterConfig,
)
from shiftroster.sources.leave import (
    JsonLeaveSource,
    LeaveRequestSource,
    StaticLeaveSource,
)

__all__ = [
    "CalendarSource",
    "ConfigurationSource",
    "JsonConfigurationSource",
    "JsonLeaveSource",
    "LeaveRequestSource",
    "MappingConfigurationSource",
    "RosterConfig",
    "StaticCalendarSource",
    "StaticLeaveSource",
]
