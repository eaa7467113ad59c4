"""Shared fixtures for roster tests.

Most tests run on April 2024, which starts on a Monday and has 30 days:
weeks are day indices 0-6, 7-13, 14-20, 21-27 and 28-29, and weekend days
are indices 5, 6, 12, 13, 19, 20, 26 and 27.
"""

import pytest

from shiftroster.domain.calendar import classify_month
from shiftroster.domain.models import DayKind
from shiftroster.scheduling.context_builder import ContextBuilder
from shiftroster.sources.configuration import MappingConfigurationSource

STAFF_NAMES = ["Ana", "Ben", "Cleo", "Dev", "Eli", "Fay", "Gus", "Hana"]

STANDARD_SHIFTS = [
    {"code": "D8", "category": "regular", "hours": 8, "description": "Day"},
    {"code": "D4", "category": "regular", "hours": 4, "description": "Half day"},
    {"code": "W8", "category": "weekend", "hours": 8, "description": "Weekend"},
    {"code": "OC", "category": "on_call", "hours": 10, "description": "On-call"},
    {"code": "OFF", "category": "rest"},
    {"code": "LV", "category": "leave"},
    {"code": "SL", "category": "leave", "description": "Sick leave"},
]


@pytest.fixture
def make_config_data():
    """Factory for raw configuration mappings."""

    def _make(staff_count=5, **rules):
        return {
            "staff": [{"name": name} for name in STAFF_NAMES[:staff_count]],
            "shifts": [dict(shift) for shift in STANDARD_SHIFTS],
            "rules": rules,
        }

    return _make


@pytest.fixture
def make_config(make_config_data):
    """Factory for loaded RosterConfig objects."""

    def _make(staff_count=5, **rules):
        return MappingConfigurationSource(make_config_data(staff_count, **rules)).load()

    return _make


@pytest.fixture
def make_state(make_config):
    """Factory for fresh schedule states with an empty grid."""

    def _make(staff_count=5, leave=(), holidays=None, shutdown=None, year=2024, month=4, **rules):
        config = make_config(staff_count, **rules)
        days = classify_month(year, month, holidays, shutdown)
        return ContextBuilder().build(year, month, config, days, list(leave))

    return _make


@pytest.fixture
def fill_standard():
    """Fill every empty cell: weekdays with a work shift, other days with rest."""

    def _fill(state, weekday_code="D8", other_code="OFF"):
        for s in range(state.staff_count):
            for day in state.days:
                if state.grid.get(s, day.index) is not None:
                    continue
                code = weekday_code if day.day_kind == DayKind.WEEKDAY else other_code
                state.assign(s, day.index, code)
        return state

    return _fill
