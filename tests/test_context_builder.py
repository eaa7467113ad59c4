"""Tests for building the schedule state of a run."""

import logging
from dataclasses import replace
from datetime import date

import pytest

from shiftroster.domain.calendar import classify_month
from shiftroster.domain.models import DayKind, LeaveRecord
from shiftroster.exceptions import ConfigurationError
from shiftroster.scheduling.context_builder import ContextBuilder


class TestDayProfiles:
    """Tests for per-day staffing requirements."""

    def test_weekday_and_weekend_requirements(self, make_state):
        state = make_state(5, weekday_min_staff=2, weekend_min_staff=1)

        monday = state.days[0]
        saturday = state.days[5]
        assert (monday.min_staff, monday.target_staff, monday.max_staff) == (2, 5, 5)
        assert (saturday.min_staff, saturday.target_staff, saturday.max_staff) == (1, 1, 5)
        assert monday.day_name == "Monday"

    def test_on_call_required_only_when_configured(self, make_state):
        without = make_state(5)
        with_on_call = make_state(5, on_call_shift_code="OC")

        assert not any(day.on_call_required for day in without.days)
        required = [day.index for day in with_on_call.days if day.on_call_required]
        assert required == [5, 6, 12, 13, 19, 20, 26, 27]

    def test_holiday_on_weekday_needs_on_call(self, make_state):
        state = make_state(
            5, holidays={date(2024, 4, 1): "Easter Monday"}, on_call_shift_code="OC"
        )

        assert state.days[0].day_kind == DayKind.HOLIDAY
        assert state.days[0].on_call_required
        assert state.days[0].min_staff == 1

    def test_monday_all_counts_leave(self, make_state):
        leave = [LeaveRecord("Ben", date(2024, 4, 8), date(2024, 4, 8))]

        state = make_state(5, leave=leave, monday_min_staff="ALL")

        assert state.days[0].min_staff == 5
        assert state.days[7].min_staff == 4


class TestTargets:
    """Tests for weekly and monthly targets."""

    def test_full_month_targets(self, make_state):
        state = make_state(5)
        profile = state.profiles[0]

        assert [stat.target_hours for stat in profile.weekly_stats] == [40, 40, 40, 40, 16]
        assert profile.monthly_target_hours == 176
        assert profile.monthly_target_rest_days == 8

    def test_weekday_leave_reduces_hours_target(self, make_state):
        leave = [LeaveRecord("Ana", date(2024, 4, 10), date(2024, 4, 12))]

        state = make_state(5, leave=leave)
        profile = state.profiles[0]

        assert profile.weekly_stats[1].target_hours == 16
        assert profile.monthly_target_hours == 152
        assert profile.monthly_target_rest_days == 8
        assert state.profiles[1].monthly_target_hours == 176

    def test_weekend_leave_reduces_rest_target(self, make_state):
        leave = [LeaveRecord("Ana", date(2024, 4, 13), date(2024, 4, 13))]

        state = make_state(5, leave=leave)

        assert state.profiles[0].monthly_target_rest_days == 7
        assert state.profiles[0].monthly_target_hours == 176

    def test_fixed_monthly_rest_days(self, make_state):
        state = make_state(5, monthly_rest_days=10)

        assert all(profile.monthly_target_rest_days == 10 for profile in state.profiles)

    def test_profiles_start_empty(self, make_state):
        state = make_state(5)

        assert state.grid.empty_cells() == [
            (s, d) for s in range(5) for d in range(30)
        ]
        assert all(profile.running_hours == 0 for profile in state.profiles)


class TestLeaveResolution:
    """Tests for leave record handling."""

    def test_default_leave_code(self, make_state):
        state = make_state(5, leave=[LeaveRecord("Ana", date(2024, 4, 10), date(2024, 4, 10))])

        assert state.leave_records[0].code == "LV"

    def test_explicit_leave_code(self, make_state):
        state = make_state(
            5, leave=[LeaveRecord("Ana", date(2024, 4, 10), date(2024, 4, 10), code="SL")]
        )

        assert state.leave_records[0].code == "SL"

    def test_unknown_staff_is_ignored(self, make_state, caplog):
        leave = [LeaveRecord("Zed", date(2024, 4, 10), date(2024, 4, 10))]

        with caplog.at_level(logging.WARNING, logger="shiftroster"):
            state = make_state(5, leave=leave)

        assert state.leave_records == []
        assert "Zed" in caplog.text

    def test_leave_code_must_be_leave(self, make_state):
        leave = [LeaveRecord("Ana", date(2024, 4, 10), date(2024, 4, 10), code="D8")]

        with pytest.raises(ConfigurationError) as exc_info:
            make_state(5, leave=leave)

        assert exc_info.value.resource == "D8"

    def test_missing_leave_code(self, make_state):
        leave = [LeaveRecord("Ana", date(2024, 4, 10), date(2024, 4, 10), code="XMAS")]

        with pytest.raises(ConfigurationError, match="XMAS"):
            make_state(5, leave=leave)


class TestBuildErrors:
    """Tests for configuration that cannot support a run."""

    def test_empty_roster(self, make_config):
        config = replace(make_config(5), staff=[])

        with pytest.raises(ConfigurationError, match="roster is empty"):
            ContextBuilder().build(2024, 4, config, classify_month(2024, 4))

    def test_calendar_for_wrong_month(self, make_config):
        with pytest.raises(ConfigurationError, match="expected 30"):
            ContextBuilder().build(2024, 4, make_config(5), classify_month(2024, 5))
