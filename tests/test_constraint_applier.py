"""Tests for leave, shutdown and paired rest pre-assignment."""

import logging
from datetime import date

import pytest

from shiftroster.domain.models import LeaveRecord
from shiftroster.scheduling.constraint_applier import ConstraintApplier


@pytest.fixture
def applier():
    return ConstraintApplier()


class TestLeave:
    """Tests for leave stamping."""

    def test_leave_is_stamped_and_locked(self, make_state, applier):
        state = make_state(5, leave=[LeaveRecord("Ana", date(2024, 4, 10), date(2024, 4, 12))])

        applier.apply(state)

        assert [state.code(0, d) for d in (8, 9, 10, 11, 12)] == [None, "LV", "LV", "LV", None]
        assert {(0, 9), (0, 10), (0, 11)} <= state.locked
        assert state.profiles[0].weekly_stats[1].assigned_leave == 3

    def test_leave_uses_record_code(self, make_state, applier):
        state = make_state(
            5, leave=[LeaveRecord("Ben", date(2024, 4, 1), date(2024, 4, 1), code="SL")]
        )

        applier.apply(state)

        assert state.code(1, 0) == "SL"

    def test_leave_spanning_months_is_clipped(self, make_state, applier):
        state = make_state(5, leave=[LeaveRecord("Ana", date(2024, 3, 28), date(2024, 4, 2))])

        applier.apply(state)

        assert state.code(0, 0) == "LV"
        assert state.code(0, 1) == "LV"
        assert state.code(0, 2) is None

    def test_locked_cell_rejects_later_writes(self, make_state, applier):
        state = make_state(5, leave=[LeaveRecord("Ana", date(2024, 4, 10), date(2024, 4, 10))])
        applier.apply(state)

        with pytest.raises(ValueError, match="locked"):
            state.assign(0, 9, "D8")


class TestShutdown:
    """Tests for shutdown rest."""

    def test_shutdown_day_is_rest_for_everyone(self, make_state, applier):
        state = make_state(
            3,
            shutdown=[date(2024, 4, 15)],
            leave=[LeaveRecord("Cleo", date(2024, 4, 15), date(2024, 4, 16))],
        )

        applier.apply(state)

        assert state.grid.column(14) == ["OFF", "OFF", "LV"]
        assert all(state.is_locked(s, 14) for s in range(3))


class TestPairedRest:
    """Tests for the paired rest block."""

    def test_pairs_respect_remaining_staffing(self, make_state, applier):
        """Friday needs two others available, so the fourth pair moves a week."""
        state = make_state(
            5, paired_rest_enabled=True, weekday_min_staff=2, weekend_min_staff=1
        )

        applier.apply(state)

        for s in (0, 1, 2):
            assert state.code(s, 4) == "OFF"
            assert state.code(s, 5) == "OFF"
        for s in (3, 4):
            assert state.code(s, 4) is None
            assert state.code(s, 11) == "OFF"
            assert state.code(s, 12) == "OFF"
        assert state.is_locked(3, 11)
        assert state.is_locked(3, 12)

    def test_leave_pushes_pair_to_next_week(self, make_state, applier):
        state = make_state(
            5,
            leave=[LeaveRecord("Ana", date(2024, 4, 5), date(2024, 4, 5))],
            paired_rest_enabled=True,
            weekday_min_staff=1,
        )

        applier.apply(state)

        assert state.code(0, 4) == "LV"
        assert state.code(0, 11) == "OFF"
        assert state.code(0, 12) == "OFF"

    def test_custom_rest_days(self, make_state, applier):
        state = make_state(
            2, paired_rest_enabled=True, paired_rest_days="Sunday,Monday", weekday_min_staff=1
        )

        applier.apply(state)

        # April 2024 starts on a Monday; the first Sunday-Monday pair is the 7th and 8th
        assert state.code(0, 6) == "OFF"
        assert state.code(0, 7) == "OFF"

    def test_infeasible_pair_warns(self, make_state, applier, caplog):
        state = make_state(2, paired_rest_enabled=True, weekday_min_staff=2)

        with caplog.at_level(logging.WARNING, logger="shiftroster"):
            applier.apply(state)

        assert state.grid.is_saturated() is False
        assert state.locked == set()
        assert "No feasible paired rest block for Ana" in caplog.text
        assert "No feasible paired rest block for Ben" in caplog.text

    def test_disabled_by_default(self, make_state, applier):
        state = make_state(5)

        applier.apply(state)

        assert state.locked == set()
