"""Tests for rest-day top-up and saturation."""

import logging

import pytest

from shiftroster.domain.models import DayKind
from shiftroster.scheduling.off_day_filler import OffDayFiller, saturate
from shiftroster.scheduling.weekday_allocator import WeekdayAllocator


@pytest.fixture
def filler():
    return OffDayFiller()


def rest_days(state, staff_index):
    return state.count_cells(staff_index, state.catalog.is_rest)


class TestOffDayFiller:
    """Tests for OffDayFiller."""

    def test_saturates_grid(self, make_state, filler):
        state = make_state(5, weekday_min_staff=2, weekend_min_staff=0)
        WeekdayAllocator().allocate(state)

        filler.fill(state)

        assert state.grid.is_saturated()
        assert all(state.code(s, 5) == "OFF" for s in range(5))
        assert all(rest_days(state, s) == 8 for s in range(5))
        assert state.profiles[0].running_hours == 176

    def test_top_up_respects_minimum_staffing(self, make_state, filler):
        """Ten rest days: two weekday shifts per person become rest."""
        state = make_state(5, weekday_min_staff=2, weekend_min_staff=0, monthly_rest_days=10)
        WeekdayAllocator().allocate(state)

        filler.fill(state)

        assert all(rest_days(state, s) == 10 for s in range(5))
        assert state.working_count(0) == 2
        assert state.working_count(1) == 2
        # Monday and Tuesday are down to the minimum, so the rest move on
        assert state.code(3, 2) == "OFF"
        assert state.code(3, 3) == "OFF"
        assert state.code(3, 0) == "D8"

    @pytest.mark.parametrize("max_rest,friday_code", [(2, "D8"), (3, "OFF")])
    def test_top_up_respects_rest_run_limit(self, make_state, filler, max_rest, friday_code):
        """Resting on a Friday joins the following weekend into one run."""
        state = make_state(
            1,
            weekday_min_staff=0,
            weekend_min_staff=0,
            monthly_rest_days=9,
            max_consecutive_rest_days=max_rest,
        )
        for day in state.days:
            if day.day_kind == DayKind.WEEKDAY:
                state.assign(0, day.index, "D8" if day.day_of_week == 4 else "OC")

        filler.fill(state)

        assert state.code(0, 4) == friday_code

    def test_shortfall_is_reported(self, make_state, filler, caplog):
        state = make_state(5, weekday_min_staff=5, weekend_min_staff=0, monthly_rest_days=10)
        WeekdayAllocator().allocate(state)

        with caplog.at_level(logging.WARNING, logger="shiftroster"):
            filler.fill(state)

        assert "Ana is 2 rest day(s) short of the target of 10" in caplog.text
        assert all(rest_days(state, s) == 8 for s in range(5))

    def test_locked_cells_are_kept(self, make_state, filler):
        state = make_state(1, weekday_min_staff=0, weekend_min_staff=0, monthly_rest_days=9)
        state.assign(0, 0, "D8", lock=True)
        for day in state.days[1:]:
            if day.day_kind == DayKind.WEEKDAY:
                state.assign(0, day.index, "OC")

        filler.fill(state)

        assert state.code(0, 0) == "D8"
        assert rest_days(state, 0) == 8


class TestSaturate:
    """Tests for the saturate helper."""

    def test_fills_every_empty_cell(self, make_state):
        state = make_state(2)
        state.assign(0, 0, "D8")

        written = saturate(state)

        assert written == 2 * 30 - 1
        assert state.code(0, 0) == "D8"
        assert state.code(1, 0) == "OFF"
        assert state.profiles[1].running_rest_days == 30

    def test_nothing_to_do(self, make_state, fill_standard):
        state = fill_standard(make_state(2))

        assert saturate(state) == 0
