"""Tests for rule parsing and staffing policy."""

import pytest

from shiftroster.domain.models import DayKind, ShiftCatalog, ShiftCategory, ShiftDefinition
from shiftroster.domain.rules import DefaultStaffingPolicy, RuleSet, parse_weekday
from shiftroster.exceptions import ConfigurationError


def create_catalog(*codes):
    """Create a catalog from (code, category, hours) tuples."""
    return ShiftCatalog(ShiftDefinition(code, category, hours) for code, category, hours in codes)


@pytest.fixture
def catalog():
    return create_catalog(
        ("D8", ShiftCategory.REGULAR, 8),
        ("D4", ShiftCategory.REGULAR, 4),
        ("W8", ShiftCategory.WEEKEND, 8),
        ("OC", ShiftCategory.ON_CALL, 10),
        ("OFF", ShiftCategory.REST, 0),
        ("LV", ShiftCategory.LEAVE, 0),
    )


@pytest.fixture
def catalog_with_secondary(catalog):
    return ShiftCatalog(list(catalog) + [ShiftDefinition("OC2", ShiftCategory.ON_CALL, 6)])


class TestRuleSetParsing:
    """Tests for RuleSet.from_mapping."""

    def test_defaults(self, catalog):
        """Every key has a default; shift codes come from the catalog."""
        rules = RuleSet.from_mapping({}, catalog)

        assert rules.weekday_min_staff == 1
        assert rules.weekend_min_staff == 1
        assert rules.max_weekly_hours == 52
        assert rules.max_consecutive_work_days == 6
        assert rules.max_consecutive_rest_days == 3
        assert rules.balancer_max_iterations == 100
        assert rules.balancer_tolerance == 4
        assert rules.weekday_shift_codes == ("D8", "D4")
        assert rules.weekend_shift_code == "W8"
        assert rules.rest_shift_code == "OFF"
        assert rules.leave_shift_code == "LV"
        assert rules.on_call_shift_code is None
        assert rules.on_call_codes(5) == ()
        assert rules.min_rest_hours_between_shifts == 0
        assert rules.monday_target_staff is None
        assert rules.on_call_day_kinds == frozenset({DayKind.WEEKEND, DayKind.HOLIDAY})
        assert rules.enforce_paired_weekend_exclusivity is True
        assert rules.paired_rest_enabled is False
        assert rules.paired_rest_days == (4, 5)

    def test_string_values_are_parsed(self, catalog):
        """Values from flat key/value tables arrive as strings."""
        rules = RuleSet.from_mapping(
            {
                "weekday_min_staff": "3",
                "max_weekly_hours": "48.5",
                "paired_rest_enabled": "yes",
                "paired_rest_days": "Sun, Mon",
                "on_call_shift_code": "OC",
                "weekday_shift_codes": "D8",
                "on_call_day_kinds": "holiday",
                "enforce_paired_weekend_exclusivity": "false",
            },
            catalog,
        )

        assert rules.weekday_min_staff == 3
        assert rules.max_weekly_hours == 48.5
        assert rules.paired_rest_enabled is True
        assert rules.paired_rest_days == (6, 0)
        assert rules.on_call_shift_code == "OC"
        assert rules.weekday_shift_codes == ("D8",)
        assert rules.on_call_day_kinds == frozenset({DayKind.HOLIDAY})
        assert rules.enforce_paired_weekend_exclusivity is False

    def test_monday_all(self, catalog):
        rules = RuleSet.from_mapping({"monday_min_staff": "ALL"}, catalog)

        assert rules.monday_requires_all
        assert rules.monday_min_staff is None

    def test_monday_number(self, catalog):
        rules = RuleSet.from_mapping({"monday_min_staff": 4}, catalog)

        assert not rules.monday_requires_all
        assert rules.monday_min_staff == 4

    def test_monday_target(self, catalog):
        rules = RuleSet.from_mapping({"monday_min_staff": 2, "monday_target_staff": "ALL"}, catalog)

        assert rules.monday_min_staff == 2
        assert rules.monday_target_all
        assert rules.monday_target_staff is None

    def test_on_call_codes_by_roster_size(self, catalog_with_secondary):
        rules = RuleSet.from_mapping(
            {
                "on_call_shift_code": "OC",
                "on_call_6_staff_primary": "OC",
                "on_call_6_staff_secondary": "OC2",
                "oncall_3_staff_primary": "OC2",
            },
            catalog_with_secondary,
        )

        assert rules.on_call_codes(6) == ("OC", "OC2")
        assert rules.on_call_codes(3) == ("OC2",)
        assert rules.on_call_codes(5) == ("OC",)

    def test_on_call_secondary_needs_primary(self, catalog_with_secondary):
        with pytest.raises(ConfigurationError, match="no primary"):
            RuleSet.from_mapping({"on_call_4_staff_secondary": "OC2"}, catalog_with_secondary)

    def test_on_call_by_roster_size_must_be_on_call(self, catalog):
        with pytest.raises(ConfigurationError, match="must be ON_CALL"):
            RuleSet.from_mapping({"on_call_4_staff_primary": "D8"}, catalog)

    def test_min_rest_hours(self, catalog):
        rules = RuleSet.from_mapping({"min_rest_hours_between_shifts": "11"}, catalog)

        assert rules.min_rest_hours_between_shifts == 11

    def test_missing_rest_shift(self):
        catalog = create_catalog(
            ("D8", ShiftCategory.REGULAR, 8),
            ("W8", ShiftCategory.WEEKEND, 8),
        )

        with pytest.raises(ConfigurationError) as exc_info:
            RuleSet.from_mapping({}, catalog)

        assert exc_info.value.resource == "OFF"
        assert "OFF" in str(exc_info.value)

    def test_no_regular_shift(self):
        catalog = create_catalog(
            ("W8", ShiftCategory.WEEKEND, 8),
            ("OFF", ShiftCategory.REST, 0),
        )

        with pytest.raises(ConfigurationError, match="REGULAR"):
            RuleSet.from_mapping({}, catalog)

    def test_wrong_category(self, catalog):
        with pytest.raises(ConfigurationError, match="must be WEEKEND"):
            RuleSet.from_mapping({"weekend_shift_code": "D8"}, catalog)

    def test_unknown_on_call_shift(self, catalog):
        with pytest.raises(ConfigurationError) as exc_info:
            RuleSet.from_mapping({"on_call_shift_code": "NIGHT"}, catalog)

        assert exc_info.value.resource == "NIGHT"

    def test_missing_weekend_shift_when_required(self):
        catalog = create_catalog(
            ("D8", ShiftCategory.REGULAR, 8),
            ("OFF", ShiftCategory.REST, 0),
        )

        with pytest.raises(ConfigurationError, match="WEEKEND"):
            RuleSet.from_mapping({}, catalog)

    def test_missing_weekend_shift_allowed_without_weekend_staffing(self):
        catalog = create_catalog(
            ("D8", ShiftCategory.REGULAR, 8),
            ("OFF", ShiftCategory.REST, 0),
        )

        rules = RuleSet.from_mapping({"weekend_min_staff": 0}, catalog)

        assert rules.weekend_shift_code is None

    @pytest.mark.parametrize(
        "raw",
        [
            {"weekday_min_staff": "many"},
            {"weekday_min_staff": -1},
            {"weekday_min_staff": 1.5},
            {"max_weekly_hours": "lots"},
            {"paired_rest_enabled": "perhaps"},
            {"paired_rest_days": "Friday,Funday"},
            {"paired_rest_days": "Monday,Wednesday"},
            {"paired_rest_days": "Friday"},
            {"on_call_day_kinds": "weekend,someday"},
            {"max_consecutive_work_days": 0},
        ],
    )
    def test_invalid_values(self, catalog, raw):
        with pytest.raises(ConfigurationError):
            RuleSet.from_mapping(raw, catalog)


class TestParseWeekday:
    """Tests for weekday name parsing."""

    @pytest.mark.parametrize(
        "name,expected",
        [("Monday", 0), ("fri", 4), ("SATURDAY", 5), (" sun ", 6)],
    )
    def test_names(self, name, expected):
        assert parse_weekday(name) == expected

    def test_too_short(self):
        with pytest.raises(ConfigurationError):
            parse_weekday("s")


class TestDefaultStaffingPolicy:
    """Tests for per-day staffing requirements."""

    def test_weekday_defaults_to_roster_size(self, catalog):
        policy = DefaultStaffingPolicy(RuleSet.from_mapping({"weekday_min_staff": 2}, catalog))

        assert policy.requirements(DayKind.WEEKDAY, 2, 5, 0) == (2, 5, 5)

    def test_weekend_staffed_at_minimum(self, catalog):
        policy = DefaultStaffingPolicy(RuleSet.from_mapping({"weekend_min_staff": 2}, catalog))

        assert policy.requirements(DayKind.WEEKEND, 5, 5, 0) == (2, 2, 5)
        assert policy.requirements(DayKind.HOLIDAY, 1, 5, 0) == (2, 2, 5)

    def test_shutdown_needs_nobody(self, catalog):
        policy = DefaultStaffingPolicy(RuleSet.from_mapping({}, catalog))

        assert policy.requirements(DayKind.SHUTDOWN, 0, 5, 0) == (0, 0, 0)

    def test_monday_all_excludes_leave(self, catalog):
        policy = DefaultStaffingPolicy(RuleSet.from_mapping({"monday_min_staff": "ALL"}, catalog))

        assert policy.requirements(DayKind.WEEKDAY, 0, 5, 1) == (4, 5, 5)
        # Tuesday keeps the weekday minimum
        assert policy.requirements(DayKind.WEEKDAY, 1, 5, 1)[0] == 1

    def test_monday_target_is_separate_from_minimum(self, catalog):
        rules = RuleSet.from_mapping(
            {"weekday_min_staff": 2, "weekday_target_staff": 3, "monday_target_staff": "ALL"},
            catalog,
        )
        policy = DefaultStaffingPolicy(rules)

        assert policy.requirements(DayKind.WEEKDAY, 0, 6, 1) == (2, 5, 6)
        assert policy.requirements(DayKind.WEEKDAY, 1, 6, 1) == (2, 3, 6)

    def test_monday_target_number(self, catalog):
        rules = RuleSet.from_mapping(
            {"weekday_min_staff": 2, "weekday_target_staff": 3, "monday_target_staff": 4},
            catalog,
        )

        assert DefaultStaffingPolicy(rules).requirements(DayKind.WEEKDAY, 0, 6, 0) == (2, 4, 6)

    def test_target_clamped_between_min_and_max(self, catalog):
        rules = RuleSet.from_mapping(
            {"weekday_min_staff": 3, "weekday_target_staff": 1, "weekday_max_staff": 4},
            catalog,
        )
        policy = DefaultStaffingPolicy(rules)

        assert policy.requirements(DayKind.WEEKDAY, 3, 6, 0) == (3, 3, 4)
