"""Rule configuration for scheduling runs.

Rules arrive as a flat key/value table (numbers, booleans, strings and
comma-separated lists) and are parsed into an immutable ``RuleSet``. Every
key has a default. Staffing requirements per day are derived by a
``StaffingPolicy`` so they can be tested independently of the engine.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from shiftroster.domain.models import DayKind, ShiftCatalog, ShiftCategory
from shiftroster.exceptions import ConfigurationError

WEEKDAY_NAMES = [
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
]

ALL_STAFF = "ALL"

_TRUE_VALUES = {"true", "yes", "y", "1", "on"}
_FALSE_VALUES = {"false", "no", "n", "0", "off", ""}


@dataclass(frozen=True)
class RuleSet:
    """Typed rule configuration.

    Attributes:
        weekday_min_staff: Minimum staff working on a weekday.
        weekday_target_staff: Desired staff on a weekday (None = max).
        weekday_max_staff: Maximum staff on a weekday (None = roster size).
        monday_min_staff: Monday override of the weekday minimum.
        monday_requires_all: Monday needs everyone not on leave.
        monday_target_staff: Monday override of the weekday target.
        monday_target_all: Monday aims for everyone not on leave.
        weekend_min_staff: Minimum staff on weekend and holiday days.
        weekend_max_staff: Maximum staff on weekend and holiday days.
        max_weekly_hours: Hard ceiling of work hours per staff and week.
        max_consecutive_work_days: Longest allowed run of work days.
        max_consecutive_rest_days: Longest allowed run of rest days.
        weekly_target_hours: Contract hours of a full week.
        workdays_per_week: Workdays a full week is made of.
        monthly_rest_days: Fixed monthly rest-day target (None = derived).
        hours_tolerance: Allowed monthly deviation from the hour target.
        balancer_max_iterations: Iteration bound of the balancer.
        balancer_tolerance: Weekly spread below which balancing stops.
        weekday_shift_codes: Shifts the weekday allocator may assign.
        weekend_shift_code: Shift used on weekend and holiday days.
        rest_shift_code: Shift written for a rest day.
        leave_shift_code: Default shift written for approved leave.
        on_call_shift_code: On-call shift. None disables on-call.
        on_call_by_staff_count: Roster size to on-call codes (primary
            first, then an optional secondary). A roster size listed here
            overrides ``on_call_shift_code``.
        on_call_day_kinds: Day kinds that need an on-call shift.
        min_rest_hours_between_shifts: Least hours off between work shifts
            on consecutive days. Zero disables the check.
        enforce_paired_weekend_exclusivity: Nobody works two adjacent
            weekend or holiday days.
        paired_rest_enabled: Every staff member gets a rest pair.
        paired_rest_days: Weekday indices (Monday = 0) of the rest pair.
    """

    weekday_min_staff: int = 1
    weekday_target_staff: Optional[int] = None
    weekday_max_staff: Optional[int] = None
    monday_min_staff: Optional[int] = None
    monday_requires_all: bool = False
    monday_target_staff: Optional[int] = None
    monday_target_all: bool = False
    weekend_min_staff: int = 1
    weekend_max_staff: Optional[int] = None
    max_weekly_hours: float = 52.0
    max_consecutive_work_days: int = 6
    max_consecutive_rest_days: int = 3
    weekly_target_hours: float = 40.0
    workdays_per_week: int = 5
    monthly_rest_days: Optional[int] = None
    hours_tolerance: float = 4.0
    balancer_max_iterations: int = 100
    balancer_tolerance: float = 4.0
    weekday_shift_codes: tuple[str, ...] = ()
    weekend_shift_code: Optional[str] = None
    rest_shift_code: str = "OFF"
    leave_shift_code: str = "LV"
    on_call_shift_code: Optional[str] = None
    on_call_by_staff_count: tuple[tuple[int, tuple[str, ...]], ...] = ()
    on_call_day_kinds: frozenset[DayKind] = frozenset({DayKind.WEEKEND, DayKind.HOLIDAY})
    min_rest_hours_between_shifts: float = 0.0
    enforce_paired_weekend_exclusivity: bool = True
    paired_rest_enabled: bool = False
    paired_rest_days: tuple[int, int] = (4, 5)

    def on_call_codes(self, staff_count: int) -> tuple[str, ...]:
        """On-call codes each on-call day needs for a roster of this size.

        An empty tuple means on-call is disabled.
        """
        for count, codes in self.on_call_by_staff_count:
            if count == staff_count:
                return codes
        if self.on_call_shift_code is None:
            return ()
        return (self.on_call_shift_code,)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], catalog: ShiftCatalog) -> "RuleSet":
        """Parse a flat rule table and check it against the shift catalog.

        Args:
            raw: Rule keys to values. Unknown keys are ignored.
            catalog: Shift catalog the configured codes must exist in.

        Returns:
            Parsed rule set with catalog-derived defaults filled in.

        Raises:
            ConfigurationError: If a value cannot be parsed or a configured
                shift is missing or of the wrong category.
        """
        monday_min, monday_all = _parse_monday_staff(raw, "monday_min_staff")
        monday_target, monday_target_all = _parse_monday_staff(raw, "monday_target_staff")

        rest_code = _parse_str(raw, "rest_shift_code", "OFF")
        _require_shift(catalog, rest_code, ShiftCategory.REST, "rest_shift_code")

        weekday_codes = _parse_list(raw.get("weekday_shift_codes"))
        if not weekday_codes:
            weekday_codes = [
                code for code in catalog.codes_in(ShiftCategory.REGULAR)
                if catalog.is_work(code)
            ]
        if not weekday_codes:
            raise ConfigurationError(
                "No REGULAR shift with a positive duration is defined",
                resource="weekday_shift_codes",
            )
        for code in weekday_codes:
            _require_shift(catalog, code, ShiftCategory.REGULAR, "weekday_shift_codes")

        weekend_min = _parse_int(raw, "weekend_min_staff", 1)
        weekend_code = _parse_optional_str(raw, "weekend_shift_code")
        if weekend_code is None:
            weekend_codes = catalog.codes_in(ShiftCategory.WEEKEND)
            weekend_code = weekend_codes[0] if weekend_codes else None
        if weekend_code is not None:
            _require_shift(catalog, weekend_code, ShiftCategory.WEEKEND, "weekend_shift_code")
        elif weekend_min > 0:
            raise ConfigurationError(
                "Weekend staffing is required but no WEEKEND shift is defined",
                resource="weekend_shift_code",
            )

        on_call_code = _parse_optional_str(raw, "on_call_shift_code")
        if on_call_code is not None:
            _require_shift(catalog, on_call_code, ShiftCategory.ON_CALL, "on_call_shift_code")
        on_call_by_count = _parse_on_call_by_staff_count(raw, catalog)

        rules = cls(
            weekday_min_staff=_parse_int(raw, "weekday_min_staff", 1),
            weekday_target_staff=_parse_optional_int(raw, "weekday_target_staff"),
            weekday_max_staff=_parse_optional_int(raw, "weekday_max_staff"),
            monday_min_staff=monday_min,
            monday_requires_all=monday_all,
            monday_target_staff=monday_target,
            monday_target_all=monday_target_all,
            weekend_min_staff=weekend_min,
            weekend_max_staff=_parse_optional_int(raw, "weekend_max_staff"),
            max_weekly_hours=_parse_float(raw, "max_weekly_hours", 52.0),
            max_consecutive_work_days=_parse_int(raw, "max_consecutive_work_days", 6, minimum=1),
            max_consecutive_rest_days=_parse_int(raw, "max_consecutive_rest_days", 3, minimum=1),
            weekly_target_hours=_parse_float(raw, "weekly_target_hours", 40.0),
            workdays_per_week=_parse_int(raw, "workdays_per_week", 5, minimum=1),
            monthly_rest_days=_parse_optional_int(raw, "monthly_rest_days"),
            hours_tolerance=_parse_float(raw, "hours_tolerance", 4.0),
            balancer_max_iterations=_parse_int(raw, "balancer_max_iterations", 100),
            balancer_tolerance=_parse_float(raw, "balancer_tolerance", 4.0),
            weekday_shift_codes=tuple(weekday_codes),
            weekend_shift_code=weekend_code,
            rest_shift_code=rest_code,
            leave_shift_code=_parse_str(raw, "leave_shift_code", "LV"),
            on_call_shift_code=on_call_code,
            on_call_by_staff_count=on_call_by_count,
            on_call_day_kinds=_parse_day_kinds(raw.get("on_call_day_kinds")),
            min_rest_hours_between_shifts=_parse_float(raw, "min_rest_hours_between_shifts", 0.0),
            enforce_paired_weekend_exclusivity=_parse_bool(
                raw, "enforce_paired_weekend_exclusivity", True
            ),
            paired_rest_enabled=_parse_bool(raw, "paired_rest_enabled", False),
            paired_rest_days=_parse_paired_days(raw.get("paired_rest_days")),
        )
        return rules


class StaffingPolicy(ABC):
    """Abstract base class for per-day staffing requirements."""

    @abstractmethod
    def requirements(
        self,
        day_kind: DayKind,
        day_of_week: int,
        staff_count: int,
        on_leave: int,
    ) -> tuple[int, int, int]:
        """Get the staffing requirement of a day.

        Args:
            day_kind: Classification of the day.
            day_of_week: Monday is 0.
            staff_count: Size of the roster.
            on_leave: Staff on leave that day.

        Returns:
            Tuple of (min_staff, target_staff, max_staff).
        """
        pass


@dataclass
class DefaultStaffingPolicy(StaffingPolicy):
    """Staffing derived from a rule set.

    Shutdown days need nobody. Weekend and holiday days are staffed at their
    minimum. Weekdays aim for the configured target, which defaults to the
    maximum. Mondays may override the minimum and the target, with ``ALL``
    meaning every staff member not on leave.
    """

    rules: RuleSet

    def requirements(
        self,
        day_kind: DayKind,
        day_of_week: int,
        staff_count: int,
        on_leave: int,
    ) -> tuple[int, int, int]:
        rules = self.rules
        if day_kind == DayKind.SHUTDOWN:
            return 0, 0, 0

        if day_kind.is_weekend_like:
            max_staff = _or_default(rules.weekend_max_staff, staff_count)
            min_staff = rules.weekend_min_staff
            return min_staff, min_staff, max_staff

        max_staff = _or_default(rules.weekday_max_staff, staff_count)
        min_staff = rules.weekday_min_staff
        if day_of_week == 0:
            if rules.monday_requires_all:
                min_staff = max(staff_count - on_leave, 0)
            elif rules.monday_min_staff is not None:
                min_staff = rules.monday_min_staff
        target = _or_default(rules.weekday_target_staff, max_staff)
        if day_of_week == 0:
            if rules.monday_target_all:
                target = max(staff_count - on_leave, 0)
            elif rules.monday_target_staff is not None:
                target = rules.monday_target_staff
        target = min(max(target, min_staff), max_staff)
        return min_staff, target, max_staff


def _or_default(value: Optional[int], default: int) -> int:
    return default if value is None else value


def _require_shift(catalog: ShiftCatalog, code: str, category: ShiftCategory, key: str) -> None:
    definition = catalog.get(code)
    if definition is None:
        raise ConfigurationError(
            f"Shift '{code}' configured by {key} is not defined in the shift catalog",
            resource=code,
        )
    if definition.category != category:
        raise ConfigurationError(
            f"Shift '{code}' configured by {key} must be {category.name}, "
            f"not {definition.category.name}",
            resource=code,
        )


def _parse_int(raw: Mapping[str, Any], key: str, default: int, minimum: int = 0) -> int:
    value = _parse_optional_int(raw, key)
    if value is None:
        return default
    if value < minimum:
        raise ConfigurationError(f"Rule {key} must be at least {minimum}, got {value}", resource=key)
    return value


def _parse_optional_int(raw: Mapping[str, Any], key: str) -> Optional[int]:
    value = raw.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"Rule {key} must be a number, got {value!r}", resource=key)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Rule {key} must be a number, got {value!r}", resource=key)
    if number != int(number):
        raise ConfigurationError(f"Rule {key} must be a whole number, got {value!r}", resource=key)
    if number < 0:
        raise ConfigurationError(f"Rule {key} must not be negative, got {value!r}", resource=key)
    return int(number)


def _parse_float(raw: Mapping[str, Any], key: str, default: float) -> float:
    value = raw.get(key)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ConfigurationError(f"Rule {key} must be a number, got {value!r}", resource=key)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Rule {key} must be a number, got {value!r}", resource=key)
    if number < 0:
        raise ConfigurationError(f"Rule {key} must not be negative, got {value!r}", resource=key)
    return number


def _parse_bool(raw: Mapping[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Rule {key} must be a boolean, got {value!r}", resource=key)


def _parse_str(raw: Mapping[str, Any], key: str, default: str) -> str:
    value = _parse_optional_str(raw, key)
    return default if value is None else value


def _parse_optional_str(raw: Mapping[str, Any], key: str) -> Optional[str]:
    value = raw.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = [str(item) for item in value]
    return [item.strip() for item in items if item.strip()]


def _parse_monday_staff(raw: Mapping[str, Any], key: str) -> tuple[Optional[int], bool]:
    value = raw.get(key)
    if value is None or value == "":
        return None, False
    if isinstance(value, str) and value.strip().upper() == ALL_STAFF:
        return None, True
    return _parse_optional_int(raw, key), False


_ON_CALL_COUNT_KEY = re.compile(r"^on_?call_(\d+)_staff_(primary|secondary)$")


def _parse_on_call_by_staff_count(
    raw: Mapping[str, Any], catalog: ShiftCatalog
) -> tuple[tuple[int, tuple[str, ...]], ...]:
    """Collect ``on_call_<N>_staff_primary`` and ``..._secondary`` keys."""
    slots: dict[int, dict[str, str]] = {}
    for key in raw:
        match = _ON_CALL_COUNT_KEY.match(str(key).strip().lower())
        if not match:
            continue
        code = _parse_optional_str(raw, key)
        if code is None:
            continue
        _require_shift(catalog, code, ShiftCategory.ON_CALL, key)
        slots.setdefault(int(match.group(1)), {})[match.group(2)] = code

    parsed = []
    for count in sorted(slots):
        slot = slots[count]
        if "primary" not in slot:
            raise ConfigurationError(
                f"On-call for {count} staff has a secondary but no primary code",
                resource=f"on_call_{count}_staff_primary",
            )
        codes = [slot["primary"]]
        if slot.get("secondary") and slot["secondary"] != slot["primary"]:
            codes.append(slot["secondary"])
        parsed.append((count, tuple(codes)))
    return tuple(parsed)


def _parse_day_kinds(value: Any) -> frozenset[DayKind]:
    names = _parse_list(value)
    if not names:
        return frozenset({DayKind.WEEKEND, DayKind.HOLIDAY})
    kinds = set()
    for name in names:
        try:
            kinds.add(DayKind(name.lower()))
        except ValueError:
            raise ConfigurationError(
                f"Unknown day kind '{name}' in on_call_day_kinds",
                resource="on_call_day_kinds",
            )
    return frozenset(kinds)


def parse_weekday(name: str) -> int:
    """Map an English weekday name or three-letter abbreviation to 0-6."""
    text = name.strip().lower()
    for index, weekday in enumerate(WEEKDAY_NAMES):
        if text == weekday or (len(text) >= 3 and weekday.startswith(text)):
            return index
    raise ConfigurationError(f"Unknown weekday name '{name}'", resource="paired_rest_days")


def _parse_paired_days(value: Any) -> tuple[int, int]:
    names = _parse_list(value)
    if not names:
        return (4, 5)
    if len(names) != 2:
        raise ConfigurationError(
            f"paired_rest_days needs exactly two weekdays, got {len(names)}",
            resource="paired_rest_days",
        )
    first, second = (parse_weekday(name) for name in names)
    if second != (first + 1) % 7:
        raise ConfigurationError(
            f"paired_rest_days must be consecutive weekdays, got {', '.join(names)}",
            resource="paired_rest_days",
        )
    return first, second
