"""Calendar classification for a scheduling month.

Each day of the month is classified as a shutdown, holiday, weekend or
weekday, in that order of precedence. Weeks run Monday to Sunday and are
clipped to the month.
"""

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional

from shiftroster.domain.models import DayKind, Week


@dataclass(frozen=True)
class CalendarDay:
    """A classified calendar day.

    Attributes:
        date: The calendar date.
        day_kind: Classification of the day.
        holiday_name: Holiday or closure label, empty otherwise.
    """

    date: date
    day_kind: DayKind
    holiday_name: str = ""

    @property
    def day_of_week(self) -> int:
        return self.date.weekday()


def month_dates(year: int, month: int) -> list[date]:
    """All dates of a month in order."""
    _, days_in_month = calendar.monthrange(year, month)
    return [date(year, month, day) for day in range(1, days_in_month + 1)]


def classify_month(
    year: int,
    month: int,
    holidays: Optional[Mapping[date, str]] = None,
    shutdown_dates: Optional[Iterable[date]] = None,
) -> list[CalendarDay]:
    """Classify every day of a month.

    Args:
        year: Year to classify.
        month: Month to classify (1-12).
        holidays: Holiday dates mapped to their names.
        shutdown_dates: Dates the facility is closed.

    Returns:
        One CalendarDay per day of the month.
    """
    holidays = holidays or {}
    shutdown = set(shutdown_dates or ())

    days = []
    for day in month_dates(year, month):
        if day in shutdown:
            days.append(CalendarDay(day, DayKind.SHUTDOWN, holidays.get(day, "Shutdown")))
        elif day in holidays:
            days.append(CalendarDay(day, DayKind.HOLIDAY, holidays[day]))
        elif day.weekday() >= 5:
            days.append(CalendarDay(day, DayKind.WEEKEND))
        else:
            days.append(CalendarDay(day, DayKind.WEEKDAY))
    return days


def build_weeks(dates: list[date]) -> list[Week]:
    """Group consecutive dates into Monday to Sunday weeks."""
    weeks: list[Week] = []
    current: list[int] = []
    for index, day in enumerate(dates):
        if current and day.weekday() == 0:
            weeks.append(Week(len(weeks), tuple(current)))
            current = []
        current.append(index)
    if current:
        weeks.append(Week(len(weeks), tuple(current)))
    return weeks
