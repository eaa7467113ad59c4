"""Calendar sources: classified days for a month."""

import json
import logging
from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

from shiftroster.domain.calendar import CalendarDay, classify_month
from shiftroster.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CalendarSource(ABC):
    """Abstract base class for calendar providers."""

    @abstractmethod
    def get_month(self, year: int, month: int) -> list[CalendarDay]:
        """Get every day of a month, classified."""
        pass


class StaticCalendarSource(CalendarSource):
    """Calendar built from supplied holiday and shutdown data.

    Classified months are cached, so repeated runs for the same month see
    the same calendar.
    """

    def __init__(
        self,
        holidays: Optional[Mapping[date, str]] = None,
        shutdown_dates: Optional[Iterable[date]] = None,
    ):
        self.holidays = dict(holidays or {})
        self.shutdown_dates = set(shutdown_dates or ())
        self._cache: dict[tuple[int, int], list[CalendarDay]] = {}

    def get_month(self, year: int, month: int) -> list[CalendarDay]:
        key = (year, month)
        if key not in self._cache:
            self._cache[key] = classify_month(
                year, month, self.holidays, self.shutdown_dates
            )
            logger.debug("Classified calendar for %04d-%02d", year, month)
        return list(self._cache[key])

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "StaticCalendarSource":
        """Load holidays from a JSON file.

        Layout: ``{"holidays": {"2024-05-06": "Bank holiday"},
        "shutdown": ["2024-12-24"]}``.
        """
        path = Path(path)
        try:
            data = json.loads(path.read_text())
        except FileNotFoundError:
            raise ConfigurationError(f"Holiday file not found: {path}", resource=str(path))
        except json.JSONDecodeError as exc:
            raise ConfigurationError(
                f"Holiday file {path} is not valid JSON: {exc}", resource=str(path)
            )
        holidays = {
            _parse_date(key, path): str(name)
            for key, name in (data.get("holidays") or {}).items()
        }
        shutdown = [_parse_date(value, path) for value in data.get("shutdown") or []]
        return cls(holidays=holidays, shutdown_dates=shutdown)


def _parse_date(value: str, path: Path) -> date:
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ConfigurationError(f"Invalid date {value!r} in {path}", resource=str(path))
