"""Configuration sources: roster, shift catalog and rules."""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Union

from shiftroster.domain.models import ShiftCatalog, ShiftCategory, ShiftDefinition, StaffMember
from shiftroster.domain.rules import RuleSet
from shiftroster.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class RosterConfig:
    """Everything a run needs besides the calendar and leave.

    Attributes:
        staff: Roster in significant order.
        catalog: Shift definitions.
        rules: Parsed rule configuration.
    """

    staff: list[StaffMember]
    catalog: ShiftCatalog
    rules: RuleSet


class ConfigurationSource(ABC):
    """Abstract base class for configuration providers."""

    @abstractmethod
    def load(self) -> RosterConfig:
        """Load and validate the roster configuration.

        Raises:
            ConfigurationError: If any required resource is missing.
        """
        pass


class MappingConfigurationSource(ConfigurationSource):
    """Configuration held in a plain mapping.

    Expected layout::

        {
            "staff": [{"name": "Ana", "email": "", "phone": ""}, ...],
            "shifts": [{"code": "D8", "category": "regular", "hours": 8}, ...],
            "rules": {"weekday_min_staff": 2, ...}
        }

    Staff entries may also be bare names. A shift may give its ``start``
    hour (default 9), which only matters for the minimum rest between shifts.
    """

    def __init__(self, data: Mapping[str, Any]):
        self.data = data

    def load(self) -> RosterConfig:
        staff = self._parse_staff(self.data.get("staff") or [])
        catalog = self._parse_catalog(self.data.get("shifts") or [])
        rules = RuleSet.from_mapping(self.data.get("rules") or {}, catalog)
        logger.info(
            "Loaded configuration: %d staff, %d shift codes",
            len(staff),
            len(catalog),
        )
        return RosterConfig(staff=staff, catalog=catalog, rules=rules)

    def _parse_staff(self, entries: list) -> list[StaffMember]:
        staff = []
        seen = set()
        for entry in entries:
            if isinstance(entry, str):
                member = StaffMember(name=entry.strip())
            else:
                member = StaffMember(
                    name=str(entry.get("name", "")).strip(),
                    email=str(entry.get("email", "") or ""),
                    phone=str(entry.get("phone", "") or ""),
                )
            if not member.name:
                continue
            if member.name in seen:
                raise ConfigurationError(
                    f"Staff member '{member.name}' is listed twice", resource=member.name
                )
            seen.add(member.name)
            staff.append(member)
        if not staff:
            raise ConfigurationError("Staff roster is empty", resource="staff")
        return staff

    def _parse_catalog(self, entries: list) -> ShiftCatalog:
        if not entries:
            raise ConfigurationError("No shift definitions configured", resource="shifts")
        definitions = []
        for entry in entries:
            code = str(entry.get("code", "")).strip()
            if not code:
                raise ConfigurationError("Shift definition without a code", resource="shifts")
            category_name = str(entry.get("category", "")).strip().lower()
            try:
                category = ShiftCategory(category_name)
            except ValueError:
                raise ConfigurationError(
                    f"Shift '{code}' has unknown category '{category_name}'", resource=code
                )
            try:
                hours = float(entry.get("hours", 0) or 0)
            except (TypeError, ValueError):
                raise ConfigurationError(
                    f"Shift '{code}' has invalid hours {entry.get('hours')!r}", resource=code
                )
            try:
                start = entry.get("start")
                start_hour = 9.0 if start is None else float(start)
            except (TypeError, ValueError):
                raise ConfigurationError(
                    f"Shift '{code}' has invalid start {start!r}", resource=code
                )
            if not 0 <= start_hour < 24:
                raise ConfigurationError(
                    f"Shift '{code}' must start between 0 and 24, got {start_hour:g}", resource=code
                )
            definitions.append(
                ShiftDefinition(
                    code=code,
                    category=category,
                    duration_hours=hours,
                    description=str(entry.get("description", "") or ""),
                    start_hour=start_hour,
                )
            )
        return ShiftCatalog(definitions)


class JsonConfigurationSource(ConfigurationSource):
    """Configuration read from a JSON file with the mapping layout."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> RosterConfig:
        if not self.path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {self.path}", resource=str(self.path)
            )
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError as exc:
            raise ConfigurationError(
                f"Configuration file {self.path} is not valid JSON: {exc}",
                resource=str(self.path),
            )
        return MappingConfigurationSource(data).load()
