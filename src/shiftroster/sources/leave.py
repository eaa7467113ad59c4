"""Leave request sources."""

import json
import logging
from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import Iterable, Union

from shiftroster.domain.models import LeaveRecord, LeaveStatus
from shiftroster.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class LeaveRequestSource(ABC):
    """Abstract base class for leave providers."""

    @abstractmethod
    def get_approved(self, year: int, month: int) -> list[LeaveRecord]:
        """Get approved leave overlapping a month."""
        pass


class StaticLeaveSource(LeaveRequestSource):
    """Leave held in memory. Non-approved records are filtered out."""

    def __init__(self, records: Iterable[LeaveRecord] = ()):
        self.records = list(records)

    def get_approved(self, year: int, month: int) -> list[LeaveRecord]:
        approved = [
            record for record in self.records
            if record.status == LeaveStatus.APPROVED and record.overlaps_month(year, month)
        ]
        skipped = sum(1 for r in self.records if r.status != LeaveStatus.APPROVED)
        if skipped:
            logger.info("Ignoring %d leave request(s) that are not approved", skipped)
        return approved


class JsonLeaveSource(StaticLeaveSource):
    """Leave read from a JSON list.

    Each entry: ``{"staff": "Ana", "start": "2024-04-10", "end": "2024-04-12",
    "code": "LV", "status": "approved"}``. ``end``, ``code`` and ``status``
    are optional.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        super().__init__(self._read())

    def _read(self) -> list[LeaveRecord]:
        try:
            entries = json.loads(self.path.read_text())
        except FileNotFoundError:
            raise ConfigurationError(
                f"Leave file not found: {self.path}", resource=str(self.path)
            )
        except json.JSONDecodeError as exc:
            raise ConfigurationError(
                f"Leave file {self.path} is not valid JSON: {exc}", resource=str(self.path)
            )
        if not isinstance(entries, list):
            raise ConfigurationError(
                f"Leave file {self.path} must hold a list of entries", resource=str(self.path)
            )

        records = []
        for entry in entries:
            try:
                start = date.fromisoformat(entry["start"])
                end = date.fromisoformat(entry.get("end") or entry["start"])
                status = LeaveStatus(str(entry.get("status", "approved")).lower())
                records.append(
                    LeaveRecord(
                        staff_name=str(entry["staff"]).strip(),
                        start_date=start,
                        end_date=end,
                        code=entry.get("code") or None,
                        status=status,
                    )
                )
            except (KeyError, ValueError, TypeError, AttributeError) as exc:
                raise ConfigurationError(
                    f"Invalid leave entry {entry!r} in {self.path}: {exc}",
                    resource=str(self.path),
                )
        return records
