"""Output sinks for finished rosters."""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from shiftroster.output.summary import SummaryCalculator

if TYPE_CHECKING:
    from shiftroster.scheduling.scheduler import RosterResult

logger = logging.getLogger(__name__)


def build_payload(result: "RosterResult") -> dict:
    """Serializable view of a run: assignments, summaries and violations."""
    state = result.state
    assignments = {
        member.name: {
            day.date.isoformat(): state.code(staff_index, day.index)
            for day in state.days
        }
        for staff_index, member in enumerate(state.staff)
    }
    violations = [str(error) for error in result.validation.errors] if result.validation else []
    return {
        "year": state.year,
        "month": state.month,
        "assignments": assignments,
        "summary": SummaryCalculator().calculate(state).to_dict(),
        "valid": result.is_valid,
        "violations": violations,
        "warnings": list(result.validation.warnings) if result.validation else [],
        "diagnostics": [str(record) for record in result.diagnostics],
    }


class OutputSink(ABC):
    """Abstract base class for roster consumers."""

    @abstractmethod
    def write(self, result: "RosterResult") -> None:
        pass


class InMemoryOutputSink(OutputSink):
    """Keeps the payload of every written result."""

    def __init__(self):
        self.payloads: list[dict] = []

    def write(self, result: "RosterResult") -> None:
        self.payloads.append(build_payload(result))

    @property
    def last(self) -> Optional[dict]:
        return self.payloads[-1] if self.payloads else None


class JsonOutputSink(OutputSink):
    """Writes the payload of a result to a JSON file."""

    def __init__(self, path: Union[str, Path], indent: int = 2):
        self.path = Path(path)
        self.indent = indent

    def write(self, result: "RosterResult") -> None:
        self.path.write_text(json.dumps(build_payload(result), indent=self.indent))
        logger.info("Roster written to %s", self.path)
