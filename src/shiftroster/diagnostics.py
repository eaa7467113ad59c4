"""Collection of leveled log messages emitted during a run.

Every engine module logs through ``logging.getLogger(__name__)`` beneath the
``shiftroster`` logger. A ``DiagnosticsCollector`` attached to that logger
keeps the messages of one run so they can be audited after the fact.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

ROOT_LOGGER = "shiftroster"


@dataclass(frozen=True)
class DiagnosticRecord:
    """A captured log message."""

    level: str
    logger: str
    message: str

    def __str__(self) -> str:
        return f"{self.level:<7} {self.logger}: {self.message}"


class DiagnosticsCollector(logging.Handler):
    """Logging handler that keeps records in memory."""

    def __init__(self, level: int = logging.INFO):
        super().__init__(level)
        self.records: list[DiagnosticRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(
            DiagnosticRecord(
                level=record.levelname,
                logger=record.name,
                message=record.getMessage(),
            )
        )

    def at_level(self, level: int) -> list[DiagnosticRecord]:
        """Records at or above a level."""
        name_to_level = logging.getLevelName
        return [r for r in self.records if name_to_level(r.level) >= level]

    @property
    def warnings(self) -> list[DiagnosticRecord]:
        return self.at_level(logging.WARNING)


@contextmanager
def capture_diagnostics(level: int = logging.INFO) -> Iterator[DiagnosticsCollector]:
    """Attach a collector to the package logger for the duration of a block.

    The package logger's level is lowered to ``level`` if needed and
    restored afterwards.
    """
    collector = DiagnosticsCollector(level)
    package_logger = logging.getLogger(ROOT_LOGGER)
    previous_level = package_logger.level
    if package_logger.getEffectiveLevel() > level:
        package_logger.setLevel(level)
    package_logger.addHandler(collector)
    try:
        yield collector
    finally:
        package_logger.removeHandler(collector)
        package_logger.setLevel(previous_level)
