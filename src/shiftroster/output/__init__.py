"""Output generation for rosters (summaries, JSON, text, PDF)."""

from shiftroster.output.debug_generator import DebugGenerator
from shiftroster.output.pdf_generator import PDFGenerator
from shiftroster.output.sinks import (
    InMemoryOutputSink,
    JsonOutputSink,
    OutputSink,
    build_payload,
)
from shiftroster.output.summary import (
    DailySummary,
    MonthlySummary,
    RosterSummary,
    SummaryCalculator,
    WeeklySummary,
)

__all__ = [
    "DailySummary",
    "DebugGenerator",
    "InMemoryOutputSink",
    "JsonOutputSink",
    "MonthlySummary",
    "OutputSink",
    "PDFGenerator",
    "RosterSummary",
    "SummaryCalculator",
    "WeeklySummary",
    "build_payload",
]
