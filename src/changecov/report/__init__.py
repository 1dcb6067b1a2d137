"""Report assembly and persistence."""

from changecov.report.assembler import AnalysisReport, ReportAssembler, build_text_summary
from changecov.report.writer import ReportWriter

__all__ = [
    "AnalysisReport",
    "ReportAssembler",
    "ReportWriter",
    "build_text_summary",
]
