"""Structured analysis report assembly.

Output schema of ``AnalysisReport.to_dict``:
{
    "generatedAt": str,            # ISO 8601, UTC
    "diffBase": str,
    "coverage": {
        "overall": {"totalChangedLines": int, "coveredChangedLines": int, "coverageRate": int},
        "files": [{"file": str, "changedLines": [int], "uncoveredLines": [int],
                   "coverageRate": int}, ...],
        "changedFiles": [str],
        "timestamp": str
    },
    "impact": {...} | null,        # see ImpactResult.to_dict
    "gate": {"passed": bool, "gates": [...]},
    "baseline": {"coverageRate": int | null, "delta": int | null}
}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from changecov.coverage.differ import IncrementalCoverageResult
from changecov.graph.models import ImpactResult
from changecov.quality.gate import GateVerdict


@dataclass(frozen=True, slots=True)
class AnalysisReport:
    coverage: IncrementalCoverageResult
    impact: ImpactResult | None
    verdict: GateVerdict
    diff_base: str
    baseline_rate: int | None = None
    generated_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    @property
    def coverage_rate(self) -> int:
        return self.coverage.overall.coverage_rate

    def summary(self) -> dict[str, Any]:
        """Compact numbers for HTTP responses and status lines."""
        return {
            "rate": self.coverage.overall.coverage_rate,
            "coveredLines": self.coverage.overall.covered_changed_lines,
            "totalLines": self.coverage.overall.total_changed_lines,
            "fileCount": len(self.coverage.files),
            "impactLevel": self.impact.impact_level.value if self.impact else None,
            "passed": self.verdict.passed,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "generatedAt": self.generated_at,
            "diffBase": self.diff_base,
            "coverage": self.coverage.to_dict(),
            "impact": self.impact.to_dict() if self.impact else None,
            "gate": self.verdict.to_dict(),
            "baseline": {
                "coverageRate": self.baseline_rate,
                "delta": (
                    self.coverage_rate - self.baseline_rate
                    if self.baseline_rate is not None
                    else None
                ),
            },
        }


class ReportAssembler:
    """Combines the coverage, impact and gate results into one report."""

    def assemble(
        self,
        coverage: IncrementalCoverageResult,
        impact: ImpactResult | None,
        verdict: GateVerdict,
        *,
        diff_base: str,
        baseline_rate: int | None = None,
    ) -> AnalysisReport:
        return AnalysisReport(
            coverage=coverage,
            impact=impact,
            verdict=verdict,
            diff_base=diff_base,
            baseline_rate=baseline_rate,
        )


def build_text_summary(report: AnalysisReport, max_files: int = 20) -> str:
    """Plain-text digest for terminals and CI logs."""
    overall = report.coverage.overall
    lines = [
        f"Incremental coverage vs {report.diff_base}: {overall.coverage_rate}% "
        f"({overall.covered_changed_lines}/{overall.total_changed_lines} changed lines)",
    ]
    if report.baseline_rate is not None:
        lines.append(f"Baseline: {report.baseline_rate}%")

    worst = sorted(report.coverage.files, key=lambda f: (f.coverage_rate, f.file))
    for entry in worst[:max_files]:
        lines.append(f"  {entry.coverage_rate:3d}%  {entry.file}")
        if entry.uncovered_lines:
            lines.append(f"        uncovered: {_compact_ranges(entry.uncovered_lines)}")
    if len(worst) > max_files:
        lines.append(f"  ... and {len(worst) - max_files} more files")

    if report.impact is not None:
        lines.append(
            f"Impact: {report.impact.impact_level.value} "
            f"({len(report.impact.affected_pages)} pages, "
            f"{len(report.impact.affected_components)} components)"
        )
        lines.extend(f"  - {s}" for s in report.impact.regression_suggestions)

    for gate in report.verdict.gates:
        lines.append(f"[{'PASS' if gate.passed else 'FAIL'}] {gate.message}")
    return "\n".join(lines)


def _compact_ranges(lines: list[int]) -> str:
    """[1, 2, 3, 7] -> "1-3, 7"."""
    parts: list[str] = []
    start = prev = lines[0]
    for n in lines[1:]:
        if n == prev + 1:
            prev = n
            continue
        parts.append(f"{start}-{prev}" if start != prev else str(start))
        start = prev = n
    parts.append(f"{start}-{prev}" if start != prev else str(start))
    return ", ".join(parts)
