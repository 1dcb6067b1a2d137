"""Tests for report assembly and text summaries."""

from changecov.coverage.differ import (
    FileIncrementalCoverage,
    IncrementalCoverageResult,
    OverallCoverage,
)
from changecov.graph.models import ImpactLevel, ImpactResult
from changecov.quality.gate import GateThresholds, QualityGateEvaluator
from changecov.report.assembler import ReportAssembler, _compact_ranges, build_text_summary


def _coverage() -> IncrementalCoverageResult:
    return IncrementalCoverageResult(
        overall=OverallCoverage(total_changed_lines=6, covered_changed_lines=3, coverage_rate=50),
        files=[
            FileIncrementalCoverage("/r/src/a.ts", [1, 2], [], 100),
            FileIncrementalCoverage("/r/src/b.ts", [3, 4, 5, 9], [3, 4, 9], 25),
        ],
        changed_files=["/r/src/a.ts", "/r/src/b.ts"],
        timestamp="2024-01-01T00:00:00+00:00",
    )


def _impact() -> ImpactResult:
    return ImpactResult(
        affected_pages=["/r/src/pages/Home.vue"],
        affected_components=[],
        impact_level=ImpactLevel.LOW,
        propagation_paths=[["/r/src/b.ts", "/r/src/pages/Home.vue"]],
        regression_suggestions=["Prioritize testing pages: src/pages/Home.vue"],
        regression_command="npx jest src/pages/Home.vue",
    )


class TestReportAssembler:
    def test_assemble_combines_results(self) -> None:
        verdict = QualityGateEvaluator().evaluate(50, 1, GateThresholds(min_coverage_rate=80))

        report = ReportAssembler().assemble(
            _coverage(), _impact(), verdict, diff_base="main", baseline_rate=40
        )
        data = report.to_dict()

        assert data["diffBase"] == "main"
        assert data["coverage"]["overall"]["coverageRate"] == 50
        assert data["impact"]["impactLevel"] == "low"
        assert data["impact"]["regressionTestCommand"] == "npx jest src/pages/Home.vue"
        assert data["gate"]["passed"] is False
        assert data["baseline"] == {"coverageRate": 40, "delta": 10}
        assert "generatedAt" in data

    def test_report_without_impact_or_baseline(self) -> None:
        verdict = QualityGateEvaluator().evaluate(50, 0, GateThresholds(min_coverage_rate=None))

        report = ReportAssembler().assemble(_coverage(), None, verdict, diff_base="develop")

        assert report.to_dict()["impact"] is None
        assert report.to_dict()["baseline"] == {"coverageRate": None, "delta": None}
        assert report.summary() == {
            "rate": 50,
            "coveredLines": 3,
            "totalLines": 6,
            "fileCount": 2,
            "impactLevel": None,
            "passed": True,
        }


class TestTextSummary:
    def test_worst_files_first_with_ranges(self) -> None:
        verdict = QualityGateEvaluator().evaluate(50, 1, GateThresholds(min_coverage_rate=80))
        report = ReportAssembler().assemble(_coverage(), _impact(), verdict, diff_base="main")

        text = build_text_summary(report)

        lines = text.splitlines()
        assert lines[0] == "Incremental coverage vs main: 50% (3/6 changed lines)"
        assert lines[1] == "   25%  /r/src/b.ts"
        assert lines[2] == "        uncovered: 3-4, 9"
        assert lines[3] == "  100%  /r/src/a.ts"
        assert "Impact: low (1 pages, 0 components)" in lines
        assert lines[-1] == "[FAIL] Incremental coverage 50% is below 80%"

    def test_file_list_is_truncated(self) -> None:
        files = [FileIncrementalCoverage(f"/r/f{i}.ts", [1], [], 100) for i in range(3)]
        coverage = IncrementalCoverageResult(
            overall=OverallCoverage(3, 3, 100), files=files, changed_files=[]
        )
        verdict = QualityGateEvaluator().evaluate(100, 0, GateThresholds())
        report = ReportAssembler().assemble(coverage, None, verdict, diff_base="main")

        text = build_text_summary(report, max_files=2)

        assert "  ... and 1 more files" in text.splitlines()


class TestCompactRanges:
    def test_ranges(self) -> None:
        assert _compact_ranges([1, 2, 3, 7]) == "1-3, 7"
        assert _compact_ranges([5]) == "5"
        assert _compact_ranges([1, 3, 4]) == "1, 3-4"
