"""Analysis coordinator - owns process-wide state and runs the report pipeline."""

from __future__ import annotations

import threading
from pathlib import Path

import structlog

from changecov.config.models import ChangecovConfig
from changecov.core.errors import StorageError
from changecov.coverage.baseline import BaselineStore
from changecov.coverage.differ import CoverageDiffer
from changecov.coverage.filters import SourceFilter
from changecov.coverage.merge import CoverageMerger
from changecov.coverage.models import CoverageMap
from changecov.diff.changes import ChangeCollector, VcsClient
from changecov.git.errors import GitError
from changecov.git.ops import GitOps
from changecov.graph.analyzer import DependencyGraphAnalyzer
from changecov.graph.cache import DependencyCache
from changecov.graph.models import ImpactResult
from changecov.quality.gate import GateThresholds, QualityGateEvaluator
from changecov.report.assembler import AnalysisReport, ReportAssembler
from changecov.report.writer import ReportWriter

log = structlog.get_logger(__name__)


def open_vcs(root: Path) -> VcsClient | None:
    """GitOps for ``root``, or None when it is not inside a repository."""
    try:
        return GitOps(root)
    except GitError as e:
        log.warning("git_unavailable", root=str(root), error=str(e))
        return None


class AnalysisCoordinator:
    """Explicitly constructed owner of the coverage map, dependency graph,
    baseline and gate configuration.

    Samples go in through ``ingest``; ``generate_report`` runs
    diff -> incremental coverage -> impact -> gate -> assembly.
    """

    def __init__(
        self,
        root: Path,
        config: ChangecovConfig,
        *,
        vcs: VcsClient | None = None,
        analyzer: DependencyGraphAnalyzer | None = None,
        writer: ReportWriter | None = None,
    ) -> None:
        self._root = root.resolve()
        self._config = config
        self._merger = CoverageMerger(self._root)
        self._collector = ChangeCollector(vcs, self._root)
        self._filter = SourceFilter(
            self._root,
            include=config.sources.include,
            exclude=config.sources.exclude,
            extensions=config.sources.extensions,
        )
        self._differ = CoverageDiffer(self._filter)
        self._analyzer = analyzer
        self._baseline = BaselineStore(
            self._root / config.baseline.path, auto_save=config.baseline.auto_save
        )
        self._gate = QualityGateEvaluator()
        self._assembler = ReportAssembler()
        self._writer = writer
        self._run_lock = threading.Lock()
        self._latest: AnalysisReport | None = None

    @classmethod
    def from_config(
        cls, root: Path, config: ChangecovConfig, *, persist: bool = True
    ) -> AnalysisCoordinator:
        """Wire Git, the dependency graph (with its cache) and the report writer."""
        root = root.resolve()
        analyzer = None
        if config.impact.enabled:
            cache = DependencyCache(root / config.cache.dependency_cache_path)
            analyzer = DependencyGraphAnalyzer.from_config(root, config.impact, cache=cache)
        writer = (
            ReportWriter(root / config.report.output_dir, config.report.history_count)
            if persist
            else None
        )
        return cls(root, config, vcs=open_vcs(root), analyzer=analyzer, writer=writer)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def config(self) -> ChangecovConfig:
        return self._config

    @property
    def merger(self) -> CoverageMerger:
        return self._merger

    @property
    def latest_report(self) -> AnalysisReport | None:
        return self._latest

    def ingest(self, coverage: CoverageMap) -> CoverageMap:
        return self._merger.merge(coverage)

    def _impact(self, changed_files: list[str]) -> ImpactResult | None:
        if self._analyzer is None:
            return None
        try:
            self._analyzer.init_graph()
            return self._analyzer.analyze_impact(changed_files)
        except Exception as e:
            log.exception("impact_analysis_failed", error=str(e))
            return None

    def generate_report(self, base: str | None = None) -> AnalysisReport:
        """Run the full pipeline on the current merged coverage."""
        base = base or self._config.git.diff_base
        with self._run_lock:
            snapshot = self._merger.snapshot()
            changes = self._collector.get_changed_files(base)
            coverage = self._differ.calculate(snapshot, changes)

            baseline_rate: int | None = None
            baseline = self._baseline.load()
            if baseline is None:
                self._baseline.save_if_absent(snapshot)
            else:
                baseline_rate = self._differ.calculate(baseline, changes).overall.coverage_rate

            impact = self._impact(changes.files)
            verdict = self._gate.evaluate(
                coverage.overall.coverage_rate,
                impact.impact_size if impact is not None else 0,
                GateThresholds(
                    min_coverage_rate=self._config.gate.min_coverage_rate,
                    max_impact_size=self._config.gate.max_impact_size,
                ),
            )
            report = self._assembler.assemble(
                coverage, impact, verdict, diff_base=base, baseline_rate=baseline_rate
            )
            if self._writer is not None:
                try:
                    self._writer.write(report)
                except StorageError as e:
                    log.warning("report_write_failed", **e.to_dict())
            self._latest = report

        log.info(
            "report_generated",
            base=base,
            coverage_rate=coverage.overall.coverage_rate,
            changed_lines=coverage.overall.total_changed_lines,
            files=len(coverage.files),
            impact_level=impact.impact_level.value if impact is not None else None,
            passed=verdict.passed,
        )
        return report
