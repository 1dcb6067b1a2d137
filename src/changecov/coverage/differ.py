"""Incremental coverage: changed lines intersected with merged coverage."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import PurePath
from typing import Any

import structlog

from changecov.coverage.filters import SourceFilter
from changecov.coverage.models import CoverageMap, FileCoverageData
from changecov.diff.models import GitDiffResult

log = structlog.get_logger(__name__)


def round_percent(covered: int, total: int) -> int:
    """Percentage rounded half-up; 100 when there is nothing to cover."""
    if total <= 0:
        return 100
    return math.floor(covered * 100 / total + 0.5)


@dataclass(frozen=True, slots=True)
class FileIncrementalCoverage:
    file: str
    changed_lines: list[int]
    uncovered_lines: list[int]
    coverage_rate: int

    @property
    def covered_count(self) -> int:
        return len(self.changed_lines) - len(self.uncovered_lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "changedLines": list(self.changed_lines),
            "uncoveredLines": list(self.uncovered_lines),
            "coverageRate": self.coverage_rate,
        }


@dataclass(frozen=True, slots=True)
class OverallCoverage:
    total_changed_lines: int
    covered_changed_lines: int
    coverage_rate: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalChangedLines": self.total_changed_lines,
            "coveredChangedLines": self.covered_changed_lines,
            "coverageRate": self.coverage_rate,
        }


@dataclass(frozen=True, slots=True)
class IncrementalCoverageResult:
    overall: OverallCoverage
    files: list[FileIncrementalCoverage] = field(default_factory=list)
    changed_files: list[str] = field(default_factory=list)
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall": self.overall.to_dict(),
            "files": [f.to_dict() for f in self.files],
            "changedFiles": list(self.changed_files),
            "timestamp": self.timestamp,
        }


class CoverageDiffer:
    """Computes per-file and aggregate coverage of added lines."""

    def __init__(self, source_filter: SourceFilter) -> None:
        self._filter = source_filter

    def calculate(self, merged: CoverageMap, changes: GitDiffResult) -> IncrementalCoverageResult:
        files: list[FileIncrementalCoverage] = []
        total = 0
        covered = 0

        for path in changes.files:
            if not self._filter.is_eligible(path):
                continue
            changed = sorted(set(changes.additions.get(path, [])))
            if not changed:
                continue

            data = self.find_coverage(merged, path)
            if data is None:
                log.debug("no_coverage_for_file", path=path, changed_lines=len(changed))
                uncovered = list(changed)
            else:
                uncovered = _uncovered_lines(data, changed)

            entry = FileIncrementalCoverage(
                file=path,
                changed_lines=changed,
                uncovered_lines=uncovered,
                coverage_rate=round_percent(len(changed) - len(uncovered), len(changed)),
            )
            files.append(entry)
            total += len(changed)
            covered += entry.covered_count

        return IncrementalCoverageResult(
            overall=OverallCoverage(
                total_changed_lines=total,
                covered_changed_lines=covered,
                coverage_rate=round_percent(covered, total),
            ),
            files=files,
            changed_files=list(changes.files),
        )

    def find_coverage(self, merged: CoverageMap, path: str) -> FileCoverageData | None:
        """Exact lookup, then a path-suffix fallback.

        The fallback considers coverage keys whose path ends with the file's
        root-relative path and picks the one sharing the most trailing path
        segments with the absolute path. A tie between the best candidates is
        ambiguous and yields None.
        """
        exact = merged.get(path)
        if exact is not None:
            return exact

        rel = self._filter.relative(path)
        if rel is None:
            return None
        rel_parts = PurePath(rel).parts
        abs_parts = PurePath(path).parts

        best: list[str] = []
        best_len = 0
        for key in merged:
            key_parts = PurePath(key).parts
            if key_parts[-len(rel_parts) :] != rel_parts:
                continue
            shared = _common_suffix_len(key_parts, abs_parts)
            if shared > best_len:
                best, best_len = [key], shared
            elif shared == best_len:
                best.append(key)

        if not best:
            return None
        if len(best) > 1:
            log.warning("ambiguous_coverage_match", path=path, candidates=sorted(best))
            return None
        log.debug("coverage_suffix_match", path=path, matched=best[0])
        return merged[best[0]]


def _uncovered_lines(data: FileCoverageData, changed: list[int]) -> list[int]:
    """Changed lines whose enclosing statements were all never executed.

    A line inside no statement is not reported.
    """
    uncovered: list[int] = []
    for line in changed:
        enclosing = [sid for sid, rng in data.statement_map.items() if rng.contains_line(line)]
        if enclosing and not any(data.s.get(sid, 0) > 0 for sid in enclosing):
            uncovered.append(line)
    return uncovered


def _common_suffix_len(a: tuple[str, ...], b: tuple[str, ...]) -> int:
    n = 0
    for x, y in zip(reversed(a), reversed(b), strict=False):
        if x != y:
            break
        n += 1
    return n
