"""Coverage sample merging with sum semantics.

Samples arriving from repeated instrumentation runs are accumulated into one
map per file:

- s[id] and f[id] are summed
- b[id] is summed element-wise; when one side has fewer arms, the other
  side's value is used for the missing positions
- static maps (statementMap, fnMap, branchMap) keep the first-seen entry
  per id; ids first seen in a later sample are added
- thin samples (counters only) add to ids a full sample has declared;
  counters for ids not declared yet wait until one does

Summation is commutative and associative on counters, so the merged map does
not depend on the order samples arrive in.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from pathlib import Path

import structlog

from changecov.coverage.models import CoverageMap, FileCoverageData, normalize_path

log = structlog.get_logger(__name__)


def _sum_counters(base: dict[str, int], incoming: dict[str, int]) -> dict[str, int]:
    result = dict(base)
    for key, hits in incoming.items():
        result[key] = result.get(key, 0) + hits
    return result


def _sum_branches(
    base: dict[str, list[int]], incoming: dict[str, list[int]]
) -> dict[str, list[int]]:
    result = {k: list(v) for k, v in base.items()}
    for key, arms in incoming.items():
        existing = result.get(key)
        if existing is None:
            result[key] = list(arms)
            continue
        width = max(len(existing), len(arms))
        result[key] = [
            (existing[i] if i < len(existing) else 0) + (arms[i] if i < len(arms) else 0)
            for i in range(width)
        ]
    return result


def merge_file_coverage(base: FileCoverageData, incoming: FileCoverageData) -> FileCoverageData:
    """Merge two samples of the same file into a new object.

    Counters of a thin ``incoming`` sample are only kept for ids present in
    the static maps of ``base``.
    """
    statement_map = {**incoming.statement_map, **base.statement_map}
    fn_map = {**incoming.fn_map, **base.fn_map}
    branch_map = {**incoming.branch_map, **base.branch_map}

    s_in, f_in, b_in = incoming.s, incoming.f, incoming.b
    if not incoming.has_static_maps:
        s_in = {k: v for k, v in s_in.items() if k in statement_map}
        f_in = {k: v for k, v in f_in.items() if k in fn_map}
        b_in = {k: v for k, v in b_in.items() if k in branch_map}

    return FileCoverageData(
        path=base.path,
        statement_map=statement_map,
        fn_map=fn_map,
        branch_map=branch_map,
        s=_sum_counters(base.s, s_in),
        f=_sum_counters(base.f, f_in),
        b=_sum_branches(base.b, b_in),
        has_static_maps=base.has_static_maps or incoming.has_static_maps,
    )


def merge_coverage_maps(maps: Iterable[CoverageMap]) -> CoverageMap:
    """Fold several coverage maps into one (pure; inputs are not modified)."""
    result: CoverageMap = {}
    for coverage in maps:
        for path, data in coverage.items():
            existing = result.get(path)
            result[path] = data.copy() if existing is None else merge_file_coverage(existing, data)
    return result


def _add_thin(held: FileCoverageData, incoming: FileCoverageData) -> FileCoverageData:
    return FileCoverageData(
        path=held.path,
        s=_sum_counters(held.s, incoming.s),
        f=_sum_counters(held.f, incoming.f),
        b=_sum_branches(held.b, incoming.b),
        has_static_maps=False,
    )


class CoverageMerger:
    """Process-wide accumulator of coverage samples.

    Stored entries are never mutated in place; every merge replaces the
    entry with a new object, so ``snapshot()`` can hand out a shallow copy.

    Thin-sample counters whose ids no full sample has registered yet are
    held back per path and folded in once a full sample declares those ids,
    so the merged counters do not depend on arrival order.
    """

    def __init__(self, root: Path) -> None:
        self._root = root.resolve()
        self._lock = threading.Lock()
        self._coverage: CoverageMap = {}
        self._pending: CoverageMap = {}
        self._samples = 0

    @property
    def sample_count(self) -> int:
        return self._samples

    def merge(self, new_map: CoverageMap) -> CoverageMap:
        """Merge a sample into the cumulative map and return a snapshot of it."""
        with self._lock:
            for raw_path, data in new_map.items():
                path = normalize_path(data.path or raw_path, self._root)
                existing = self._coverage.get(path)
                if data.has_static_maps:
                    if existing is None:
                        merged = data.copy()
                        merged.path = path
                    else:
                        merged = merge_file_coverage(existing, data)
                    held = self._pending.pop(path, None)
                    self._coverage[path] = (
                        merged if held is None else self._fold_thin(merged, held)
                    )
                    continue

                held = self._pending.get(path)
                thin = data.copy() if held is None else _add_thin(held, data)
                thin.path = path
                if existing is None:
                    log.debug("thin_sample_held", path=path)
                    self._pending[path] = thin
                else:
                    self._coverage[path] = self._fold_thin(existing, thin)
            self._samples += 1
            log.debug("coverage_merged", files=len(new_map), total_files=len(self._coverage))
            return dict(self._coverage)

    def _fold_thin(self, entry: FileCoverageData, thin: FileCoverageData) -> FileCoverageData:
        merged = merge_file_coverage(entry, thin)
        rest = FileCoverageData(
            path=entry.path,
            s={k: v for k, v in thin.s.items() if k not in merged.statement_map},
            f={k: v for k, v in thin.f.items() if k not in merged.fn_map},
            b={k: list(v) for k, v in thin.b.items() if k not in merged.branch_map},
            has_static_maps=False,
        )
        if rest.s or rest.f or rest.b:
            self._pending[entry.path] = rest
        else:
            self._pending.pop(entry.path, None)
        return merged

    def snapshot(self) -> CoverageMap:
        with self._lock:
            return dict(self._coverage)

    def reset(self) -> None:
        with self._lock:
            self._coverage = {}
            self._pending = {}
            self._samples = 0
        log.info("coverage_reset")
