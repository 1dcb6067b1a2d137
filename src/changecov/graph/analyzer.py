"""Source dependency graph and change impact (blast radius) analysis.

``init_graph`` scans the source tree and builds forward and reverse
adjacency maps. Per file, the sha256 of its bytes is compared with the
cached record; on a match the cached imports and exports are reused instead
of parsing the file again. Specifiers are resolved on every scan against the
current file set, so a cache hit yields exactly what a full recompute would.

``analyze_impact`` walks reverse edges (importer of importer ...) from each
changed file and classifies every reached file as a page or component.
"""

from __future__ import annotations

import hashlib
import os
import shlex
import threading
import time
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from changecov.graph.cache import DependencyCache
from changecov.graph.extract import ImportExtractor, TreeSitterImportExtractor
from changecov.graph.models import (
    DependencyRecord,
    GraphStats,
    ImpactResult,
    ImpactThresholds,
    ModuleFacts,
)
from changecov.graph.resolve import SpecifierResolver

if TYPE_CHECKING:
    from changecov.config.models import ImpactConfig

log = structlog.get_logger(__name__)

MAX_PROPAGATION_PATHS = 1000


def content_hash(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


class DependencyGraphAnalyzer:
    """Builds the import graph of a source tree and answers impact queries."""

    def __init__(
        self,
        root: Path,
        *,
        source_dir: str = "src",
        extractor: ImportExtractor | None = None,
        resolver: SpecifierResolver | None = None,
        cache: DependencyCache | None = None,
        thresholds: ImpactThresholds | None = None,
        page_markers: Sequence[str] = ("/pages/", "/views/"),
        component_markers: Sequence[str] = ("/components/",),
        skip_dirs: Sequence[str] = ("node_modules", "dist", ".git", ".coverage"),
        test_command: str = "npx jest",
    ) -> None:
        self._root = root.resolve()
        self._source_dir = source_dir
        self._extractor = extractor or TreeSitterImportExtractor()
        self._resolver = resolver or SpecifierResolver(self._root)
        self._cache = cache
        self._thresholds = thresholds or ImpactThresholds()
        self._page_markers = tuple(page_markers)
        self._component_markers = tuple(component_markers)
        self._skip_dirs = frozenset(skip_dirs)
        self._test_command = test_command

        self._lock = threading.Lock()
        self._records: dict[str, DependencyRecord] = {}
        self._forward: dict[str, frozenset[str]] = {}
        self._reverse: dict[str, frozenset[str]] = {}
        self._cached: dict[str, DependencyRecord] | None = None

    @classmethod
    def from_config(
        cls, root: Path, config: ImpactConfig, cache: DependencyCache | None = None
    ) -> DependencyGraphAnalyzer:
        return cls(
            root,
            source_dir=config.source_dir,
            resolver=SpecifierResolver(root, aliases=config.aliases),
            cache=cache,
            thresholds=ImpactThresholds(
                high_total=config.high_total,
                high_pages=config.high_pages,
                medium_total=config.medium_total,
                medium_pages=config.medium_pages,
            ),
            page_markers=config.page_markers,
            component_markers=config.component_markers,
            skip_dirs=config.skip_dirs,
            test_command=config.test_command,
        )

    @property
    def records(self) -> dict[str, DependencyRecord]:
        with self._lock:
            return dict(self._records)

    def dependents_of(self, path: str) -> frozenset[str]:
        with self._lock:
            return self._reverse.get(path, frozenset())

    def dependencies_of(self, path: str) -> frozenset[str]:
        with self._lock:
            return self._forward.get(path, frozenset())

    # =========================================================================
    # Graph construction
    # =========================================================================

    def _source_files(self) -> list[Path]:
        scan_root = self._root / self._source_dir
        if not scan_root.is_dir():
            scan_root = self._root
        found: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(scan_root):
            dirnames[:] = sorted(d for d in dirnames if d not in self._skip_dirs)
            for name in sorted(filenames):
                path = Path(dirpath) / name
                if self._extractor.supports(path) and not name.endswith(".d.ts"):
                    found.append(path)
        return found

    def init_graph(self) -> GraphStats:
        """Scan the source tree and rebuild the graph, then persist the cache."""
        start = time.monotonic()
        if self._cached is None:
            self._cached = self._cache.load() if self._cache is not None else {}
        cached = self._cached

        files = self._source_files()
        facts: dict[str, tuple[ModuleFacts, str]] = {}
        hits = parsed = failed = 0

        for path in files:
            key = os.path.normpath(str(path.resolve()))
            try:
                content = path.read_bytes()
            except OSError as e:
                log.warning("source_read_failed", path=key, error=str(e))
                failed += 1
                continue
            digest = content_hash(content)

            previous = cached.get(key)
            if previous is not None and previous.content_hash == digest:
                facts[key] = (ModuleFacts(previous.imports, previous.exports), digest)
                hits += 1
                continue

            try:
                facts[key] = (self._extractor.extract(path, content), digest)
                parsed += 1
            except Exception as e:
                log.warning("import_extraction_failed", path=key, error=str(e))
                facts[key] = (ModuleFacts(), digest)
                failed += 1

        records: dict[str, DependencyRecord] = {}
        for key, (module, digest) in facts.items():
            importer = Path(key)
            resolved: list[str] = []
            for spec in module.imports:
                target = self._resolver.resolve(spec, importer)
                # Edges only point at files in this snapshot
                if target is not None and target in facts and target != key and target not in resolved:
                    resolved.append(target)
            records[key] = DependencyRecord(
                file_path=key,
                imports=module.imports,
                exports=module.exports,
                resolved_dependencies=tuple(resolved),
                content_hash=digest,
            )

        forward = {key: frozenset(r.resolved_dependencies) for key, r in records.items()}
        reverse_sets: dict[str, set[str]] = {}
        for key, deps in forward.items():
            for dep in deps:
                reverse_sets.setdefault(dep, set()).add(key)

        with self._lock:
            self._records = records
            self._forward = forward
            self._reverse = {k: frozenset(v) for k, v in reverse_sets.items()}

        self._cached = records
        if self._cache is not None:
            self._cache.save(records)

        stats = GraphStats(
            files=len(records),
            cache_hits=hits,
            parsed=parsed,
            failed=failed,
            duration_ms=int((time.monotonic() - start) * 1000),
        )
        log.info(
            "dependency_graph_built",
            files=stats.files,
            cache_hits=stats.cache_hits,
            parsed=stats.parsed,
            failed=stats.failed,
            duration_ms=stats.duration_ms,
        )
        return stats

    # =========================================================================
    # Impact analysis
    # =========================================================================

    def _propagation_paths(
        self, start: str, reverse: dict[str, frozenset[str]]
    ) -> tuple[list[list[str]], set[str]]:
        """Depth-first walk over dependents from ``start``.

        Each chain of importers is followed until a file that no other file
        imports, or until every importer left is already on the chain (a
        cycle). A file can sit on several paths but appears at most once per
        path. Path enumeration stops at ``MAX_PROPAGATION_PATHS``; the
        returned reachable set is always complete.
        """
        visited = {start}
        frontier = [start]
        while frontier:
            for dep in reverse.get(frontier.pop(), ()):
                if dep not in visited:
                    visited.add(dep)
                    frontier.append(dep)

        paths: list[list[str]] = []
        stack = [[start]]
        while stack:
            path = stack.pop()
            on_path = set(path)
            nxt = [d for d in sorted(reverse.get(path[-1], ())) if d not in on_path]
            if nxt:
                stack.extend([*path, d] for d in reversed(nxt))
                continue
            if len(paths) >= MAX_PROPAGATION_PATHS:
                log.warning("propagation_paths_truncated", start=start, limit=MAX_PROPAGATION_PATHS)
                break
            paths.append(path)
        return paths, visited

    def _marker_path(self, path: str) -> str:
        try:
            return "/" + Path(path).relative_to(self._root).as_posix()
        except ValueError:
            return Path(path).as_posix()

    def classify(self, path: str) -> str | None:
        """``"page"``, ``"component"`` or None for a file path."""
        marker_path = self._marker_path(path)
        if any(m in marker_path for m in self._page_markers):
            return "page"
        if any(m in marker_path for m in self._component_markers):
            return "component"
        return None

    def analyze_impact(self, changed_files: Iterable[str]) -> ImpactResult:
        """Pages and components reachable from the changed files via importers."""
        with self._lock:
            reverse = self._reverse
            known = set(self._records)

        pages: set[str] = set()
        components: set[str] = set()
        all_paths: list[list[str]] = []

        for raw in changed_files:
            start = os.path.normpath(str(Path(raw).resolve()))
            if start not in known:
                log.debug("changed_file_not_in_graph", path=start)
                continue
            paths, visited = self._propagation_paths(start, reverse)
            all_paths.extend(paths)
            for node in visited:
                kind = self.classify(node)
                if kind == "page":
                    pages.add(node)
                elif kind == "component":
                    components.add(node)

        affected_pages = sorted(pages)
        affected_components = sorted(components)
        return ImpactResult(
            affected_pages=affected_pages,
            affected_components=affected_components,
            impact_level=self._thresholds.classify(len(affected_pages), len(affected_components)),
            propagation_paths=all_paths,
            regression_suggestions=self._suggestions(affected_pages, affected_components),
            regression_command=self._regression_command(affected_pages + affected_components),
        )

    def _relative(self, path: str) -> str:
        try:
            return Path(path).relative_to(self._root).as_posix()
        except ValueError:
            return path

    def _suggestions(self, pages: list[str], components: list[str]) -> list[str]:
        suggestions: list[str] = []
        if pages:
            names = ", ".join(self._relative(p) for p in pages[:3])
            more = f" (+{len(pages) - 3} more)" if len(pages) > 3 else ""
            suggestions.append(f"Prioritize testing pages: {names}{more}")
        if components:
            names = ", ".join(self._relative(c) for c in components[:5])
            more = f" (+{len(components) - 5} more)" if len(components) > 5 else ""
            suggestions.append(f"Check integration of components: {names}{more}")
        total = len(pages) + len(components)
        if total > self._thresholds.medium_total:
            suggestions.append("Run a full regression test")
        elif total > 0:
            suggestions.append("Run a targeted regression test")
        return suggestions

    def _regression_command(self, files: list[str]) -> str:
        if not files:
            return ""
        return " ".join([self._test_command, *(shlex.quote(self._relative(f)) for f in files)])
