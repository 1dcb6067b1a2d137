"""Baseline coverage snapshot, written once and never overwritten."""

from __future__ import annotations

import json
from pathlib import Path

import structlog

from changecov.coverage.models import (
    CoverageMap,
    CoverageParseError,
    coverage_map_from_istanbul,
    coverage_map_to_istanbul,
)

log = structlog.get_logger(__name__)


class BaselineStore:
    """JSON coverage map on disk.

    ``load`` reads the file at most once; a missing or unreadable file means
    no baseline. ``save_if_absent`` writes only when no baseline existed;
    write failures are logged and the process continues.
    """

    def __init__(self, path: Path, auto_save: bool = True) -> None:
        self._path = path
        self._auto_save = auto_save
        self._loaded = False
        self._baseline: CoverageMap | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> CoverageMap | None:
        if self._loaded:
            return self._baseline
        self._loaded = True
        if not self._path.exists():
            return None
        try:
            raw = json.loads(self._path.read_text())
            self._baseline = coverage_map_from_istanbul(raw)
        except (OSError, json.JSONDecodeError, CoverageParseError) as e:
            log.warning("baseline_load_failed", path=str(self._path), error=str(e))
            self._baseline = None
        else:
            log.info("baseline_loaded", path=str(self._path), files=len(self._baseline))
        return self._baseline

    def save_if_absent(self, coverage: CoverageMap) -> bool:
        """Persist ``coverage`` as the baseline when none exists yet."""
        if not self._auto_save or not coverage:
            return False
        if self.load() is not None or self._path.exists():
            return False
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(coverage_map_to_istanbul(coverage)))
        except OSError as e:
            log.warning("baseline_save_failed", path=str(self._path), error=str(e))
            return False
        self._baseline = dict(coverage)
        log.info("baseline_saved", path=str(self._path), files=len(coverage))
        return True
