"""Persistent dependency record cache keyed by absolute file path."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

import structlog

from changecov.graph.models import DependencyRecord

log = structlog.get_logger(__name__)

CACHE_VERSION = 1


class DependencyCache:
    """JSON file of ``{path: DependencyRecord}``.

    A missing, unreadable or incompatible file is a cold start. Save
    failures are logged; the in-memory graph stays usable.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, DependencyRecord]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text())
            if raw.get("version") != CACHE_VERSION:
                log.info("dependency_cache_version_mismatch", path=str(self._path))
                return {}
            records = {
                path: DependencyRecord.from_dict(entry) for path, entry in raw["records"].items()
            }
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            log.warning("dependency_cache_load_failed", path=str(self._path), error=str(e))
            return {}
        log.debug("dependency_cache_loaded", path=str(self._path), records=len(records))
        return records

    def save(self, records: Mapping[str, DependencyRecord]) -> bool:
        payload = {
            "version": CACHE_VERSION,
            "records": {path: record.to_dict() for path, record in sorted(records.items())},
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp.write_text(json.dumps(payload))
            tmp.replace(self._path)
        except OSError as e:
            log.warning("dependency_cache_save_failed", path=str(self._path), error=str(e))
            return False
        return True
