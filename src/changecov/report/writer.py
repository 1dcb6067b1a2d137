"""Report persistence with bounded history."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import structlog

from changecov.core.errors import StorageError
from changecov.report.assembler import AnalysisReport

log = structlog.get_logger(__name__)

LATEST_NAME = "latest.json"
HISTORY_PREFIX = "report-"


class ReportWriter:
    """Writes ``latest.json`` and a timestamped copy, keeping ``history_count`` copies."""

    def __init__(self, output_dir: Path, history_count: int = 15) -> None:
        self._output_dir = output_dir
        self._history_count = history_count

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def write(self, report: AnalysisReport) -> Path:
        """Persist the report and return the history file path.

        Raises:
            StorageError: The output directory or a report file cannot be written.
        """
        payload = json.dumps(report.to_dict(), indent=2)
        stamp = datetime.now(UTC).strftime("%Y%m%d-%H%M%S-%f")
        history_path = self._output_dir / f"{HISTORY_PREFIX}{stamp}.json"
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
            (self._output_dir / LATEST_NAME).write_text(payload)
            history_path.write_text(payload)
            self._prune()
        except OSError as e:
            raise StorageError.write_failed(str(self._output_dir), str(e)) from e
        log.info("report_written", path=str(history_path))
        return history_path

    def history(self) -> list[Path]:
        """History files, oldest first."""
        if not self._output_dir.is_dir():
            return []
        return sorted(self._output_dir.glob(f"{HISTORY_PREFIX}*.json"))

    def _prune(self) -> None:
        files = self.history()
        excess = len(files) - self._history_count
        for old in files[: max(excess, 0)]:
            old.unlink(missing_ok=True)
