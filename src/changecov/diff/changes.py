"""Collect changed lines from version control."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import structlog

from changecov.diff.models import GitDiffResult
from changecov.diff.parser import parse_diff

log = structlog.get_logger(__name__)


class VcsClient(Protocol):
    """What the collector needs from version control."""

    def diff_summary(self, base: str) -> list[str]:
        """Paths (relative to the repository root) changed since ``base``."""
        ...

    def diff(self, base: str, path: str) -> str:
        """Unified diff text for ``path`` against ``base``."""
        ...


class ChangeCollector:
    """Turns a Git comparison into per-file added and deleted lines."""

    def __init__(self, vcs: VcsClient | None, root: Path) -> None:
        self._vcs = vcs
        self._root = root.resolve()

    def get_changed_files(self, base: str) -> GitDiffResult:
        """Changed files and lines between ``base`` and the working tree.

        Any version-control failure (no repository, unknown ref) is logged
        and reported as "no changes". A file whose diff cannot be read is
        listed without changed lines.
        """
        result = GitDiffResult()
        if self._vcs is None:
            log.warning("vcs_unavailable", base=base)
            return result

        try:
            paths = self._vcs.diff_summary(base)
        except Exception as e:
            log.warning("git_diff_failed", base=base, error=str(e))
            return result

        for rel_path in paths:
            abs_path = str((self._root / rel_path).resolve())
            result.files.append(abs_path)
            try:
                text = self._vcs.diff(base, rel_path)
            except Exception as e:
                log.warning("git_file_diff_failed", path=rel_path, error=str(e))
                continue
            lines = parse_diff(text)
            if lines.additions:
                result.additions[abs_path] = sorted(set(lines.additions))
            if lines.deletions:
                result.deletions[abs_path] = sorted(set(lines.deletions))

        log.debug(
            "changes_collected",
            base=base,
            files=len(result.files),
            added_lines=sum(len(v) for v in result.additions.values()),
        )
        return result
