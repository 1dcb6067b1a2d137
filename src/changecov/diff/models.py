"""Data models for changed lines."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ChangeKind(Enum):
    """Kind of line change."""

    ADDED = "added"
    DELETED = "deleted"


@dataclass(frozen=True, slots=True)
class LineChange:
    """A single changed line.

    Additions use new-file line numbers. Deletions are anchored at the
    position in the new file where the removed line used to sit.
    """

    file: str
    line: int
    kind: ChangeKind


@dataclass(frozen=True, slots=True)
class DiffLines:
    """Lines added and deleted in one file diff, in diff order."""

    additions: list[int] = field(default_factory=list)
    deletions: list[int] = field(default_factory=list)


@dataclass(slots=True)
class GitDiffResult:
    """Changed files between a base ref and the working tree.

    Paths are absolute. A file with only deletions still appears in
    ``files`` and has an empty (or missing) ``additions`` entry.
    """

    files: list[str] = field(default_factory=list)
    additions: dict[str, list[int]] = field(default_factory=dict)
    deletions: dict[str, list[int]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.files

    def line_changes(self) -> list[LineChange]:
        """Flatten into per-line records, files in order, additions first."""
        changes: list[LineChange] = []
        for path in self.files:
            changes.extend(
                LineChange(path, line, ChangeKind.ADDED) for line in self.additions.get(path, [])
            )
            changes.extend(
                LineChange(path, line, ChangeKind.DELETED) for line in self.deletions.get(path, [])
            )
        return changes

    def to_dict(self) -> dict[str, object]:
        return {
            "files": list(self.files),
            "additions": {k: list(v) for k, v in self.additions.items()},
            "deletions": {k: list(v) for k, v in self.deletions.items()},
        }
