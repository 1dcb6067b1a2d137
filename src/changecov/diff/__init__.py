"""Changed-line extraction from unified diffs."""

from changecov.diff.changes import ChangeCollector, VcsClient
from changecov.diff.models import ChangeKind, DiffLines, GitDiffResult, LineChange
from changecov.diff.parser import parse_diff

__all__ = [
    "ChangeCollector",
    "ChangeKind",
    "DiffLines",
    "GitDiffResult",
    "LineChange",
    "VcsClient",
    "parse_diff",
]
