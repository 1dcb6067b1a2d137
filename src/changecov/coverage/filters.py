"""Source file eligibility for incremental coverage."""

from __future__ import annotations

import fnmatch
import re
from collections.abc import Sequence
from pathlib import Path, PurePosixPath

REGEX_PREFIX = "re:"

_LOCKFILES = frozenset({"package.json", "package-lock.json", "yarn.lock", "pnpm-lock.yaml"})


def matches_glob(rel_path: str, pattern: str) -> bool:
    """Check if a path matches a glob pattern, with ** support."""
    if fnmatch.fnmatch(rel_path, pattern):
        return True
    # Handle **/pattern for any-depth matching
    if pattern.startswith("**/"):
        return fnmatch.fnmatch(rel_path, pattern[3:])
    return False


class _Pattern:
    def __init__(self, raw: str) -> None:
        self.raw = raw
        self._regex = re.compile(raw[len(REGEX_PREFIX) :]) if raw.startswith(REGEX_PREFIX) else None

    def matches(self, rel_path: str) -> bool:
        if self._regex is not None:
            return self._regex.search(rel_path) is not None
        return matches_glob(rel_path, self.raw)


class SourceFilter:
    """Decides which changed files take part in coverage.

    A file is eligible when it lives under the project root, is not a
    dependency, lockfile or type declaration, has an allowed extension,
    matches an include pattern (or no include patterns are set) and matches
    no exclude pattern.
    """

    def __init__(
        self,
        root: Path,
        include: Sequence[str] = (),
        exclude: Sequence[str] = (),
        extensions: Sequence[str] = (".js", ".jsx", ".ts", ".tsx", ".vue", ".mjs", ".cjs"),
    ) -> None:
        self._root = root.resolve()
        self._include = [_Pattern(p) for p in include]
        self._exclude = [_Pattern(p) for p in exclude]
        self._extensions = frozenset(e.lower() for e in extensions)

    def relative(self, path: str) -> str | None:
        """Root-relative POSIX path, or None when ``path`` is outside the root."""
        p = Path(path)
        if not p.is_absolute():
            p = self._root / p
        try:
            return p.resolve().relative_to(self._root).as_posix()
        except ValueError:
            return None

    def is_eligible(self, path: str) -> bool:
        rel = self.relative(path)
        if rel is None:
            return False

        pure = PurePosixPath(rel)
        if "node_modules" in pure.parts:
            return False
        if pure.name in _LOCKFILES or pure.name.endswith(".d.ts"):
            return False
        if pure.suffix.lower() not in self._extensions:
            return False

        if self._include and not any(p.matches(rel) for p in self._include):
            return False
        return not any(p.matches(rel) for p in self._exclude)
