"""Import specifier resolution to files on disk."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from pathlib import Path

DEFAULT_EXTENSIONS: tuple[str, ...] = (".ts", ".js", ".vue", ".tsx", ".jsx", ".mjs", ".cjs")


class SpecifierResolver:
    """Resolves relative and aliased specifiers; bare package names are skipped.

    ``aliases`` maps a specifier prefix (``"@/"``) to a root-relative
    directory (``"src/"``). Resolution tries the path as written, then each
    extension, then ``index`` files inside a directory of that name.
    """

    def __init__(
        self,
        root: Path,
        aliases: Mapping[str, str] | None = None,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    ) -> None:
        self._root = root.resolve()
        # Longest prefix first so "@/components/" beats "@/"
        self._aliases = sorted((aliases or {}).items(), key=lambda kv: len(kv[0]), reverse=True)
        self._extensions = tuple(extensions)

    def _base_path(self, specifier: str, importer: Path) -> Path | None:
        if specifier.startswith("."):
            return importer.parent / specifier
        for prefix, target in self._aliases:
            if specifier.startswith(prefix):
                return self._root / target / specifier[len(prefix) :]
        return None

    def resolve(self, specifier: str, importer: Path) -> str | None:
        """Absolute path of the imported file, or None when it cannot be found."""
        specifier = specifier.split("?", 1)[0]
        base = self._base_path(specifier, importer)
        if base is None:
            return None

        candidates = [base]
        candidates.extend(Path(f"{base}{ext}") for ext in self._extensions)
        candidates.extend(base / f"index{ext}" for ext in self._extensions)
        for candidate in candidates:
            if candidate.is_file():
                return os.path.normpath(str(candidate.resolve()))
        return None
