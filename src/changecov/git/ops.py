"""Git operations via pygit2 for base-ref to working-tree comparisons."""

from __future__ import annotations

from pathlib import Path

import pygit2

from changecov.git._internal import RepoAccess


class GitOps:
    """Thin wrapper around pygit2.Repository with cleaner error handling.

    Implements the ``VcsClient`` protocol used by the change collector:
    ``diff_summary(base)`` lists changed paths and ``diff(base, path)``
    returns the unified diff text of one of them.
    """

    def __init__(self, repo_path: Path | str) -> None:
        self._access = RepoAccess(repo_path)
        self._patch_cache: tuple[str, dict[str, str]] | None = None

    @property
    def repo(self) -> pygit2.Repository:
        """Direct access to underlying pygit2 Repository."""
        return self._access.repo

    @property
    def path(self) -> Path:
        """Repository root path."""
        return self._access.path

    def _patches(self, base: str) -> dict[str, str]:
        commit = self._access.resolve_commit(base)
        raw = self._access.diff_to_workdir(commit.id)
        patches: dict[str, str] = {}
        for patch in raw:
            if patch is None:
                continue
            delta = patch.delta
            path = delta.new_file.path or delta.old_file.path
            patches[path] = "" if delta.is_binary else (patch.text or "")
        return patches

    def diff_summary(self, base: str) -> list[str]:
        """Repo-relative paths that differ between ``base`` and the working tree.

        Raises:
            RefNotFoundError: ``base`` does not resolve to a commit.
        """
        patches = self._patches(base)
        self._patch_cache = (base, patches)
        return sorted(patches)

    def diff(self, base: str, path: str) -> str:
        """Unified diff text of one file, empty when the file is unchanged.

        Reuses the patches computed by the last ``diff_summary`` for the
        same base.
        """
        if self._patch_cache is not None and self._patch_cache[0] == base:
            patches = self._patch_cache[1]
        else:
            patches = self._patches(base)
        return patches.get(path, "")
