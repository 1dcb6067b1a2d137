"""Repository access layer - owns pygit2.Repository and exposes computed facts."""

from __future__ import annotations

from pathlib import Path

import pygit2

from changecov.git.errors import NotARepositoryError, RefNotFoundError


class RepoAccess:
    """Owns pygit2.Repository and provides normalized access to repo state."""

    def __init__(self, repo_path: Path | str) -> None:
        self._path = Path(repo_path)
        try:
            self._repo = pygit2.Repository(str(self._path))
        except pygit2.GitError as e:
            raise NotARepositoryError(str(self._path)) from e

    @property
    def repo(self) -> pygit2.Repository:
        return self._repo

    @property
    def path(self) -> Path:
        return Path(self._repo.workdir) if self._repo.workdir else self._path

    @property
    def is_unborn(self) -> bool:
        return self._repo.head_is_unborn

    def resolve_ref_oid(self, ref: str) -> pygit2.Oid:
        try:
            obj, _ = self._repo.resolve_refish(ref)
            return obj.id
        except (pygit2.GitError, KeyError) as e:
            raise RefNotFoundError(ref) from e

    def resolve_commit(self, ref: str) -> pygit2.Commit:
        obj: pygit2.Object | None = self._repo.get(self.resolve_ref_oid(ref))
        if isinstance(obj, pygit2.Tag):
            obj = obj.peel(pygit2.Commit)  # type: ignore[assignment]
        if not isinstance(obj, pygit2.Commit):
            raise RefNotFoundError(f"{ref} is not a commit")
        return obj

    def diff_to_workdir(self, base_id: pygit2.Oid) -> pygit2.Diff:
        """Diff a commit against the working tree, like `git diff <base>`.

        Goes through the index so files added since ``base`` are included.
        Untracked files are not.
        """
        commit = self._repo.get(base_id)
        if not isinstance(commit, pygit2.Commit):
            raise RefNotFoundError(str(base_id))
        diff = commit.tree.diff_to_index(self._repo.index)
        diff.merge(self._repo.diff())
        return diff
