"""Git operations module."""

from changecov.git.errors import GitError, NotARepositoryError, RefNotFoundError
from changecov.git.ops import GitOps

__all__ = [
    # Main class
    "GitOps",
    # Errors
    "GitError",
    "NotARepositoryError",
    "RefNotFoundError",
]
