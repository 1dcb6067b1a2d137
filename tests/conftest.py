"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

import sys
from collections.abc import Callable
from pathlib import Path

# Insert local src directory at the beginning of sys.path
# This ensures that the local changecov package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of changecov modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("changecov"):
        del sys.modules[module_name]


import pygit2  # noqa: E402
import pytest  # noqa: E402


def _commit_all(repo: pygit2.Repository, message: str) -> pygit2.Oid:
    repo.index.add_all()
    repo.index.write()
    tree = repo.index.write_tree()
    sig = pygit2.Signature("Test User", "test@example.com")
    parents = [] if repo.head_is_unborn else [repo.head.target]
    return repo.create_commit("HEAD", sig, sig, message, tree, parents)


@pytest.fixture
def temp_repo(tmp_path: Path) -> pygit2.Repository:
    """Temporary repository on ``main`` with a small TypeScript source tree committed."""
    repo_path = tmp_path / "repo"
    (repo_path / "src" / "utils").mkdir(parents=True)

    repo = pygit2.init_repository(str(repo_path), initial_head="main")
    repo.config["user.name"] = "Test User"
    repo.config["user.email"] = "test@example.com"

    (repo_path / "README.md").write_text("# Test Repo\n")
    (repo_path / "src" / "utils" / "math.ts").write_text(
        "export function add(a: number, b: number) {\n"
        "  return a + b;\n"
        "}\n"
    )
    _commit_all(repo, "Initial commit")
    return repo


@pytest.fixture
def commit_all() -> Callable[[pygit2.Repository, str], pygit2.Oid]:
    """Stage everything in the working tree and commit it on HEAD."""
    return _commit_all
