"""Tests for the changecov CLI commands."""

from __future__ import annotations

import json
import os
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock, patch

import httpx
import pygit2
import pytest
from click.testing import CliRunner

from changecov.cli.main import cli
from changecov.cli.utils import find_project_root

runner = CliRunner()

MODIFIED_MATH = (
    "export function add(a: number, b: number) {\n"
    "  const sum = a + b;\n"
    "  return sum;\n"
    "}\n"
)


def _loc(line: int) -> dict[str, Any]:
    return {"start": {"line": line, "column": 2}, "end": {"line": line, "column": 20}}


def _istanbul(path: Path, hits: dict[str, int]) -> dict[str, Any]:
    return {
        str(path): {
            "path": str(path),
            "statementMap": {"0": _loc(2), "1": _loc(3)},
            "fnMap": {},
            "branchMap": {},
            "s": hits,
            "f": {},
            "b": {},
        }
    }


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path) -> Generator[None, None, None]:
    """No user-level config; keep info logs out of command output."""
    with (
        patch("changecov.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
        patch.dict(os.environ, {"CHANGECOV__LOGGING__LEVEL": "WARNING"}),
    ):
        yield


@pytest.fixture
def project(temp_repo: pygit2.Repository) -> Path:
    """Repository with an uncommitted change and a coverage artifact in the default place."""
    root = Path(temp_repo.workdir).resolve()
    math = root / "src/utils/math.ts"
    math.write_text(MODIFIED_MATH)
    (root / "coverage").mkdir()
    (root / "coverage/coverage-final.json").write_text(json.dumps(_istanbul(math, {"0": 1, "1": 0})))
    return root


class TestFindProjectRoot:
    def test_finds_enclosing_repository(self, project: Path) -> None:
        assert find_project_root(project / "src" / "utils") == project

    def test_falls_back_to_start(self, tmp_path: Path) -> None:
        assert find_project_root(tmp_path) == tmp_path.resolve()


class TestReportCommand:
    def test_json_output(self, project: Path) -> None:
        result = runner.invoke(cli, ["--root", str(project), "report", "--format", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["coverage"]["overall"]["coverageRate"] == 50
        assert data["coverage"]["files"][0]["uncoveredLines"] == [3]
        assert data["gate"]["passed"] is False
        assert (project / ".coverage" / "latest.json").exists()

    def test_subdirectory_root_resolves_to_repository(self, project: Path) -> None:
        result = runner.invoke(
            cli, ["--root", str(project / "src" / "utils"), "report", "--format", "json"]
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["coverage"]["overall"]["coverageRate"] == 50
        assert (project / ".coverage" / "latest.json").exists()
        assert not (project / "src" / "utils" / ".coverage").exists()

    def test_root_help_describes_discovery(self) -> None:
        result = runner.invoke(cli, ["--help"])

        assert "enclosing git repository is the project root" in " ".join(result.output.split())

    def test_fail_on_gate_sets_exit_code(self, project: Path) -> None:
        result = runner.invoke(
            cli, ["--root", str(project), "report", "--format", "text", "--fail-on-gate"]
        )

        assert result.exit_code == 1
        assert "Incremental coverage vs main: 50% (1/2 changed lines)" in result.output
        assert "[FAIL]" in result.output

    def test_fail_on_error_from_config(self, project: Path) -> None:
        (project / ".changecov").mkdir()
        (project / ".changecov/config.yaml").write_text(
            "gate:\n  fail_on_error: true\n  min_coverage_rate: 40\n"
        )

        result = runner.invoke(cli, ["--root", str(project), "report", "--format", "text"])

        assert result.exit_code == 0, result.output
        assert "[PASS]" in result.output

    def test_rich_output(self, project: Path) -> None:
        result = runner.invoke(cli, ["--root", str(project), "report", "--no-impact"])

        assert result.exit_code == 0, result.output
        assert "Incremental coverage vs" in result.output
        assert "Impact:" not in result.output

    def test_no_write(self, project: Path) -> None:
        result = runner.invoke(
            cli, ["--root", str(project), "report", "--no-write", "--format", "json"]
        )

        assert result.exit_code == 0, result.output
        assert not (project / ".coverage" / "latest.json").exists()
        assert not (project / ".coverage" / "baseline.json").exists()

    def test_explicit_coverage_file(self, project: Path, tmp_path: Path) -> None:
        artifact = tmp_path / "full.json"
        artifact.write_text(json.dumps(_istanbul(project / "src/utils/math.ts", {"0": 1, "1": 1})))

        result = runner.invoke(
            cli,
            ["--root", str(project), "report", "--coverage", str(artifact), "--format", "json"],
        )

        assert json.loads(result.output)["coverage"]["overall"]["coverageRate"] == 100

    def test_invalid_coverage_file(self, project: Path, tmp_path: Path) -> None:
        artifact = tmp_path / "bad.json"
        artifact.write_text("{not json")

        result = runner.invoke(cli, ["--root", str(project), "report", "--coverage", str(artifact)])

        assert result.exit_code == 1
        assert "Failed to parse Istanbul JSON" in result.output

    def test_invalid_config(self, project: Path) -> None:
        (project / ".changecov").mkdir()
        (project / ".changecov/config.yaml").write_text("server:\n  port: 99999\n")

        result = runner.invoke(cli, ["--root", str(project), "report"])

        assert result.exit_code == 1
        assert "CONFIG_INVALID_VALUE" in result.output


class TestDiffCommand:
    def test_lists_changed_lines(self, project: Path) -> None:
        result = runner.invoke(cli, ["--root", str(project), "diff"])

        assert result.exit_code == 0, result.output
        assert f"{project / 'src/utils/math.ts'}: +2 -1" in result.output
        assert "added: 2, 3" in result.output

    def test_json(self, project: Path) -> None:
        result = runner.invoke(cli, ["--root", str(project), "diff", "--json", "--base", "main"])

        data = json.loads(result.output)
        assert data["files"] == [str(project / "src/utils/math.ts")]

    def test_clean_tree(self, temp_repo: pygit2.Repository) -> None:
        result = runner.invoke(cli, ["--root", temp_repo.workdir, "diff"])

        assert result.output.strip() == "No changes"


class TestGraphCommand:
    def test_json_for_explicit_changes(self, project: Path) -> None:
        (project / "src/pages").mkdir()
        (project / "src/pages/Home.ts").write_text("import { add } from '../utils/math';\n")

        result = runner.invoke(
            cli,
            ["--root", str(project), "graph", "--json", "--changed", "src/utils/math.ts"],
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["graph"]["files"] == 2
        assert data["impact"]["affectedPages"] == [str(project / "src/pages/Home.ts")]
        assert data["impact"]["regressionTestCommand"] == "npx jest src/pages/Home.ts"

    def test_changes_from_git(self, project: Path) -> None:
        result = runner.invoke(cli, ["--root", str(project), "graph"])

        assert result.exit_code == 0, result.output
        assert "Impact: low" in result.output


class TestStatusCommand:
    def test_server_not_running(self, project: Path) -> None:
        with patch("changecov.cli.status.httpx.get", side_effect=httpx.ConnectError("refused")):
            result = runner.invoke(cli, ["--root", str(project), "status", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.output)["running"] is False

    def test_server_with_report(self, project: Path) -> None:
        response = MagicMock()
        response.json.return_value = {
            "success": True,
            "coverage": {
                "rate": 75,
                "coveredLines": 3,
                "totalLines": 4,
                "fileCount": 1,
                "impactLevel": "low",
                "passed": False,
            },
        }
        with patch("changecov.cli.status.httpx.get", return_value=response) as get:
            result = runner.invoke(cli, ["--root", str(project), "status"])

        get.assert_called_once_with("http://127.0.0.1:7655/coverage/info", timeout=5.0)
        assert "Coverage: 75% (3/4 changed lines, 1 files)" in result.output
        assert "Gate: failed" in result.output


class TestPushCommand:
    def test_uploads_artifact(self, project: Path) -> None:
        response = MagicMock(status_code=200)
        response.json.return_value = {"success": True, "files": 1, "coverage": None}
        with patch("changecov.cli.status.httpx.post", return_value=response) as post:
            result = runner.invoke(
                cli,
                ["--root", str(project), "push", str(project / "coverage/coverage-final.json")],
            )

        assert result.exit_code == 0, result.output
        assert "Uploaded 1 files" in result.output
        payload = post.call_args.kwargs["json"]
        assert list(payload["data"]) == [str(project / "src/utils/math.ts")]

    def test_rejected_upload(self, project: Path) -> None:
        response = MagicMock(status_code=400)
        response.json.return_value = {"success": False, "error": "Coverage payload is empty"}
        with patch("changecov.cli.status.httpx.post", return_value=response):
            result = runner.invoke(
                cli,
                ["--root", str(project), "push", str(project / "coverage/coverage-final.json")],
            )

        assert result.exit_code == 1
        assert "Upload rejected" in result.output
