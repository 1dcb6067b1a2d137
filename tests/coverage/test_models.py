"""Tests for the Istanbul coverage data model."""

from pathlib import Path
from typing import Any

import pytest

from changecov.coverage.models import (
    CoverageParseError,
    FileCoverageData,
    SourceRange,
    coverage_map_from_istanbul,
    normalize_path,
)


def _loc(start: int, end: int) -> dict[str, Any]:
    return {"start": {"line": start, "column": 0}, "end": {"line": end, "column": 10}}


class TestSourceRange:
    def test_contains_line_is_inclusive(self) -> None:
        rng = SourceRange(3, 0, 5, 1)

        assert rng.contains_line(3)
        assert rng.contains_line(5)
        assert not rng.contains_line(6)

    def test_missing_end_defaults_to_start(self) -> None:
        rng = SourceRange.from_istanbul({"start": {"line": 7, "column": 2}})

        assert (rng.start_line, rng.end_line) == (7, 7)

    def test_null_columns_are_kept(self) -> None:
        raw = {"start": {"line": 1, "column": None}, "end": {"line": 2, "column": None}}

        rng = SourceRange.from_istanbul(raw)

        assert rng.start_column is None
        assert rng.to_istanbul() == raw

    def test_bad_line_raises(self) -> None:
        with pytest.raises(CoverageParseError):
            SourceRange.from_istanbul({"start": {"line": "x"}, "end": {"line": 1}})


class TestFileCoverageData:
    def test_from_istanbul_parses_all_maps(self) -> None:
        raw = {
            "path": "/repo/src/a.ts",
            "statementMap": {"0": _loc(1, 1), "1": _loc(2, 3)},
            "fnMap": {"0": {"name": "add", "decl": _loc(1, 1), "loc": _loc(1, 3), "line": 1}},
            "branchMap": {
                "0": {"type": "if", "loc": _loc(2, 2), "locations": [_loc(2, 2), _loc(3, 3)]}
            },
            "s": {"0": 1, "1": 0},
            "f": {"0": 1},
            "b": {"0": [1, 0]},
        }

        data = FileCoverageData.from_istanbul(raw)

        assert data.path == "/repo/src/a.ts"
        assert data.statements_found == 2
        assert data.statements_hit == 1
        assert data.fn_map["0"].name == "add"
        assert len(data.branch_map["0"].locations) == 2
        assert data.b == {"0": [1, 0]}
        assert data.has_static_maps

    def test_orphan_counters_are_dropped(self) -> None:
        raw = {"path": "a.ts", "statementMap": {"0": _loc(1, 1)}, "s": {"0": 2, "9": 4}}

        data = FileCoverageData.from_istanbul(raw)

        assert data.s == {"0": 2}

    def test_counter_only_entry_is_thin(self) -> None:
        data = FileCoverageData.from_istanbul({"path": "a.ts", "s": {"0": 2}})

        assert not data.has_static_maps
        assert data.s == {"0": 2}

    @pytest.mark.parametrize("count", [-1, "3", True, None])
    def test_invalid_counts_rejected(self, count: Any) -> None:
        raw = {"path": "a.ts", "statementMap": {"0": _loc(1, 1)}, "s": {"0": count}}

        with pytest.raises(CoverageParseError):
            FileCoverageData.from_istanbul(raw)

    def test_missing_path_rejected(self) -> None:
        with pytest.raises(CoverageParseError):
            FileCoverageData.from_istanbul({"statementMap": {}})

    def test_copy_has_independent_counters(self) -> None:
        data = FileCoverageData(path="a.ts", s={"0": 1}, b={"0": [1, 0]})

        clone = data.copy()
        clone.s["0"] = 5
        clone.b["0"][1] = 7

        assert data.s == {"0": 1}
        assert data.b == {"0": [1, 0]}


class TestCoverageMap:
    def test_key_used_when_entry_has_no_path(self) -> None:
        result = coverage_map_from_istanbul({"/r/a.ts": {"statementMap": {}, "s": {}}})

        assert list(result) == ["/r/a.ts"]

    def test_top_level_must_be_object(self) -> None:
        with pytest.raises(CoverageParseError):
            coverage_map_from_istanbul(["not", "a", "map"])


class TestNormalizePath:
    def test_relative_resolves_against_root(self, tmp_path: Path) -> None:
        assert normalize_path("src/a.ts", tmp_path) == str((tmp_path / "src/a.ts").resolve())

    def test_dot_segments_collapse(self, tmp_path: Path) -> None:
        path = str(tmp_path / "src" / ".." / "lib" / "b.ts")

        assert normalize_path(path, tmp_path) == str((tmp_path / "lib/b.ts").resolve())
