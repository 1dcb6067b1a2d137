"""Coverage data model.

One ``FileCoverageData`` per instrumented source file, in the shape produced
by Istanbul-style instrumenters: static position maps recorded once per file
plus hit counters that grow as samples are merged. ``from_istanbul`` and
``to_istanbul`` convert to and from the JSON wire format
(``statementMap``/``fnMap``/``branchMap``/``s``/``f``/``b``).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


class CoverageParseError(Exception):
    """Error parsing coverage data."""

    pass


@dataclass(frozen=True, slots=True)
class SourceRange:
    """Start/end position in a source file. Lines are 1-based."""

    start_line: int
    start_column: int | None
    end_line: int
    end_column: int | None

    def contains_line(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line

    @classmethod
    def from_istanbul(cls, raw: Any) -> SourceRange:
        if not isinstance(raw, dict):
            raise CoverageParseError(f"Expected location object, got {type(raw).__name__}")
        start = raw.get("start")
        end = raw.get("end") or start
        if not isinstance(start, dict) or not isinstance(end, dict):
            raise CoverageParseError("Location is missing start/end")
        try:
            start_line = int(start["line"])
            end_line = int(end["line"])
        except (KeyError, TypeError, ValueError) as e:
            raise CoverageParseError(f"Invalid location line: {e}") from e
        return cls(
            start_line=start_line,
            start_column=_optional_int(start.get("column")),
            end_line=max(start_line, end_line),
            end_column=_optional_int(end.get("column")),
        )

    def to_istanbul(self) -> dict[str, Any]:
        return {
            "start": {"line": self.start_line, "column": self.start_column},
            "end": {"line": self.end_line, "column": self.end_column},
        }


@dataclass(frozen=True, slots=True)
class FunctionMeta:
    """Static metadata of one instrumented function."""

    name: str
    decl: SourceRange
    loc: SourceRange
    line: int

    @classmethod
    def from_istanbul(cls, raw: Any) -> FunctionMeta:
        if not isinstance(raw, dict):
            raise CoverageParseError("Function entry must be an object")
        loc = SourceRange.from_istanbul(raw.get("loc"))
        decl = SourceRange.from_istanbul(raw["decl"]) if raw.get("decl") else loc
        return cls(
            name=str(raw.get("name", "(anonymous)")),
            decl=decl,
            loc=loc,
            line=_optional_int(raw.get("line")) or loc.start_line,
        )

    def to_istanbul(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "decl": self.decl.to_istanbul(),
            "loc": self.loc.to_istanbul(),
            "line": self.line,
        }


@dataclass(frozen=True, slots=True)
class BranchMeta:
    """Static metadata of one branch point and its arm locations."""

    type: str
    loc: SourceRange
    locations: tuple[SourceRange, ...]
    line: int

    @classmethod
    def from_istanbul(cls, raw: Any) -> BranchMeta:
        if not isinstance(raw, dict):
            raise CoverageParseError("Branch entry must be an object")
        loc = SourceRange.from_istanbul(raw.get("loc"))
        arms = raw.get("locations") or []
        if not isinstance(arms, list):
            raise CoverageParseError("Branch locations must be a list")
        return cls(
            type=str(raw.get("type", "")),
            loc=loc,
            locations=tuple(SourceRange.from_istanbul(a) for a in arms),
            line=_optional_int(raw.get("line")) or loc.start_line,
        )

    def to_istanbul(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "loc": self.loc.to_istanbul(),
            "locations": [a.to_istanbul() for a in self.locations],
            "line": self.line,
        }


@dataclass(slots=True)
class FileCoverageData:
    """Static maps and hit counters for a single source file.

    ``has_static_maps`` is False for thin samples that carry only counters;
    those are completed from previously registered maps of the same file.
    """

    path: str
    statement_map: dict[str, SourceRange] = field(default_factory=dict)
    fn_map: dict[str, FunctionMeta] = field(default_factory=dict)
    branch_map: dict[str, BranchMeta] = field(default_factory=dict)
    s: dict[str, int] = field(default_factory=dict)
    f: dict[str, int] = field(default_factory=dict)
    b: dict[str, list[int]] = field(default_factory=dict)
    has_static_maps: bool = True

    @property
    def statements_found(self) -> int:
        return len(self.statement_map)

    @property
    def statements_hit(self) -> int:
        return sum(1 for sid in self.statement_map if self.s.get(sid, 0) > 0)

    def copy(self) -> FileCoverageData:
        """Copy with independent counter containers (static maps are immutable)."""
        return FileCoverageData(
            path=self.path,
            statement_map=dict(self.statement_map),
            fn_map=dict(self.fn_map),
            branch_map=dict(self.branch_map),
            s=dict(self.s),
            f=dict(self.f),
            b={k: list(v) for k, v in self.b.items()},
            has_static_maps=self.has_static_maps,
        )

    @classmethod
    def from_istanbul(cls, raw: Any, path: str | None = None) -> FileCoverageData:
        """Build from one Istanbul file entry.

        Counter ids missing from their static map are dropped, unless the
        entry carries no ``statementMap`` at all (a thin sample).

        Raises:
            CoverageParseError: If the entry is structurally invalid.
        """
        if not isinstance(raw, dict):
            raise CoverageParseError(f"Coverage entry must be an object, got {type(raw).__name__}")
        file_path = path or raw.get("path")
        if not file_path or not isinstance(file_path, str):
            raise CoverageParseError("Coverage entry has no path")

        has_static = "statementMap" in raw
        statement_map = {
            str(k): SourceRange.from_istanbul(v) for k, v in _mapping(raw, "statementMap").items()
        }
        fn_map = {str(k): FunctionMeta.from_istanbul(v) for k, v in _mapping(raw, "fnMap").items()}
        branch_map = {
            str(k): BranchMeta.from_istanbul(v) for k, v in _mapping(raw, "branchMap").items()
        }

        s = {str(k): _count(v) for k, v in _mapping(raw, "s").items()}
        f = {str(k): _count(v) for k, v in _mapping(raw, "f").items()}
        b: dict[str, list[int]] = {}
        for k, arms in _mapping(raw, "b").items():
            if not isinstance(arms, list):
                raise CoverageParseError(f"Branch counts for {k} must be a list")
            b[str(k)] = [_count(v) for v in arms]

        if has_static:
            s = {k: v for k, v in s.items() if k in statement_map}
            f = {k: v for k, v in f.items() if k in fn_map}
            b = {k: v for k, v in b.items() if k in branch_map}

        return cls(
            path=file_path,
            statement_map=statement_map,
            fn_map=fn_map,
            branch_map=branch_map,
            s=s,
            f=f,
            b=b,
            has_static_maps=has_static,
        )

    def to_istanbul(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "statementMap": {k: v.to_istanbul() for k, v in self.statement_map.items()},
            "fnMap": {k: v.to_istanbul() for k, v in self.fn_map.items()},
            "branchMap": {k: v.to_istanbul() for k, v in self.branch_map.items()},
            "s": dict(self.s),
            "f": dict(self.f),
            "b": {k: list(v) for k, v in self.b.items()},
        }


CoverageMap = dict[str, FileCoverageData]


def coverage_map_from_istanbul(raw: Any) -> CoverageMap:
    """Parse a whole Istanbul coverage object keyed by file path.

    Raises:
        CoverageParseError: If the top level is not an object or any entry is invalid.
    """
    if not isinstance(raw, dict):
        raise CoverageParseError(f"Coverage map must be an object, got {type(raw).__name__}")
    result: CoverageMap = {}
    for key, entry in raw.items():
        path = entry.get("path") if isinstance(entry, dict) else None
        data = FileCoverageData.from_istanbul(entry, path=path or key)
        result[data.path] = data
    return result


def coverage_map_to_istanbul(coverage: CoverageMap) -> dict[str, Any]:
    return {path: data.to_istanbul() for path, data in coverage.items()}


def normalize_path(path: str, root: Path) -> str:
    """Absolute, normalized form of ``path`` (relative paths resolve against ``root``)."""
    p = Path(path)
    if not p.is_absolute():
        p = root / p
    return os.path.normpath(str(p.resolve()))


def _mapping(raw: dict[str, Any], key: str) -> dict[Any, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise CoverageParseError(f"'{key}' must be an object")
    return value


def _count(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise CoverageParseError(f"Hit count must be a number, got {value!r}")
    if value < 0:
        raise CoverageParseError(f"Hit count must be non-negative, got {value!r}")
    return int(value)


def _optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
