"""Istanbul/NYC JSON coverage artifacts.

Istanbul (used by Jest, Vitest, NYC) writes ``coverage-final.json``:
{
  "/path/to/file.js": {
    "path": "/path/to/file.js",
    "statementMap": { "0": {"start": {"line": 1, "column": 0}, "end": ...}, ... },
    "s": { "0": 1, "1": 0, ... },
    "branchMap": { "0": {"type": "if", "locations": [...], "line": 5}, ... },
    "b": { "0": [1, 0], ... },
    "fnMap": { "0": {"name": "foo", "decl": {...}, "loc": {...}}, ... },
    "f": { "0": 1, ... }
  }
}
"""

import json
from pathlib import Path

from changecov.coverage.models import CoverageMap, CoverageParseError, coverage_map_from_istanbul


class IstanbulParser:
    """Parser for Istanbul JSON files and coverage directories."""

    @property
    def format_id(self) -> str:
        return "istanbul"

    def can_parse(self, path: Path) -> bool:
        """Check if path contains Istanbul coverage data."""
        if path.is_dir():
            return (path / "coverage-final.json").exists()
        if not path.is_file():
            return False
        if path.name == "coverage-final.json":
            return True

        # Content sniff for JSON with statementMap
        try:
            with path.open() as f:
                header = f.read(2048)
        except (OSError, UnicodeDecodeError):
            return False
        return '"statementMap"' in header or '"fnMap"' in header

    def parse(self, path: Path) -> CoverageMap:
        """Parse an Istanbul JSON file (or a directory holding coverage-final.json).

        Raises:
            CoverageParseError: If the file is missing or not valid coverage JSON.
        """
        if not path.exists():
            raise CoverageParseError(f"Istanbul path not found: {path}")

        if path.is_dir():
            json_file = path / "coverage-final.json"
            if not json_file.exists():
                raise CoverageParseError(f"coverage-final.json not found in {path}")
        else:
            json_file = path

        try:
            with json_file.open() as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CoverageParseError(f"Failed to parse Istanbul JSON: {e}") from e

        return coverage_map_from_istanbul(data)
