"""Coverage data, merging and incremental coverage.

Istanbul-style coverage maps are merged across samples and intersected with
changed lines to produce per-file and aggregate incremental coverage.
"""

from changecov.coverage.baseline import BaselineStore
from changecov.coverage.differ import (
    CoverageDiffer,
    FileIncrementalCoverage,
    IncrementalCoverageResult,
    OverallCoverage,
)
from changecov.coverage.filters import SourceFilter
from changecov.coverage.istanbul import IstanbulParser
from changecov.coverage.merge import CoverageMerger, merge_coverage_maps, merge_file_coverage
from changecov.coverage.models import (
    CoverageMap,
    CoverageParseError,
    FileCoverageData,
    SourceRange,
    coverage_map_from_istanbul,
    coverage_map_to_istanbul,
)

__all__ = [
    "BaselineStore",
    "CoverageDiffer",
    "CoverageMap",
    "CoverageMerger",
    "CoverageParseError",
    "FileCoverageData",
    "FileIncrementalCoverage",
    "IncrementalCoverageResult",
    "IstanbulParser",
    "OverallCoverage",
    "SourceFilter",
    "SourceRange",
    "coverage_map_from_istanbul",
    "coverage_map_to_istanbul",
    "merge_coverage_maps",
    "merge_file_coverage",
]
