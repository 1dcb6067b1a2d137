"""Dependency graph and impact data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True, slots=True)
class ModuleFacts:
    """What a source file imports and exports, as written in the file."""

    imports: tuple[str, ...] = ()
    exports: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class DependencyRecord:
    """One source file in the dependency graph.

    ``imports`` holds raw specifiers; ``resolved_dependencies`` holds the
    absolute paths of the imported files that are part of the graph.
    """

    file_path: str
    imports: tuple[str, ...]
    exports: tuple[str, ...]
    resolved_dependencies: tuple[str, ...]
    content_hash: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "imports": list(self.imports),
            "exports": list(self.exports),
            "resolved_dependencies": list(self.resolved_dependencies),
            "content_hash": self.content_hash,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> DependencyRecord:
        return cls(
            file_path=str(raw["file_path"]),
            imports=tuple(str(s) for s in raw.get("imports", [])),
            exports=tuple(str(s) for s in raw.get("exports", [])),
            resolved_dependencies=tuple(str(s) for s in raw.get("resolved_dependencies", [])),
            content_hash=str(raw["content_hash"]),
        )


class ImpactLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True, slots=True)
class ImpactThresholds:
    """Counts are exclusive lower bounds: more than ``high_total`` is high."""

    high_total: int = 10
    high_pages: int = 3
    medium_total: int = 5
    medium_pages: int = 1

    def classify(self, pages: int, components: int) -> ImpactLevel:
        total = pages + components
        if total > self.high_total or pages > self.high_pages:
            return ImpactLevel.HIGH
        if total > self.medium_total or pages > self.medium_pages:
            return ImpactLevel.MEDIUM
        return ImpactLevel.LOW


@dataclass(frozen=True, slots=True)
class GraphStats:
    files: int
    cache_hits: int
    parsed: int
    failed: int
    duration_ms: int


@dataclass(frozen=True, slots=True)
class ImpactResult:
    affected_pages: list[str] = field(default_factory=list)
    affected_components: list[str] = field(default_factory=list)
    impact_level: ImpactLevel = ImpactLevel.LOW
    propagation_paths: list[list[str]] = field(default_factory=list)
    regression_suggestions: list[str] = field(default_factory=list)
    regression_command: str = ""

    @property
    def impact_size(self) -> int:
        return len(self.affected_pages) + len(self.affected_components)

    def to_dict(self) -> dict[str, Any]:
        return {
            "affectedPages": list(self.affected_pages),
            "affectedComponents": list(self.affected_components),
            "impactLevel": self.impact_level.value,
            "propagationPaths": [list(p) for p in self.propagation_paths],
            "regressionTestSuggestions": list(self.regression_suggestions),
            "regressionTestCommand": self.regression_command,
        }
