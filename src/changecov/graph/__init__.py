"""Source dependency graph and change impact analysis."""

from changecov.graph.analyzer import DependencyGraphAnalyzer, content_hash
from changecov.graph.cache import DependencyCache
from changecov.graph.extract import ImportExtractor, TreeSitterImportExtractor, extract_vue_script
from changecov.graph.models import (
    DependencyRecord,
    GraphStats,
    ImpactLevel,
    ImpactResult,
    ImpactThresholds,
    ModuleFacts,
)
from changecov.graph.resolve import SpecifierResolver

__all__ = [
    "DependencyCache",
    "DependencyGraphAnalyzer",
    "DependencyRecord",
    "GraphStats",
    "ImpactLevel",
    "ImpactResult",
    "ImpactThresholds",
    "ImportExtractor",
    "ModuleFacts",
    "SpecifierResolver",
    "TreeSitterImportExtractor",
    "content_hash",
    "extract_vue_script",
]
