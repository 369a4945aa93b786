"""Project analysis — coverage, findings hierarchy and cross-specialty links."""

from wallnut.analysis.analyzer import AnalysisResult, ComplianceAnalyzer
from wallnut.analysis.coverage import (
    CoverageSummary,
    build_metrics,
    coverage_percent,
    summarize_coverage,
)
from wallnut.analysis.cross_specialty import (
    CrossSpecialtyAnalysis,
    CrossSpecialtyPair,
    analyze_cross_specialties,
    rule_field_refs,
)
from wallnut.analysis.hierarchy import (
    DEFAULT_TAXONOMY,
    AnalysisHierarchy,
    DomainDefinition,
    DomainGroup,
    DomainTaxonomy,
    RegulationGroup,
    SpecialtyGroup,
    build_hierarchy,
)
from wallnut.analysis.report import AnalysisReport

__all__ = [
    "AnalysisHierarchy",
    "AnalysisReport",
    "AnalysisResult",
    "ComplianceAnalyzer",
    "CoverageSummary",
    "CrossSpecialtyAnalysis",
    "CrossSpecialtyPair",
    "DEFAULT_TAXONOMY",
    "DomainDefinition",
    "DomainGroup",
    "DomainTaxonomy",
    "RegulationGroup",
    "SpecialtyGroup",
    "analyze_cross_specialties",
    "build_hierarchy",
    "build_metrics",
    "coverage_percent",
    "rule_field_refs",
    "summarize_coverage",
]
