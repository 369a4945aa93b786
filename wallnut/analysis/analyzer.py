"""ComplianceAnalyzer — main entry point for evaluating a project.

Usage::

    from wallnut.analysis import ComplianceAnalyzer
    from wallnut.specialties import SpecialtyRegistry

    registry = SpecialtyRegistry()
    registry.auto_discover()
    analyzer = ComplianceAnalyzer(registry.list_plugins())
    result = analyzer.analyze(project)
    result.findings, result.metrics, result.hierarchy
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from wallnut.analysis.coverage import CoverageSummary, build_metrics, summarize_coverage
from wallnut.analysis.cross_specialty import CrossSpecialtyAnalysis, analyze_cross_specialties
from wallnut.analysis.hierarchy import (
    DEFAULT_TAXONOMY,
    AnalysisHierarchy,
    DomainTaxonomy,
    build_hierarchy,
)
from wallnut.config import FormatSettings
from wallnut.rules.computed import derive_computed_fields
from wallnut.rules.engine import PluginEvaluation, RuleOutcome, evaluate_plugin, index_tables
from wallnut.rules.models import Finding, LookupTable, RuleEvaluationMetrics, SpecialtyPlugin
from wallnut.rules.resolver import ProjectSnapshot

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Everything one analysis produced, in plugin order."""

    findings: list[Finding] = field(default_factory=list)
    metrics: list[RuleEvaluationMetrics] = field(default_factory=list)
    hierarchy: AnalysisHierarchy = field(default_factory=AnalysisHierarchy)
    outcomes: dict[str, list[RuleOutcome]] = field(default_factory=dict)
    """Per-plugin rule outcomes keyed by plugin id."""

    @property
    def coverage(self) -> CoverageSummary:
        return summarize_coverage(self.metrics)


class ComplianceAnalyzer:
    """Evaluate a project against a fixed set of specialty plugins.

    Parameters
    ----------
    plugins:
        Specialty plugins, in the order results are reported.
    lookup_tables:
        Extra lookup tables; they take precedence over plugin tables of
        the same id.
    taxonomy:
        Domain classification used for the findings hierarchy.
    settings:
        Formatting of interpolated finding text.
    """

    def __init__(
        self,
        plugins: Iterable[SpecialtyPlugin],
        lookup_tables: Mapping[str, LookupTable] | Iterable[LookupTable] | None = None,
        *,
        taxonomy: DomainTaxonomy = DEFAULT_TAXONOMY,
        settings: FormatSettings | None = None,
    ) -> None:
        self.plugins: list[SpecialtyPlugin] = list(plugins)
        self.taxonomy = taxonomy
        self.settings = settings or FormatSettings()
        self.tables: dict[str, LookupTable] = {}
        for plugin in self.plugins:
            self.tables.update(index_tables(plugin.lookup_tables))
        self.tables.update(index_tables(lookup_tables))

    def _evaluate(self, plugin: SpecialtyPlugin, snapshot: ProjectSnapshot) -> PluginEvaluation:
        if plugin.computed_fields:
            derived = derive_computed_fields(snapshot, plugin.computed_fields)
            snapshot = snapshot.with_computed(derived)
        return evaluate_plugin(plugin, snapshot, self.tables, settings=self.settings)

    def analyze(
        self,
        project: Mapping[str, Any],
        computed: Mapping[str, Any] | None = None,
        *,
        max_workers: int | None = None,
    ) -> AnalysisResult:
        """Evaluate every plugin against *project*.

        With ``max_workers > 1`` plugins run on a thread pool.  Results are
        merged in plugin order, so the output matches a sequential run.
        """
        snapshot = ProjectSnapshot(project, computed)

        if max_workers is not None and max_workers > 1 and len(self.plugins) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                futures = [executor.submit(self._evaluate, p, snapshot) for p in self.plugins]
                evaluations = [f.result() for f in futures]
        else:
            evaluations = [self._evaluate(p, snapshot) for p in self.plugins]

        result = AnalysisResult()
        for evaluation in evaluations:
            result.findings.extend(evaluation.findings)
            result.metrics.append(build_metrics(evaluation))
            result.outcomes[evaluation.plugin_id] = list(evaluation.outcomes)
        result.hierarchy = build_hierarchy(result.findings, self.taxonomy)

        summary = result.coverage
        logger.info(
            "Analysis complete: %d plugins, %d/%d rules evaluated (%d%%), %d findings",
            len(self.plugins),
            summary.evaluated_rules,
            summary.total_rules,
            summary.coverage_percent,
            len(result.findings),
        )
        return result

    def cross_specialty(
        self,
        selected_ids: Iterable[str],
        ignore_namespaces: Iterable[str] = (),
    ) -> CrossSpecialtyAnalysis:
        """Fields shared by rules of the selected specialties."""
        return analyze_cross_specialties(
            selected_ids, self.plugins, ignore_namespaces=ignore_namespaces
        )
