"""Coverage accounting — how much of each specialty could be evaluated."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, Field

from wallnut.rules.engine import PluginEvaluation
from wallnut.rules.models import RuleEvaluationMetrics


def coverage_percent(evaluated: int, total: int) -> int:
    """``evaluated / total`` as a whole percentage, rounding half up.

    An empty specialty has nothing missing, so it reports 100.
    """
    if total <= 0:
        return 100
    return (evaluated * 200 + total) // (total * 2)


def build_metrics(evaluation: PluginEvaluation) -> RuleEvaluationMetrics:
    """Tally one plugin's outcomes.

    Every rule (enabled or not) counts towards ``total_rules`` and lands in
    exactly one of ``evaluated_rules`` / ``skipped_rules``.
    """
    total = len(evaluation.outcomes)
    evaluated = 0
    fired = 0
    missing: set[str] = set()
    for outcome in evaluation.outcomes:
        if outcome.decided:
            evaluated += 1
        else:
            missing.update(outcome.missing_fields)
        if outcome.is_fail:
            fired += 1

    return RuleEvaluationMetrics(
        plugin_id=evaluation.plugin_id,
        plugin_name=evaluation.plugin_name,
        area=evaluation.area,
        total_rules=total,
        evaluated_rules=evaluated,
        skipped_rules=total - evaluated,
        fired_rules=fired,
        coverage_percent=coverage_percent(evaluated, total),
        missing_fields=sorted(missing),
    )


class CoverageSummary(BaseModel):
    """Totals across all specialties."""

    total_rules: int = 0
    evaluated_rules: int = 0
    skipped_rules: int = 0
    fired_rules: int = 0
    coverage_percent: int = 100
    missing_fields: list[str] = Field(default_factory=list)

    @property
    def missing_message(self) -> str:
        n = len(self.missing_fields)
        if n == 0:
            return ""
        return f"{n} campo{'s' if n != 1 else ''} em falta"


def summarize_coverage(metrics: Iterable[RuleEvaluationMetrics]) -> CoverageSummary:
    """Sum per-plugin metrics into overall totals."""
    summary = CoverageSummary()
    missing: set[str] = set()
    for m in metrics:
        summary.total_rules += m.total_rules
        summary.evaluated_rules += m.evaluated_rules
        summary.skipped_rules += m.skipped_rules
        summary.fired_rules += m.fired_rules
        missing.update(m.missing_fields)
    summary.missing_fields = sorted(missing)
    summary.coverage_percent = coverage_percent(summary.evaluated_rules, summary.total_rules)
    return summary
