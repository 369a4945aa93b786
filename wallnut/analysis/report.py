"""AnalysisReport model and Markdown report generation."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from wallnut.analysis.analyzer import AnalysisResult
from wallnut.analysis.coverage import summarize_coverage
from wallnut.analysis.hierarchy import AnalysisHierarchy
from wallnut.rules.models import Finding, RuleEvaluationMetrics, Severity


class AnalysisReport(BaseModel):
    """Compliance report for one project analysis."""

    project_name: str = ""
    findings: list[Finding] = Field(default_factory=list)
    metrics: list[RuleEvaluationMetrics] = Field(default_factory=list)
    hierarchy: AnalysisHierarchy = Field(default_factory=AnalysisHierarchy)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_result(cls, result: AnalysisResult, project_name: str = "") -> AnalysisReport:
        return cls(
            project_name=project_name,
            findings=result.findings,
            metrics=result.metrics,
            hierarchy=result.hierarchy,
        )

    @property
    def status(self) -> str:
        """'non_compliant', 'partial' (data missing) or 'compliant'."""
        if self.hierarchy.critical_count or self.hierarchy.warning_count:
            return "non_compliant"
        if any(m.skipped_rules for m in self.metrics):
            return "partial"
        return "compliant"

    def to_markdown(self) -> str:
        """Render the report as a Markdown document."""
        lines: list[str] = []

        lines.append(f"# Relatório de Conformidade — {self.project_name or 'Projeto'}")
        lines.append("")
        lines.append(f"**Estado:** {_STATUS_BADGES.get(self.status, self.status.upper())}")
        lines.append(f"**Gerado:** {self.generated_at.strftime('%Y-%m-%d %H:%M UTC')}")
        lines.append("")

        h = self.hierarchy
        lines.append(
            f"**Constatações:** {h.total_findings} "
            f"({h.critical_count} críticas, {h.warning_count} avisos, {h.info_count} informativas)"
        )
        lines.append("")

        # Coverage per specialty
        if self.metrics:
            summary = summarize_coverage(self.metrics)
            lines.append("## Cobertura")
            lines.append("")
            lines.append("| Especialidade | Regras | Avaliadas | Ignoradas | Cobertura |")
            lines.append("|---------------|--------|-----------|-----------|-----------|")
            for m in self.metrics:
                lines.append(
                    f"| {_cell(m.plugin_name or m.plugin_id)} | {m.total_rules} | "
                    f"{m.evaluated_rules} | {m.skipped_rules} | {m.coverage_percent}% |"
                )
            lines.append(
                f"| **Total** | {summary.total_rules} | {summary.evaluated_rules} | "
                f"{summary.skipped_rules} | {summary.coverage_percent}% |"
            )
            lines.append("")
            if summary.missing_fields:
                lines.append(f"*{summary.missing_message}:* " + ", ".join(
                    f"`{f}`" for f in summary.missing_fields
                ))
                lines.append("")

        # Findings, grouped by domain
        for domain in h.domains:
            label = domain.domain.label or domain.domain.id
            lines.append(f"## {label} ({domain.total_findings})")
            lines.append("")
            for specialty in domain.specialties:
                lines.append(f"### {specialty.area}")
                lines.append("")
                for group in specialty.regulations:
                    lines.append(f"#### {group.regulation}")
                    lines.append("")
                    for f in group.findings:
                        lines.extend(_finding_lines(f))
                    lines.append("")

        if h.ungrouped:
            lines.append("## Outras constatações")
            lines.append("")
            for f in h.ungrouped:
                lines.extend(_finding_lines(f))
            lines.append("")

        return "\n".join(lines)


_STATUS_BADGES = {
    "compliant": "CONFORME",
    "non_compliant": "NÃO CONFORME",
    "partial": "PARCIAL",
}

_SEVERITY_ICONS = {
    Severity.CRITICAL: "CRÍTICO",
    Severity.WARNING: "AVISO",
    Severity.INFO: "INFO",
    Severity.PASS: "OK",
}


def _cell(text: str) -> str:
    return text.replace("|", "\\|")


def _finding_lines(f: Finding) -> list[str]:
    head = f"- **[{_SEVERITY_ICONS[f.severity]}]** {f.description}"
    if f.article:
        head += f" ({f.article})"
    lines = [head]
    if f.current_value is not None or f.required_value is not None:
        lines.append(
            f"  Atual: {f.current_value or '—'} · Exigido: {f.required_value or '—'}"
        )
    if f.remediation:
        lines.append(f"  *Correção:* {f.remediation}")
    return lines
