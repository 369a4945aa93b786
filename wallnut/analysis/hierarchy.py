"""Analysis hierarchy — findings grouped Domain → Specialty → Regulation.

Engineers read the tree top-down: most serious domain first, then each
specialty and the regulations it violates.  Domains come from a
:class:`DomainTaxonomy`, a small versioned mapping of specialty areas to
domains passed in by the caller.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from wallnut.config import UNASSIGNED_REGULATION
from wallnut.rules.models import Finding, Severity, worst_severity

_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DomainDefinition(BaseModel):
    """A logical group of specialty areas."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    label: str = ""
    description: str = ""
    areas: list[str] = Field(default_factory=list)
    """Areas in display order."""

    base_priority: int = 0
    """Lower is shown first when domains tie on severity."""


class DomainTaxonomy(BaseModel):
    """Versioned specialty → domain classification."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    version: str = "1"
    domains: list[DomainDefinition] = Field(default_factory=list)

    def domain_for_area(self, area: str) -> DomainDefinition | None:
        for domain in self.domains:
            if area in domain.areas:
                return domain
        return None


DEFAULT_TAXONOMY = DomainTaxonomy(
    version="2024.1",
    domains=[
        DomainDefinition(
            id="safety",
            label="Segurança",
            description="Segurança estrutural, incêndio e sísmica",
            areas=["structural", "fire_safety"],
            base_priority=0,
        ),
        DomainDefinition(
            id="habitability",
            label="Habitabilidade",
            description="Conforto térmico, acústico e acessibilidade",
            areas=["thermal", "acoustic", "accessibility"],
            base_priority=1,
        ),
        DomainDefinition(
            id="energy",
            label="Energia e Sustentabilidade",
            description="Eficiência energética, certificação e resíduos",
            areas=["energy", "waste"],
            base_priority=2,
        ),
        DomainDefinition(
            id="infrastructure",
            label="Infraestruturas",
            description="Instalações elétricas, águas, gás, AVAC e telecomunicações",
            areas=["electrical", "water_drainage", "gas", "hvac", "telecommunications", "elevators"],
            base_priority=3,
        ),
        DomainDefinition(
            id="architecture",
            label="Arquitetura e Urbanismo",
            description="Projeto de arquitetura, regulamentos municipais e peças desenhadas",
            areas=["architecture", "general", "municipal", "drawings"],
            base_priority=4,
        ),
        DomainDefinition(
            id="licensing",
            label="Licenciamento",
            description="Procedimento de licenciamento urbanístico",
            areas=["licensing"],
            base_priority=5,
        ),
    ],
)


# ---------------------------------------------------------------------------
# Tree nodes
# ---------------------------------------------------------------------------


class SeverityCounts(BaseModel):
    model_config = _CONFIG

    critical_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    pass_count: int = 0
    total_findings: int = 0
    worst_severity: Severity = Severity.PASS

    def add_finding(self, finding: Finding) -> None:
        self._bump(finding.severity, 1)
        self.total_findings += 1
        self.worst_severity = worst_severity(self.worst_severity, finding.severity)

    def add_counts(self, other: SeverityCounts) -> None:
        self.critical_count += other.critical_count
        self.warning_count += other.warning_count
        self.info_count += other.info_count
        self.pass_count += other.pass_count
        self.total_findings += other.total_findings
        if other.total_findings:
            self.worst_severity = worst_severity(self.worst_severity, other.worst_severity)

    def _bump(self, severity: Severity, n: int) -> None:
        if severity is Severity.CRITICAL:
            self.critical_count += n
        elif severity is Severity.WARNING:
            self.warning_count += n
        elif severity is Severity.INFO:
            self.info_count += n
        else:
            self.pass_count += n


class RegulationGroup(SeverityCounts):
    regulation: str
    findings: list[Finding] = Field(default_factory=list)


class SpecialtyGroup(SeverityCounts):
    area: str
    regulations: list[RegulationGroup] = Field(default_factory=list)


class DomainGroup(SeverityCounts):
    domain: DomainDefinition
    specialties: list[SpecialtyGroup] = Field(default_factory=list)


class AnalysisHierarchy(SeverityCounts):
    """Root of the tree; its counts cover every finding, ungrouped included."""

    taxonomy_version: str = ""
    domains: list[DomainGroup] = Field(default_factory=list)
    ungrouped: list[Finding] = Field(default_factory=list)
    """Findings whose area the taxonomy does not know."""


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def _severity_then_size(node: SeverityCounts) -> tuple[int, int]:
    return (node.worst_severity.rank, -node.total_findings)


def build_hierarchy(
    findings: Iterable[Finding],
    taxonomy: DomainTaxonomy = DEFAULT_TAXONOMY,
) -> AnalysisHierarchy:
    """Group *findings* into a fresh :class:`AnalysisHierarchy`.

    Sorting at every level (ties keep first-seen order):

    - findings by severity, critical first;
    - regulations and specialties by worst severity, then size;
    - domains by worst severity, then base priority.
    """
    area_to_domain: dict[str, DomainDefinition] = {}
    for domain in taxonomy.domains:
        for area in domain.areas:
            area_to_domain.setdefault(area, domain)

    root = AnalysisHierarchy(taxonomy_version=taxonomy.version)
    buckets: dict[str, dict[str, RegulationGroup]] = {}

    for f in findings:
        root.add_finding(f)
        if f.area not in area_to_domain:
            root.ungrouped.append(f)
            continue
        regs = buckets.setdefault(f.area, {})
        key = f.regulation or UNASSIGNED_REGULATION
        group = regs.get(key)
        if group is None:
            group = regs[key] = RegulationGroup(regulation=key)
        group.findings.append(f)
        group.add_finding(f)

    for domain in taxonomy.domains:
        node = DomainGroup(domain=domain)
        for area in domain.areas:
            regs = buckets.get(area)
            if not regs or area_to_domain[area] is not domain:
                continue
            specialty = SpecialtyGroup(area=area)
            for group in regs.values():
                group.findings.sort(key=lambda f: f.severity.rank)
                specialty.regulations.append(group)
                specialty.add_counts(group)
            specialty.regulations.sort(key=_severity_then_size)
            node.specialties.append(specialty)
            node.add_counts(specialty)
        if node.specialties:
            node.specialties.sort(key=_severity_then_size)
            root.domains.append(node)

    root.domains.sort(key=lambda d: (d.worst_severity.rank, d.domain.base_priority))
    return root
