"""Rule evaluation — turns declarative rules into outcomes and findings.

Usage::

    from wallnut.rules import ProjectSnapshot, evaluate_plugin

    snapshot = ProjectSnapshot(project, computed=derived)
    evaluation = evaluate_plugin(plugin, snapshot)
    evaluation.findings      # fired rules
    evaluation.outcomes      # one RuleOutcome per rule, in plugin order
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Literal

from wallnut.config import FormatSettings
from wallnut.rules.conditions import evaluate_condition, lookup_threshold
from wallnut.rules.interpolate import format_value, interpolate
from wallnut.rules.models import (
    DeclarativeRule,
    Finding,
    LookupTable,
    Severity,
    SpecialtyPlugin,
)
from wallnut.rules.registry import RegulationRegistry
from wallnut.rules.resolver import ProjectSnapshot
from wallnut.rules.validate import validate_rule

logger = logging.getLogger(__name__)

OutcomeStatus = Literal["pass", "fail", "skip"]

# Skip reasons
DISABLED = "disabled"
MALFORMED = "malformed"
INACTIVE_REGULATION = "inactive_regulation"
EXCLUDED = "excluded"
INSUFFICIENT_DATA = "insufficient_data"

# A lookup condition describes the violation; the requirement is its negation.
_REQUIRED_SYMBOLS = {
    ">": "≤", ">=": "<", "<": "≥", "<=": ">", "==": "≠", "!=": "=",
}


@dataclass(frozen=True)
class RuleOutcome:
    """Verdict for one rule against one project."""

    rule_id: str
    regulation_id: str
    status: OutcomeStatus
    reason: str = ""
    """Why the rule was skipped (empty for pass/fail)."""

    finding: Finding | None = None
    """Present only for ``fail`` outcomes."""

    missing_fields: tuple[str, ...] = ()
    diagnostics: tuple[str, ...] = ()

    @property
    def is_pass(self) -> bool:
        return self.status == "pass"

    @property
    def is_fail(self) -> bool:
        return self.status == "fail"

    @property
    def is_skip(self) -> bool:
        return self.status == "skip"

    @property
    def decided(self) -> bool:
        """True when the data at hand settled the rule.

        Excluded rules count: an exclusion proven true is a decision.
        """
        return self.status != "skip" or self.reason == EXCLUDED


@dataclass
class PluginEvaluation:
    """All outcomes of one plugin against one project."""

    plugin_id: str
    plugin_name: str = ""
    area: str = ""
    outcomes: list[RuleOutcome] = field(default_factory=list)

    @property
    def findings(self) -> list[Finding]:
        return [o.finding for o in self.outcomes if o.finding is not None]


def index_tables(
    tables: Mapping[str, LookupTable] | Iterable[LookupTable] | None,
) -> dict[str, LookupTable]:
    """Return lookup tables keyed by id."""
    if tables is None:
        return {}
    if isinstance(tables, Mapping):
        return dict(tables)
    return {t.id: t for t in tables}


def _skip(rule: DeclarativeRule, reason: str, **kwargs) -> RuleOutcome:
    return RuleOutcome(rule.id, rule.regulation_id, "skip", reason, **kwargs)


def resolve_required_value(
    rule: DeclarativeRule,
    snapshot: ProjectSnapshot,
    tables: Mapping[str, LookupTable],
    settings: FormatSettings | None = None,
) -> str | None:
    """Render the requirement behind the rule's first lookup condition, e.g. ``≥ 60``.

    ``lookup_lt`` against a cell of 60 fires below 60, so 60 or more is required.
    """
    settings = settings or FormatSettings()
    for cond in rule.conditions:
        op = cond.op
        if op is None or op.family != "lookup":
            continue
        threshold, skip = lookup_threshold(cond, snapshot, tables)
        if skip is not None:
            return None
        symbol = _REQUIRED_SYMBOLS.get(op.comparator, "=")
        return f"{symbol} {format_value(threshold, settings)}"
    return None


def build_finding(
    rule: DeclarativeRule,
    snapshot: ProjectSnapshot,
    tables: Mapping[str, LookupTable],
    *,
    plugin_id: str = "",
    area: str = "",
    regulation: str = "",
    settings: FormatSettings | None = None,
) -> Finding:
    """Materialise the finding for a fired rule, interpolating its text."""
    settings = settings or FormatSettings()
    required = resolve_required_value(rule, snapshot, tables, settings)
    if required is None and rule.required_value:
        required = interpolate(rule.required_value, snapshot, settings)
    current = (
        interpolate(rule.current_value_template, snapshot, settings)
        if rule.current_value_template
        else None
    )
    return Finding(
        id=f"PF-{rule.regulation_id}-{rule.id}",
        source_rule_id=rule.id,
        plugin_id=plugin_id,
        area=area or plugin_id,
        regulation=regulation or rule.regulation_id,
        article=rule.article,
        severity=Severity(rule.severity),
        description=interpolate(rule.description, snapshot, settings),
        current_value=current,
        required_value=required,
        remediation=interpolate(rule.remediation, snapshot, settings),
    )


def evaluate_rule(
    rule: DeclarativeRule,
    snapshot: ProjectSnapshot,
    tables: Mapping[str, LookupTable] | Iterable[LookupTable] | None = None,
    *,
    plugin_id: str = "",
    area: str = "",
    regulation: str = "",
    settings: FormatSettings | None = None,
) -> RuleOutcome:
    """Evaluate *rule* against *snapshot*.

    Order of decisions:

    1. disabled rules and structurally invalid rules are skipped;
    2. any exclusion proven true skips the rule (skipped exclusions count
       as not true, malformed ones make the rule malformed);
    3. conditions are ANDed: a malformed condition skips the rule as
       malformed, else a definite ``false`` passes it, else any skipped
       condition skips it;
    4. all conditions true fires the rule and yields a finding.
    """
    if not rule.enabled:
        return _skip(rule, DISABLED)

    issues = validate_rule(rule)
    if issues:
        messages = tuple(str(i) for i in issues)
        logger.warning("Skipping malformed rule %s: %s", rule.id or "<no id>", "; ".join(messages))
        return _skip(rule, MALFORMED, diagnostics=messages)

    table_map = index_tables(tables)
    diagnostics: list[str] = []

    for cond in rule.exclusions:
        result = evaluate_condition(cond, snapshot, table_map)
        if result.malformed:
            diagnostics.append(f"exclusion {cond.field} {cond.operator}: {result.reason}")
            logger.warning("Skipping rule %s: %s", rule.id, result.reason)
            return _skip(rule, MALFORMED, diagnostics=tuple(diagnostics))
        if result.skipped:
            diagnostics.append(f"exclusion {cond.field} {cond.operator}: {result.reason}")
            continue
        if result.result:
            return _skip(rule, EXCLUDED, diagnostics=(f"excluded by {cond.field} {cond.operator}",))

    missing: list[str] = []
    skipped = False
    disproved = False
    # Every condition is evaluated: a malformed one outranks a definite false.
    for cond in rule.conditions:
        result = evaluate_condition(cond, snapshot, table_map)
        if result.malformed:
            diagnostics.append(f"{cond.field} {cond.operator}: {result.reason}")
            logger.warning("Skipping rule %s: %s", rule.id, result.reason)
            return _skip(rule, MALFORMED, diagnostics=tuple(diagnostics))
        if result.skipped:
            skipped = True
            diagnostics.append(f"{cond.field} {cond.operator}: {result.reason}")
            if result.missing_field and result.missing_field not in missing:
                missing.append(result.missing_field)
            continue
        if not result.result:
            disproved = True

    if disproved:
        return RuleOutcome(rule.id, rule.regulation_id, "pass", diagnostics=tuple(diagnostics))
    if skipped:
        logger.debug("Rule %s skipped for missing data: %s", rule.id, ", ".join(missing) or diagnostics)
        return _skip(
            rule,
            INSUFFICIENT_DATA,
            missing_fields=tuple(missing),
            diagnostics=tuple(diagnostics),
        )

    finding = build_finding(
        rule,
        snapshot,
        table_map,
        plugin_id=plugin_id,
        area=area,
        regulation=regulation,
        settings=settings,
    )
    return RuleOutcome(
        rule.id,
        rule.regulation_id,
        "fail",
        finding=finding,
        diagnostics=tuple(diagnostics),
    )


def evaluate_plugin(
    plugin: SpecialtyPlugin,
    snapshot: ProjectSnapshot,
    tables: Mapping[str, LookupTable] | Iterable[LookupTable] | None = None,
    *,
    settings: FormatSettings | None = None,
) -> PluginEvaluation:
    """Evaluate every rule of *plugin*, in plugin order.

    Lookup tables are the plugin's own tables overlaid with *tables*.
    Rules of superseded, revoked or draft regulations are skipped.
    """
    registry = RegulationRegistry(plugin)
    table_map = index_tables(plugin.lookup_tables)
    table_map.update(index_tables(tables))

    evaluation = PluginEvaluation(
        plugin_id=plugin.id,
        plugin_name=plugin.name,
        area=plugin.areas[0] if plugin.areas else plugin.id,
    )
    for rule in plugin.rules:
        if rule.enabled and not registry.is_applicable(rule.regulation_id):
            evaluation.outcomes.append(_skip(rule, INACTIVE_REGULATION))
            continue
        evaluation.outcomes.append(
            evaluate_rule(
                rule,
                snapshot,
                table_map,
                plugin_id=plugin.id,
                area=registry.area_for(rule.regulation_id),
                regulation=registry.regulation_ref(rule.regulation_id),
                settings=settings,
            )
        )

    fired = sum(1 for o in evaluation.outcomes if o.is_fail)
    skipped = sum(1 for o in evaluation.outcomes if not o.decided)
    logger.info(
        "Plugin %s: %d rules, %d skipped, %d findings",
        plugin.id, len(evaluation.outcomes), skipped, fired,
    )
    return evaluation
