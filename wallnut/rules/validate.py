"""Structural validation of rules and plugins.

Used at authoring time (reject with the full list of problems) and by the
rule evaluator as a second line of defence: a rule with issues is skipped,
never evaluated.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from wallnut.config import EUROCLASS_SCALE
from wallnut.rules.conditions import table_key
from wallnut.rules.formula import FormulaError, parse_formula
from wallnut.rules.models import (
    DeclarativeRule,
    LookupTable,
    RuleCondition,
    Severity,
    SpecialtyPlugin,
)


class RuleIssue:
    """A single violated invariant in a rule or plugin definition."""

    def __init__(self, rule_id: str, path: str, message: str) -> None:
        self.rule_id = rule_id
        self.path = path  # e.g. "conditions[0].table"
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"rule_id": self.rule_id, "path": self.path, "message": self.message}

    def __str__(self) -> str:
        where = f"{self.rule_id or '<no id>'}"
        if self.path:
            where = f"{where} {self.path}"
        return f"{where}: {self.message}"

    def __repr__(self) -> str:
        return f"RuleIssue({self.rule_id!r}, {self.path!r}, {self.message!r})"


class RuleValidationError(ValueError):
    """Raised when a rule set is rejected; carries every issue found."""

    def __init__(self, issues: list[RuleIssue]) -> None:
        self.issues = issues
        summary = "; ".join(str(i) for i in issues[:5])
        more = f" (+{len(issues) - 5} more)" if len(issues) > 5 else ""
        super().__init__(f"{len(issues)} rule issue(s): {summary}{more}")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_condition(
    condition: RuleCondition,
    path: str,
    rule_id: str = "",
    tables: Mapping[str, LookupTable] | None = None,
) -> list[RuleIssue]:
    """Check one condition; *path* prefixes issue locations."""
    issues: list[RuleIssue] = []

    def issue(sub: str, message: str) -> None:
        issues.append(RuleIssue(rule_id, f"{path}.{sub}", message))

    if not condition.field:
        issue("field", "Condition 'field' is required")

    op = condition.op
    if op is None:
        issue("operator", f"Unknown operator: {condition.operator!r}")
        return issues

    family = op.family
    if family == "comparison":
        if condition.value is None:
            issue("value", f"Operator {op.value!r} requires a value")
    elif family == "membership":
        if not isinstance(condition.value, list):
            issue("value", f"Operator {op.value!r} requires an array value")
    elif family == "range":
        value = condition.value
        if not (isinstance(value, list) and len(value) == 2 and all(_is_number(v) for v in value)):
            issue("value", f"Operator {op.value!r} requires a [min, max] numeric value")
    elif family == "lookup":
        if not condition.table:
            issue("table", f"Lookup operator {op.value!r} requires a 'table'")
        elif tables is not None and condition.table not in tables:
            issue("table", f"Unknown lookup table: {condition.table!r}")
        # Without tables the keys may come from the table's defaults.
        table = tables.get(condition.table) if tables and condition.table else None
        if not condition.keys and tables is not None and not (table is not None and table.keys):
            issue("keys", f"Lookup operator {op.value!r} requires 'keys'")
        if condition.scale is not None and not condition.scale:
            issue("scale", "Lookup 'scale' must not be empty when given")
    elif family == "ordinal":
        if not condition.scale:
            issue("scale", f"Ordinal operator {op.value!r} requires a non-empty 'scale'")
        if condition.value is None:
            issue("value", f"Ordinal operator {op.value!r} requires a value")
        elif condition.scale and table_key(condition.value) not in condition.scale:
            issue("value", f"Ordinal value {condition.value!r} is not in 'scale'")
    elif family == "reaction_class":
        if not isinstance(condition.value, str) or condition.value not in EUROCLASS_SCALE:
            issue("value", f"Operator {op.value!r} requires a Euroclass value, got {condition.value!r}")
    elif family in ("formula", "computed"):
        expression = condition.value if family == "formula" else condition.formula
        where = "value" if family == "formula" else "formula"
        if not isinstance(expression, str) or not expression.strip():
            issue(where, f"Operator {op.value!r} requires a formula expression")
        else:
            try:
                parse_formula(expression)
            except FormulaError as exc:
                issue(where, str(exc))

    return issues


def validate_rule(
    rule: DeclarativeRule,
    tables: Mapping[str, LookupTable] | None = None,
) -> list[RuleIssue]:
    """Return every structural problem with *rule* (empty if valid).

    When *tables* is given, lookup conditions are also checked against it.
    """
    issues: list[RuleIssue] = []
    rid = rule.id

    if not rule.id or not rule.id.strip():
        issues.append(RuleIssue(rid, "id", "Rule 'id' is required"))
    if not rule.regulation_id:
        issues.append(RuleIssue(rid, "regulationId", "Rule 'regulationId' is required"))
    if Severity.parse(rule.severity) is None:
        issues.append(RuleIssue(rid, "severity", f"Invalid severity: {rule.severity!r}"))
    if not rule.conditions:
        issues.append(RuleIssue(rid, "conditions", "Rule needs at least one condition"))

    for i, cond in enumerate(rule.conditions):
        issues.extend(validate_condition(cond, f"conditions[{i}]", rid, tables))
    for i, cond in enumerate(rule.exclusions):
        issues.extend(validate_condition(cond, f"exclusions[{i}]", rid, tables))

    return issues


def validate_plugin(plugin: SpecialtyPlugin) -> list[RuleIssue]:
    """Validate every rule in *plugin* plus plugin-level consistency."""
    issues: list[RuleIssue] = []
    if not plugin.id:
        issues.append(RuleIssue("", "id", "Plugin 'id' is required"))

    table_map: dict[str, LookupTable] = {}
    for i, table in enumerate(plugin.lookup_tables):
        if table.id in table_map:
            issues.append(RuleIssue("", f"lookupTables[{i}].id", f"Duplicate lookup table id: {table.id!r}"))
        table_map[table.id] = table

    regulation_ids = {reg.id for reg in plugin.regulations}
    seen: set[tuple[str, str]] = set()
    for i, rule in enumerate(plugin.rules):
        key = (rule.regulation_id, rule.id)
        if rule.id and key in seen:
            issues.append(RuleIssue(rule.id, f"rules[{i}].id", f"Duplicate rule id in {rule.regulation_id!r}"))
        seen.add(key)
        if rule.regulation_id and rule.regulation_id not in regulation_ids:
            issues.append(
                RuleIssue(rule.id, f"rules[{i}].regulationId", f"Unknown regulation: {rule.regulation_id!r}")
            )
        issues.extend(validate_rule(rule, table_map))

    return issues


def ensure_valid_plugin(plugin: SpecialtyPlugin) -> SpecialtyPlugin:
    """Return *plugin* unchanged, or raise RuleValidationError listing all issues."""
    issues = validate_plugin(plugin)
    if issues:
        raise RuleValidationError(issues)
    return plugin
