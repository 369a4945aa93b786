"""Declarative rule engine — resolve fields, evaluate conditions and rules."""

from wallnut.rules.computed import derive_computed_fields
from wallnut.rules.conditions import ConditionResult, evaluate_condition
from wallnut.rules.engine import (
    PluginEvaluation,
    RuleOutcome,
    evaluate_plugin,
    evaluate_rule,
)
from wallnut.rules.interpolate import format_value, interpolate
from wallnut.rules.models import (
    ComputedField,
    DeclarativeRule,
    Finding,
    LookupTable,
    RegulationDocument,
    RuleCondition,
    RuleEvaluationMetrics,
    RuleOperator,
    Severity,
    SpecialtyPlugin,
)
from wallnut.rules.resolver import NOT_FOUND, ProjectSnapshot, resolve
from wallnut.rules.validate import (
    RuleIssue,
    RuleValidationError,
    ensure_valid_plugin,
    validate_plugin,
    validate_rule,
)

__all__ = [
    "ComputedField",
    "ConditionResult",
    "DeclarativeRule",
    "Finding",
    "LookupTable",
    "NOT_FOUND",
    "PluginEvaluation",
    "ProjectSnapshot",
    "RegulationDocument",
    "RuleCondition",
    "RuleEvaluationMetrics",
    "RuleIssue",
    "RuleOperator",
    "RuleOutcome",
    "RuleValidationError",
    "Severity",
    "SpecialtyPlugin",
    "derive_computed_fields",
    "ensure_valid_plugin",
    "evaluate_condition",
    "evaluate_plugin",
    "evaluate_rule",
    "format_value",
    "interpolate",
    "resolve",
    "validate_plugin",
    "validate_rule",
]
