"""Rule, plugin and finding models.

Rule definitions are authored as JSON with camelCase keys
(``regulationId``, ``currentValueTemplate`` ...).  Every definition model
accepts those keys as aliases as well as the snake_case field names.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_DEFINITION_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
)
_RECORD_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Severity(str, Enum):
    """Finding severity, from most to least serious."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"
    PASS = "pass"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, value: str) -> Severity | None:
        try:
            return cls(value)
        except ValueError:
            return None


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
    Severity.PASS: 3,
}


def worst_severity(a: Severity, b: Severity) -> Severity:
    """Return the more serious of two severities."""
    return a if a.rank <= b.rank else b


class RuleOperator(str, Enum):
    """Closed set of condition operators."""

    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    EQ = "=="
    NEQ = "!="
    EXISTS = "exists"
    NOT_EXISTS = "not_exists"
    IN = "in"
    NOT_IN = "not_in"
    BETWEEN = "between"
    NOT_IN_RANGE = "not_in_range"
    LOOKUP_GT = "lookup_gt"
    LOOKUP_GTE = "lookup_gte"
    LOOKUP_LT = "lookup_lt"
    LOOKUP_LTE = "lookup_lte"
    LOOKUP_EQ = "lookup_eq"
    LOOKUP_NEQ = "lookup_neq"
    ORDINAL_LT = "ordinal_lt"
    ORDINAL_LTE = "ordinal_lte"
    ORDINAL_GT = "ordinal_gt"
    ORDINAL_GTE = "ordinal_gte"
    FORMULA_GT = "formula_gt"
    FORMULA_GTE = "formula_gte"
    FORMULA_LT = "formula_lt"
    FORMULA_LTE = "formula_lte"
    COMPUTED_GT = "computed_gt"
    COMPUTED_GTE = "computed_gte"
    COMPUTED_LT = "computed_lt"
    COMPUTED_LTE = "computed_lte"
    REACTION_CLASS_LT = "reaction_class_lt"
    REACTION_CLASS_LTE = "reaction_class_lte"
    REACTION_CLASS_GT = "reaction_class_gt"
    REACTION_CLASS_GTE = "reaction_class_gte"

    @classmethod
    def parse(cls, value: Any) -> RuleOperator | None:
        """Return the operator for *value*, or None if it is not one."""
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def family(self) -> str:
        """Operator family: comparison, existence, membership, range,
        lookup, ordinal, formula, computed or reaction_class."""
        return _FAMILIES[self]

    @property
    def comparator(self) -> str:
        """The plain comparison this operator applies (``>``, ``<=``, ``==`` ...)."""
        return _COMPARATORS.get(self, "")


def _family_of(op: RuleOperator) -> str:
    if op.value in (">", ">=", "<", "<=", "==", "!="):
        return "comparison"
    if op.value in ("exists", "not_exists"):
        return "existence"
    if op.value in ("in", "not_in"):
        return "membership"
    if op.value in ("between", "not_in_range"):
        return "range"
    if op.value.startswith("reaction_class_"):
        return "reaction_class"
    return op.value.split("_", 1)[0]


_FAMILIES = {op: _family_of(op) for op in RuleOperator}

_SUFFIX_COMPARATORS = {
    "gt": ">", "gte": ">=", "lt": "<", "lte": "<=", "eq": "==", "neq": "!=",
}
_COMPARATORS = {
    op: (
        op.value
        if _FAMILIES[op] == "comparison"
        else _SUFFIX_COMPARATORS.get(op.value.rsplit("_", 1)[-1], "")
    )
    for op in RuleOperator
}


# ---------------------------------------------------------------------------
# Rule definitions
# ---------------------------------------------------------------------------


class RuleCondition(BaseModel):
    """One test of a project field against a threshold."""

    model_config = _DEFINITION_CONFIG

    field: str = ""
    """Dot-notation path into the project, e.g. ``electrical.rcdSensitivity``."""

    operator: str = ""
    """Raw operator string; see :class:`RuleOperator`."""

    value: Any = None
    """Threshold: scalar, array (``in``/``between``) or expression (``formula_*``)."""

    table: str | None = None
    """Lookup table id for ``lookup_*`` operators."""

    keys: list[str] | None = None
    """Field paths used to index the lookup table (overrides the table's keys)."""

    scale: list[str] | None = None
    """Ordered low-to-high tokens for ``ordinal_*`` (optional for ``lookup_*``)."""

    formula: str | None = None
    """Threshold expression for ``computed_*`` operators."""

    @property
    def op(self) -> RuleOperator | None:
        return RuleOperator.parse(self.operator)


class DeclarativeRule(BaseModel):
    """A single rule extracted from a regulation."""

    model_config = _DEFINITION_CONFIG

    id: str = ""
    regulation_id: str = ""
    article: str = ""
    description: str = ""
    """Finding text; supports ``{field.path}`` placeholders."""

    severity: str = Severity.WARNING.value
    conditions: list[RuleCondition] = Field(default_factory=list)
    """All must hold for the rule to fire."""

    exclusions: list[RuleCondition] = Field(default_factory=list)
    """Any proven-true exclusion makes the rule not applicable."""

    remediation: str = ""
    current_value_template: str | None = None
    required_value: str | None = None
    tags: list[str] = Field(default_factory=list)
    enabled: bool = True


RegulationStatus = Literal["active", "amended", "superseded", "revoked", "draft"]


class RegulationDocument(BaseModel):
    """A legal or normative document that rules cite."""

    model_config = _DEFINITION_CONFIG

    id: str
    short_ref: str = ""
    """Short citation, e.g. ``Portaria 949-A/2006``."""

    title: str = ""
    status: RegulationStatus = "active"
    legal_force: str = "legal"
    area: str = ""
    """Specialty area findings from this regulation are filed under."""

    effective_date: str = ""
    tags: list[str] = Field(default_factory=list)
    notes: str = ""


class LookupTable(BaseModel):
    """Reference table indexed by project field values.

    ``values`` is nested one level per key, e.g. for keys
    ``["buildingType", "fireSafety.riskCategory"]``::

        {"residential": {"1": 30, "2": 60}}
    """

    model_config = _DEFINITION_CONFIG

    id: str
    description: str = ""
    keys: list[str] = Field(default_factory=list)
    values: dict[str, Any] = Field(default_factory=dict)
    sub_key: str | None = None


class ArithmeticComputation(BaseModel):
    model_config = _DEFINITION_CONFIG

    type: Literal["arithmetic"] = "arithmetic"
    operands: tuple[str, str]
    operation: Literal["divide", "multiply", "add", "subtract"]


class TierStep(BaseModel):
    model_config = _DEFINITION_CONFIG

    min: float | None = None
    max: float | None = None
    result: Any = None


class TierComputation(BaseModel):
    model_config = _DEFINITION_CONFIG

    type: Literal["tier"] = "tier"
    field: str
    tiers: list[TierStep] = Field(default_factory=list)


class ConditionalComputation(BaseModel):
    model_config = _DEFINITION_CONFIG

    type: Literal["conditional"] = "conditional"
    field: str
    if_true: Any = None
    if_false: Any = None


class ComputedField(BaseModel):
    """A value derived from project data, visible to rules as ``computed.<id>``."""

    model_config = _DEFINITION_CONFIG

    id: str
    description: str = ""
    computation: Union[ArithmeticComputation, TierComputation, ConditionalComputation] = Field(
        discriminator="type"
    )


class SpecialtyPlugin(BaseModel):
    """Regulations, rules and reference data for one specialty."""

    model_config = _DEFINITION_CONFIG

    id: str
    name: str = ""
    version: str = "1.0.0"
    areas: list[str] = Field(default_factory=list)
    description: str = ""
    regulations: list[RegulationDocument] = Field(default_factory=list)
    rules: list[DeclarativeRule] = Field(default_factory=list)
    lookup_tables: list[LookupTable] = Field(default_factory=list)
    computed_fields: list[ComputedField] = Field(default_factory=list)

    def regulation(self, regulation_id: str) -> RegulationDocument | None:
        for reg in self.regulations:
            if reg.id == regulation_id:
                return reg
        return None


# ---------------------------------------------------------------------------
# Evaluation output
# ---------------------------------------------------------------------------


class Finding(BaseModel):
    """Outcome of one fired rule against one project."""

    model_config = _RECORD_CONFIG

    id: str
    source_rule_id: str = ""
    plugin_id: str = ""
    area: str = ""
    """Specialty the finding is filed under."""

    regulation: str = ""
    article: str = ""
    severity: Severity = Severity.WARNING
    description: str = ""
    current_value: str | None = None
    required_value: str | None = None
    remediation: str = ""


class RuleEvaluationMetrics(BaseModel):
    """Evaluated-versus-skipped tally for one specialty plugin."""

    model_config = _RECORD_CONFIG

    plugin_id: str
    plugin_name: str = ""
    area: str = ""
    total_rules: int = 0
    evaluated_rules: int = 0
    skipped_rules: int = 0
    fired_rules: int = 0
    coverage_percent: int = 100
    missing_fields: list[str] = Field(default_factory=list)
    """Field paths whose absence caused rules to be skipped."""
