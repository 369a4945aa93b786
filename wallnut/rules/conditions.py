"""Condition evaluation.

Every condition evaluates to one of three states:

* true / false -- the data at hand decides the condition;
* skipped      -- it cannot be decided (missing field, missing lookup
  entry, malformed metadata).  A skip is never reported as false.

:func:`evaluate_condition` never raises on rule content; problems come
back as a skipped result carrying a ``reason``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from wallnut.config import EUROCLASS_SCALE
from wallnut.rules.formula import FormulaError, UnresolvedFieldError, evaluate_formula
from wallnut.rules.models import LookupTable, RuleCondition, RuleOperator
from wallnut.rules.resolver import NOT_FOUND, ProjectSnapshot, freeze, resolve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConditionResult:
    """Outcome of one condition."""

    result: bool
    skipped: bool = False
    reason: str = ""
    missing_field: str | None = None
    """Field path whose absence caused the skip, if any."""

    malformed: bool = False
    """True when the skip comes from invalid rule metadata, not project data."""


TRUE = ConditionResult(True)
FALSE = ConditionResult(False)


def _verdict(value: bool) -> ConditionResult:
    return TRUE if value else FALSE


def _missing(path: str, reason: str = "") -> ConditionResult:
    return ConditionResult(False, True, reason or f"{path} not found", missing_field=path)


def _skip(reason: str) -> ConditionResult:
    return ConditionResult(False, True, reason)


def _malformed(reason: str) -> ConditionResult:
    return ConditionResult(False, True, reason, malformed=True)


class _NotComparable(Exception):
    pass


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def values_equal(a: Any, b: Any) -> bool:
    """Literal equality that does not treat ``True`` as ``1``."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    return a == b


def compare(left: Any, right: Any, comparator: str) -> bool:
    """Apply *comparator* (``>``, ``>=``, ``<``, ``<=``, ``==``, ``!=``).

    Ordered comparisons need two numbers or two strings; anything else
    raises ``_NotComparable``.
    """
    if comparator == "==":
        return values_equal(left, right)
    if comparator == "!=":
        return not values_equal(left, right)
    if not ((_is_number(left) and _is_number(right)) or (isinstance(left, str) and isinstance(right, str))):
        raise _NotComparable(f"cannot compare {left!r} {comparator} {right!r}")
    if comparator == ">":
        return left > right
    if comparator == ">=":
        return left >= right
    if comparator == "<":
        return left < right
    if comparator == "<=":
        return left <= right
    raise _NotComparable(f"unknown comparator {comparator!r}")


def is_present(value: Any) -> bool:
    """``exists`` semantics: resolved, and not null, false or empty."""
    if value is NOT_FOUND or value is None or value is False:
        return False
    if isinstance(value, (str, tuple, list, Mapping, frozenset, set)) and len(value) == 0:
        return False
    return True


def table_key(value: Any) -> str:
    """Convert a resolved key value to the string used in lookup tables."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------


def lookup_threshold(
    condition: RuleCondition,
    snapshot: ProjectSnapshot,
    tables: Mapping[str, LookupTable],
) -> tuple[Any, ConditionResult | None]:
    """Resolve the table cell a lookup condition compares against.

    Returns ``(cell, None)`` on success or ``(None, skip_result)``.
    """
    if not condition.table:
        return None, _malformed("lookup condition without table")
    table = tables.get(condition.table)
    if table is None:
        return None, _skip(f"lookup table {condition.table!r} not available")
    key_paths = condition.keys or table.keys
    if not key_paths:
        return None, _malformed(f"lookup on {condition.table!r} without keys")

    current: Any = table.values
    for path in key_paths:
        key_value = resolve(path, snapshot)
        if key_value is NOT_FOUND or key_value is None:
            return None, _missing(path, f"lookup key {path} not found")
        key = table_key(key_value)
        if not isinstance(current, Mapping) or key not in current:
            return None, _skip(f"no entry for {path}={key!r} in table {table.id!r}")
        current = current[key]

    if table.sub_key:
        if not isinstance(current, Mapping) or table.sub_key not in current:
            return None, _skip(f"no {table.sub_key!r} entry in table {table.id!r}")
        current = current[table.sub_key]

    if current is None:
        return None, _skip(f"empty cell in table {table.id!r}")
    return current, None


# ---------------------------------------------------------------------------
# Operator families
# ---------------------------------------------------------------------------


def _eval_comparison(cond: RuleCondition, op: RuleOperator, field_value: Any) -> ConditionResult:
    if field_value is NOT_FOUND:
        return _missing(cond.field)
    if op in (RuleOperator.EQ, RuleOperator.NEQ):
        return _verdict(compare(field_value, freeze(cond.value), op.comparator))
    if field_value is None:
        return _missing(cond.field, f"{cond.field} is null")
    if cond.value is None:
        return _malformed(f"operator {op.value!r} without value")
    try:
        return _verdict(compare(field_value, cond.value, op.comparator))
    except _NotComparable as exc:
        return _skip(f"{cond.field}: {exc}")


def _eval_existence(op: RuleOperator, field_value: Any) -> ConditionResult:
    present = is_present(field_value)
    return _verdict(present if op is RuleOperator.EXISTS else not present)


def _eval_membership(cond: RuleCondition, op: RuleOperator, field_value: Any) -> ConditionResult:
    if not isinstance(cond.value, (list, tuple)):
        return _malformed(f"operator {op.value!r} requires an array value")
    if field_value is NOT_FOUND:
        return _missing(cond.field)
    member = any(values_equal(field_value, freeze(v)) for v in cond.value)
    return _verdict(member if op is RuleOperator.IN else not member)


def _eval_range(cond: RuleCondition, op: RuleOperator, field_value: Any) -> ConditionResult:
    bounds = cond.value
    if not (isinstance(bounds, (list, tuple)) and len(bounds) == 2 and all(_is_number(b) for b in bounds)):
        return _malformed(f"operator {op.value!r} requires a [min, max] value")
    if field_value is NOT_FOUND:
        return _missing(cond.field)
    if not _is_number(field_value):
        return _skip(f"{cond.field} is not numeric ({field_value!r})")
    low, high = bounds
    inside = low <= field_value <= high
    return _verdict(inside if op is RuleOperator.BETWEEN else not inside)


def _rank(token: Any, scale: list[str] | tuple[str, ...]) -> int | None:
    text = table_key(token)
    try:
        return scale.index(text)
    except ValueError:
        return None


def _eval_lookup(
    cond: RuleCondition,
    op: RuleOperator,
    field_value: Any,
    snapshot: ProjectSnapshot,
    tables: Mapping[str, LookupTable],
) -> ConditionResult:
    threshold, skip = lookup_threshold(cond, snapshot, tables)
    if skip is not None:
        return skip
    if field_value is NOT_FOUND:
        return _missing(cond.field)
    if field_value is None:
        return _missing(cond.field, f"{cond.field} is null")

    if cond.scale:
        field_rank = _rank(field_value, cond.scale)
        threshold_rank = _rank(threshold, cond.scale)
        if field_rank is None:
            return _skip(f"{cond.field}={field_value!r} not in scale")
        if threshold_rank is None:
            return _skip(f"table value {threshold!r} not in scale")
        return _verdict(compare(field_rank, threshold_rank, op.comparator))
    try:
        return _verdict(compare(field_value, threshold, op.comparator))
    except _NotComparable as exc:
        return _skip(f"{cond.field}: {exc}")


def _eval_ordinal(cond: RuleCondition, op: RuleOperator, field_value: Any) -> ConditionResult:
    if not cond.scale:
        return _malformed(f"operator {op.value!r} requires a scale")
    if field_value is NOT_FOUND:
        return _missing(cond.field)
    field_rank = _rank(field_value, cond.scale)
    if field_rank is None:
        return _skip(f"{cond.field}={field_value!r} not in scale")
    threshold_rank = _rank(cond.value, cond.scale)
    if threshold_rank is None:
        return _malformed(f"threshold {cond.value!r} not in scale")
    return _verdict(compare(field_rank, threshold_rank, op.comparator))


def _eval_reaction_class(cond: RuleCondition, op: RuleOperator, field_value: Any) -> ConditionResult:
    if field_value is NOT_FOUND:
        return _missing(cond.field)
    field_rank = _rank(field_value, EUROCLASS_SCALE)
    if field_rank is None:
        return _skip(f"{cond.field}={field_value!r} is not a Euroclass")
    threshold_rank = _rank(cond.value, EUROCLASS_SCALE)
    if threshold_rank is None:
        return _malformed(f"threshold {cond.value!r} is not a Euroclass")
    # Lower index is a better class: "lt" reads "worse than".
    return _verdict(compare(threshold_rank, field_rank, op.comparator))


def _eval_formula(
    cond: RuleCondition,
    op: RuleOperator,
    field_value: Any,
    snapshot: ProjectSnapshot,
) -> ConditionResult:
    expression = cond.value if op.family == "formula" else cond.formula
    if not isinstance(expression, str) or not expression.strip():
        return _malformed(f"operator {op.value!r} without formula")
    if field_value is NOT_FOUND:
        return _missing(cond.field)
    if not _is_number(field_value):
        return _skip(f"{cond.field} is not numeric ({field_value!r})")
    try:
        threshold = evaluate_formula(expression, snapshot)
    except UnresolvedFieldError as exc:
        return _missing(exc.path, f"formula field {exc}")
    except FormulaError as exc:
        return _malformed(str(exc))
    except ZeroDivisionError:
        return _skip(f"formula {expression!r} divides by zero")
    return _verdict(compare(field_value, threshold, op.comparator))


def _dispatch(
    condition: RuleCondition,
    snapshot: ProjectSnapshot,
    tables: Mapping[str, LookupTable],
) -> ConditionResult:
    op = condition.op
    if op is None:
        return _malformed(f"unknown operator {condition.operator!r}")
    if not condition.field:
        return _malformed("condition without field")

    field_value = resolve(condition.field, snapshot)
    family = op.family

    if family == "comparison":
        return _eval_comparison(condition, op, field_value)
    if family == "existence":
        return _eval_existence(op, field_value)
    if family == "membership":
        return _eval_membership(condition, op, field_value)
    if family == "range":
        return _eval_range(condition, op, field_value)
    if family == "lookup":
        return _eval_lookup(condition, op, field_value, snapshot, tables)
    if family == "ordinal":
        return _eval_ordinal(condition, op, field_value)
    if family == "reaction_class":
        return _eval_reaction_class(condition, op, field_value)
    if family in ("formula", "computed"):
        return _eval_formula(condition, op, field_value, snapshot)
    return _malformed(f"operator family {family!r} is not supported")


def evaluate_condition(
    condition: RuleCondition,
    snapshot: ProjectSnapshot,
    tables: Mapping[str, LookupTable] | None = None,
) -> ConditionResult:
    """Evaluate *condition* against *snapshot*.

    Parameters
    ----------
    condition:
        The condition to test.
    snapshot:
        Project data plus derived ``computed.*`` values.
    tables:
        Lookup tables by id, for ``lookup_*`` operators.
    """
    try:
        return _dispatch(condition, snapshot, tables or {})
    except Exception as exc:
        logger.warning(
            "Condition %s %s could not be evaluated: %s",
            condition.field, condition.operator, exc,
            exc_info=True,
        )
        return _malformed(f"evaluation error: {exc}")
