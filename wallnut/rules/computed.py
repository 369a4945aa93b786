"""Derivation of ``computed.*`` values from a plugin's computed fields.

This runs upstream of evaluation: the result is handed to
:class:`~wallnut.rules.resolver.ProjectSnapshot` and the evaluators only
read it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from wallnut.rules.models import (
    ArithmeticComputation,
    ComputedField,
    ConditionalComputation,
    TierComputation,
)
from wallnut.rules.resolver import NOT_FOUND, ProjectSnapshot, resolve

logger = logging.getLogger(__name__)


def _number(value: Any) -> float | int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _arithmetic(comp: ArithmeticComputation, snapshot: ProjectSnapshot) -> Any:
    a = _number(resolve(comp.operands[0], snapshot))
    b = _number(resolve(comp.operands[1], snapshot))
    if a is None or b is None:
        return NOT_FOUND
    if comp.operation == "divide":
        return a / b if b != 0 else NOT_FOUND
    if comp.operation == "multiply":
        return a * b
    if comp.operation == "add":
        return a + b
    return a - b


def _tier(comp: TierComputation, snapshot: ProjectSnapshot) -> Any:
    value = _number(resolve(comp.field, snapshot))
    if value is None:
        return NOT_FOUND
    for step in comp.tiers:
        above_min = step.min is None or value >= step.min
        below_max = step.max is None or value <= step.max
        if above_min and below_max:
            return step.result
    return NOT_FOUND


def _conditional(comp: ConditionalComputation, snapshot: ProjectSnapshot) -> Any:
    value = resolve(comp.field, snapshot)
    return comp.if_true if value is not NOT_FOUND and value else comp.if_false


def derive_computed_fields(
    project: Mapping[str, Any] | ProjectSnapshot,
    computed_fields: Iterable[ComputedField],
    base: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Evaluate *computed_fields* in order and return ``{id: value}``.

    Later fields may reference earlier ones as ``computed.<id>``.  Fields
    whose inputs are missing are left out of the result.  *base* seeds the
    map with values already derived elsewhere.
    """
    snapshot = project if isinstance(project, ProjectSnapshot) else ProjectSnapshot(project)
    results: dict[str, Any] = dict(snapshot.computed)
    results.update(base or {})

    for cf in computed_fields:
        view = snapshot.with_computed(results)
        comp = cf.computation
        if isinstance(comp, ArithmeticComputation):
            value = _arithmetic(comp, view)
        elif isinstance(comp, TierComputation):
            value = _tier(comp, view)
        else:
            value = _conditional(comp, view)

        if value is NOT_FOUND:
            logger.debug("Computed field %s left undefined (missing inputs)", cf.id)
            continue
        results[cf.id] = value

    return results
