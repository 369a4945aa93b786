"""Cross-specialty analysis — project fields that rules of two specialties share.

A static analysis over rule definitions: nothing is evaluated and no
project data is read.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from wallnut.rules.models import DeclarativeRule, SpecialtyPlugin

logger = logging.getLogger(__name__)

_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CrossSpecialtyPair(BaseModel):
    """Fields referenced by rules of both *specialty_a* and *specialty_b*."""

    model_config = _CONFIG

    specialty_a: str
    specialty_b: str
    shared_fields: list[str] = Field(default_factory=list)
    rules_from_a: list[DeclarativeRule] = Field(default_factory=list)
    """Rules of A that reference at least one shared field."""

    rules_from_b: list[DeclarativeRule] = Field(default_factory=list)
    total_rules: int = 0


class CrossSpecialtyAnalysis(BaseModel):
    model_config = _CONFIG

    pairs: list[CrossSpecialtyPair] = Field(default_factory=list)
    total_shared_fields: int = 0
    total_cross_rules: int = 0


def rule_field_refs(rule: DeclarativeRule) -> list[str]:
    """Field paths a rule references: condition and exclusion fields plus lookup keys."""
    refs: list[str] = []
    for cond in [*rule.conditions, *rule.exclusions]:
        for path in [cond.field, *(cond.keys or [])]:
            if path and path not in refs:
                refs.append(path)
    return refs


def _keep(path: str, ignore_namespaces: frozenset[str]) -> bool:
    return path.split(".", 1)[0] not in ignore_namespaces


def analyze_cross_specialties(
    selected_ids: Iterable[str],
    plugins: Iterable[SpecialtyPlugin],
    *,
    ignore_namespaces: Iterable[str] = (),
) -> CrossSpecialtyAnalysis:
    """Find fields shared between every pair of the selected specialties.

    Parameters
    ----------
    selected_ids:
        Plugin ids to compare; fewer than two yields an empty analysis.
    plugins:
        All available plugins.  Pairs follow the order of this list.
    ignore_namespaces:
        First path segments to leave out, e.g.
        :data:`wallnut.config.GENERIC_FIELD_NAMESPACES`.
    """
    selected = set(selected_ids)
    ignored = frozenset(ignore_namespaces)
    chosen = [p for p in plugins if p.id in selected]
    if len({p.id for p in chosen}) < 2:
        return CrossSpecialtyAnalysis()

    refs_by_plugin: dict[str, list[tuple[DeclarativeRule, set[str]]]] = {}
    fields_by_plugin: dict[str, set[str]] = {}
    order: list[str] = []
    for plugin in chosen:
        if plugin.id in refs_by_plugin:
            continue
        order.append(plugin.id)
        entries: list[tuple[DeclarativeRule, set[str]]] = []
        fields: set[str] = set()
        for rule in plugin.rules:
            if not rule.enabled:
                continue
            refs = {p for p in rule_field_refs(rule) if _keep(p, ignored)}
            entries.append((rule, refs))
            fields |= refs
        refs_by_plugin[plugin.id] = entries
        fields_by_plugin[plugin.id] = fields

    pairs: list[CrossSpecialtyPair] = []
    all_shared: set[str] = set()
    cross_rules: set[tuple[str, str, str]] = set()

    for i, a in enumerate(order):
        for b in order[i + 1:]:
            shared = fields_by_plugin[a] & fields_by_plugin[b]
            if not shared:
                continue
            from_a = [rule for rule, refs in refs_by_plugin[a] if refs & shared]
            from_b = [rule for rule, refs in refs_by_plugin[b] if refs & shared]
            pairs.append(
                CrossSpecialtyPair(
                    specialty_a=a,
                    specialty_b=b,
                    shared_fields=sorted(shared),
                    rules_from_a=from_a,
                    rules_from_b=from_b,
                    total_rules=len(from_a) + len(from_b),
                )
            )
            all_shared |= shared
            cross_rules.update((a, r.regulation_id, r.id) for r in from_a)
            cross_rules.update((b, r.regulation_id, r.id) for r in from_b)

    pairs.sort(key=lambda p: -p.total_rules)
    logger.debug("Cross-specialty analysis over %s: %d pairs", order, len(pairs))
    return CrossSpecialtyAnalysis(
        pairs=pairs,
        total_shared_fields=len(all_shared),
        total_cross_rules=len(cross_rules),
    )
