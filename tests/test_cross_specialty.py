"""Tests for the cross-specialty shared-field analysis."""

from __future__ import annotations

from typing import Any

import pytest

from wallnut.analysis.cross_specialty import analyze_cross_specialties, rule_field_refs
from wallnut.config import GENERIC_FIELD_NAMESPACES
from wallnut.rules.models import DeclarativeRule, SpecialtyPlugin


def _rule(rule_id: str, *fields: str, **extra: Any) -> dict[str, Any]:
    return {
        "id": rule_id,
        "regulationId": "REG",
        "conditions": [{"field": f, "operator": "exists"} for f in fields],
        **extra,
    }


def _plugin(plugin_id: str, *rules: dict[str, Any]) -> SpecialtyPlugin:
    return SpecialtyPlugin.model_validate({"id": plugin_id, "rules": list(rules)})


@pytest.fixture
def plugins() -> list[SpecialtyPlugin]:
    return [
        _plugin(
            "electrical",
            _rule("E1", "electrical.contractedPower"),
            _rule("E2", "electrical.rcdSensitivity", "buildingType"),
        ),
        _plugin(
            "thermal",
            _rule("T1", "thermal.heatPumpPower", "electrical.contractedPower"),
            _rule("T2", "envelope.wallUValue", "buildingType"),
            _rule("T3", "electrical.contractedPower", enabled=False),
        ),
        _plugin(
            "fire-safety",
            _rule(
                "F1",
                "fireSafety.structuralFireResistance",
                exclusions=[{"field": "electrical.rcdSensitivity", "operator": "exists"}],
            ),
        ),
    ]


class TestRuleFieldRefs:
    def test_conditions_exclusions_and_keys(self) -> None:
        rule = DeclarativeRule.model_validate(
            {
                "id": "R",
                "regulationId": "REG",
                "conditions": [
                    {"field": "a", "operator": "lookup_lt", "table": "t", "keys": ["k1", "a"]},
                ],
                "exclusions": [{"field": "x", "operator": "exists"}],
            }
        )
        assert rule_field_refs(rule) == ["a", "k1", "x"]


class TestAnalyzeCrossSpecialties:
    def test_shared_contracted_power(self, plugins: list[SpecialtyPlugin]) -> None:
        result = analyze_cross_specialties(
            ["electrical", "thermal"], plugins, ignore_namespaces=GENERIC_FIELD_NAMESPACES
        )
        assert len(result.pairs) == 1
        pair = result.pairs[0]
        assert (pair.specialty_a, pair.specialty_b) == ("electrical", "thermal")
        assert pair.shared_fields == ["electrical.contractedPower"]
        assert [r.id for r in pair.rules_from_a] == ["E1"]
        assert [r.id for r in pair.rules_from_b] == ["T1"]
        assert pair.total_rules == 2

    def test_generic_fields_count_by_default(self, plugins: list[SpecialtyPlugin]) -> None:
        pair = analyze_cross_specialties(["electrical", "thermal"], plugins).pairs[0]
        assert pair.shared_fields == ["buildingType", "electrical.contractedPower"]
        assert pair.total_rules == 4

    def test_exclusion_fields_count(self, plugins: list[SpecialtyPlugin]) -> None:
        result = analyze_cross_specialties(["electrical", "fire-safety"], plugins)
        assert result.pairs[0].shared_fields == ["electrical.rcdSensitivity"]
        assert [r.id for r in result.pairs[0].rules_from_b] == ["F1"]

    def test_pairs_sorted_by_rule_count(self, plugins: list[SpecialtyPlugin]) -> None:
        result = analyze_cross_specialties(["fire-safety", "thermal", "electrical"], plugins)
        assert [(p.specialty_a, p.specialty_b) for p in result.pairs] == [
            ("electrical", "thermal"),
            ("electrical", "fire-safety"),
        ]
        assert result.total_shared_fields == 3
        assert result.total_cross_rules == 5

    def test_fewer_than_two_selected(self, plugins: list[SpecialtyPlugin]) -> None:
        assert analyze_cross_specialties(["electrical"], plugins).pairs == []
        assert analyze_cross_specialties(["electrical", "unknown"], plugins).pairs == []

    def test_no_overlap(self, plugins: list[SpecialtyPlugin]) -> None:
        result = analyze_cross_specialties(["thermal", "fire-safety"], plugins)
        assert result.pairs == []
        assert result.total_shared_fields == 0
