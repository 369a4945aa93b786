"""Tests for authoring-time rule and plugin validation."""

from __future__ import annotations

from typing import Any

import pytest

from wallnut.rules.models import DeclarativeRule, LookupTable, SpecialtyPlugin
from wallnut.rules.validate import (
    RuleIssue,
    RuleValidationError,
    ensure_valid_plugin,
    validate_plugin,
    validate_rule,
)


def rule(**overrides: Any) -> DeclarativeRule:
    data: dict[str, Any] = {
        "id": "R1",
        "regulationId": "REG",
        "severity": "warning",
        "conditions": [{"field": "a", "operator": ">", "value": 1}],
    }
    data.update(overrides)
    return DeclarativeRule.model_validate(data)


def paths(issues: list[RuleIssue]) -> list[str]:
    return [i.path for i in issues]


class TestValidateRule:
    def test_valid_rule(self) -> None:
        assert validate_rule(rule()) == []

    def test_reports_every_issue(self) -> None:
        bad = rule(
            id="",
            regulationId="",
            severity="fatal",
            conditions=[],
        )
        assert paths(validate_rule(bad)) == ["id", "regulationId", "severity", "conditions"]

    def test_condition_issues(self) -> None:
        bad = rule(
            conditions=[
                {"field": "", "operator": ">", "value": 1},
                {"field": "a", "operator": "bigger"},
                {"field": "a", "operator": "lookup_gte", "keys": ["b"]},
                {"field": "a", "operator": "ordinal_lt", "value": "x", "scale": []},
                {"field": "a", "operator": "formula_gt"},
                {"field": "a", "operator": "computed_gt", "formula": "import os"},
                {"field": "a", "operator": "between", "value": [1, "2"]},
                {"field": "a", "operator": "not_in", "value": 3},
                {"field": "a", "operator": "<"},
            ]
        )
        assert paths(validate_rule(bad)) == [
            "conditions[0].field",
            "conditions[1].operator",
            "conditions[2].table",
            "conditions[3].scale",
            "conditions[4].value",
            "conditions[5].formula",
            "conditions[6].value",
            "conditions[7].value",
            "conditions[8].value",
        ]

    def test_exclusions_checked(self) -> None:
        bad = rule(exclusions=[{"field": "a", "operator": "nope"}])
        assert paths(validate_rule(bad)) == ["exclusions[0].operator"]

    def test_existence_needs_no_value(self) -> None:
        ok = rule(conditions=[{"field": "a", "operator": "not_exists"}])
        assert validate_rule(ok) == []

    @pytest.mark.parametrize("operator", ["==", "!="])
    def test_equality_needs_value(self, operator: str) -> None:
        bad = rule(conditions=[{"field": "a", "operator": operator, "value": None}])
        assert paths(validate_rule(bad)) == ["conditions[0].value"]

    def test_ordinal_value_must_be_in_scale(self) -> None:
        bad = rule(conditions=[{"field": "zone", "operator": "ordinal_gt", "value": "Z", "scale": ["A", "B"]}])
        assert paths(validate_rule(bad)) == ["conditions[0].value"]
        ok = rule(conditions=[{"field": "cat", "operator": "ordinal_lt", "value": 3, "scale": ["1", "2", "3"]}])
        assert validate_rule(ok) == []

    def test_reaction_class_must_be_euroclass(self) -> None:
        bad = rule(exclusions=[{"field": "lining", "operator": "reaction_class_lt", "value": "Z"}])
        assert paths(validate_rule(bad)) == ["exclusions[0].value"]
        ok = rule(conditions=[{"field": "lining", "operator": "reaction_class_lt", "value": "CFL-s1"}])
        assert validate_rule(ok) == []

    def test_lookup_against_tables(self) -> None:
        tables = {"t": LookupTable(id="t", keys=["k"], values={})}
        default_keys = rule(conditions=[{"field": "a", "operator": "lookup_lt", "table": "t"}])
        assert validate_rule(default_keys, tables) == []

        unknown = rule(conditions=[{"field": "a", "operator": "lookup_lt", "table": "x"}])
        assert paths(validate_rule(unknown, tables)) == ["conditions[0].table", "conditions[0].keys"]

    def test_issue_rendering(self) -> None:
        issue = validate_rule(rule(severity="fatal"))[0]
        assert str(issue) == "R1 severity: Invalid severity: 'fatal'"
        assert issue.to_dict()["rule_id"] == "R1"


class TestValidatePlugin:
    @pytest.fixture
    def plugin_data(self) -> dict[str, Any]:
        return {
            "id": "p",
            "regulations": [{"id": "REG"}],
            "rules": [
                {"id": "R1", "regulationId": "REG", "conditions": [{"field": "a", "operator": "exists"}]},
            ],
            "lookupTables": [{"id": "t", "keys": ["k"], "values": {}}],
        }

    def test_valid(self, plugin_data: dict[str, Any]) -> None:
        plugin = SpecialtyPlugin.model_validate(plugin_data)
        assert validate_plugin(plugin) == []
        assert ensure_valid_plugin(plugin) is plugin

    def test_duplicates_and_unknown_regulation(self, plugin_data: dict[str, Any]) -> None:
        plugin_data["rules"].append(dict(plugin_data["rules"][0]))
        plugin_data["rules"].append(
            {"id": "R9", "regulationId": "GHOST", "conditions": [{"field": "a", "operator": "exists"}]}
        )
        plugin_data["lookupTables"].append({"id": "t"})
        plugin = SpecialtyPlugin.model_validate(plugin_data)
        messages = [i.message for i in validate_plugin(plugin)]
        assert "Duplicate lookup table id: 't'" in messages
        assert "Duplicate rule id in 'REG'" in messages
        assert "Unknown regulation: 'GHOST'" in messages

    def test_same_rule_id_in_other_regulation_allowed(self, plugin_data: dict[str, Any]) -> None:
        plugin_data["regulations"].append({"id": "REG2"})
        plugin_data["rules"].append(
            {"id": "R1", "regulationId": "REG2", "conditions": [{"field": "a", "operator": "exists"}]}
        )
        assert validate_plugin(SpecialtyPlugin.model_validate(plugin_data)) == []

    def test_ensure_raises_with_all_issues(self, plugin_data: dict[str, Any]) -> None:
        plugin_data["rules"][0]["conditions"] = []
        plugin_data["rules"][0]["severity"] = "bad"
        plugin = SpecialtyPlugin.model_validate(plugin_data)
        with pytest.raises(RuleValidationError) as exc_info:
            ensure_valid_plugin(plugin)
        assert len(exc_info.value.issues) == 2
        assert isinstance(exc_info.value, ValueError)
