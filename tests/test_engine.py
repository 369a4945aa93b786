"""Tests for rule evaluation, findings and interpolation."""

from __future__ import annotations

from typing import Any

import pytest

from wallnut.config import FormatSettings
from wallnut.rules.engine import (
    DISABLED,
    EXCLUDED,
    INACTIVE_REGULATION,
    INSUFFICIENT_DATA,
    MALFORMED,
    evaluate_plugin,
    evaluate_rule,
)
from wallnut.rules.interpolate import format_value, interpolate, placeholders
from wallnut.rules.models import DeclarativeRule, LookupTable, Severity, SpecialtyPlugin
from wallnut.rules.resolver import NOT_FOUND, ProjectSnapshot


def make_rule(**overrides: Any) -> DeclarativeRule:
    data: dict[str, Any] = {
        "id": "R1",
        "regulationId": "RTIEBT",
        "article": "Art. 1",
        "description": "Sensibilidade diferencial de {electrical.rcdSensitivity} mA",
        "severity": "critical",
        "conditions": [{"field": "electrical.rcdSensitivity", "operator": ">", "value": 10}],
        "remediation": "Substituir o diferencial.",
    }
    data.update(overrides)
    return DeclarativeRule.model_validate(data)


@pytest.fixture
def snapshot() -> ProjectSnapshot:
    return ProjectSnapshot(
        {
            "buildingType": "residential",
            "grossFloorArea": 1234567,
            "isRehabilitation": True,
            "electrical": {"rcdSensitivity": 30, "supplyType": "single_phase", "contractedPower": 20.7},
            "fireSafety": {"riskCategory": 2, "structuralFireResistance": 30},
            "tags": ["a", "b"],
        }
    )


# ---------------------------------------------------------------------------
# Rule outcomes
# ---------------------------------------------------------------------------


class TestEvaluateRule:
    def test_fires_with_finding(self, snapshot: ProjectSnapshot) -> None:
        outcome = evaluate_rule(make_rule(), snapshot, plugin_id="electrical", area="electrical")
        assert outcome.is_fail
        assert outcome.finding is not None
        assert outcome.finding.id == "PF-RTIEBT-R1"
        assert outcome.finding.severity is Severity.CRITICAL
        assert outcome.finding.description == "Sensibilidade diferencial de 30 mA"
        assert outcome.finding.area == "electrical"
        assert outcome.finding.regulation == "RTIEBT"
        assert outcome.finding.source_rule_id == "R1"

    def test_false_condition_passes(self, snapshot: ProjectSnapshot) -> None:
        rule = make_rule(conditions=[{"field": "electrical.rcdSensitivity", "operator": ">", "value": 30}])
        outcome = evaluate_rule(rule, snapshot)
        assert outcome.is_pass
        assert outcome.finding is None

    def test_missing_field_skips(self, snapshot: ProjectSnapshot) -> None:
        rule = make_rule(conditions=[{"field": "electrical.missing", "operator": ">", "value": 1}])
        outcome = evaluate_rule(rule, snapshot)
        assert outcome.is_skip
        assert outcome.reason == INSUFFICIENT_DATA
        assert outcome.missing_fields == ("electrical.missing",)
        assert not outcome.decided

    def test_false_then_skip_passes(self, snapshot: ProjectSnapshot) -> None:
        rule = make_rule(
            conditions=[
                {"field": "buildingType", "operator": "==", "value": "hospital"},
                {"field": "electrical.missing", "operator": ">", "value": 1},
            ]
        )
        assert evaluate_rule(rule, snapshot).is_pass

    def test_skip_then_false_passes(self, snapshot: ProjectSnapshot) -> None:
        rule = make_rule(
            conditions=[
                {"field": "electrical.missing", "operator": ">", "value": 1},
                {"field": "buildingType", "operator": "==", "value": "hospital"},
            ]
        )
        assert evaluate_rule(rule, snapshot).is_pass

    def test_true_then_skip_skips(self, snapshot: ProjectSnapshot) -> None:
        rule = make_rule(
            conditions=[
                {"field": "buildingType", "operator": "==", "value": "residential"},
                {"field": "electrical.missing", "operator": ">", "value": 1},
            ]
        )
        outcome = evaluate_rule(rule, snapshot)
        assert outcome.is_skip
        assert outcome.reason == INSUFFICIENT_DATA

    def test_disabled(self, snapshot: ProjectSnapshot) -> None:
        outcome = evaluate_rule(make_rule(enabled=False), snapshot)
        assert outcome.is_skip
        assert outcome.reason == DISABLED

    def test_deterministic(self, snapshot: ProjectSnapshot) -> None:
        rule = make_rule()
        assert evaluate_rule(rule, snapshot) == evaluate_rule(rule, snapshot)


class TestExclusions:
    def test_true_exclusion_wins_over_critical(self, snapshot: ProjectSnapshot) -> None:
        rule = make_rule(exclusions=[{"field": "isRehabilitation", "operator": "==", "value": True}])
        outcome = evaluate_rule(rule, snapshot)
        assert outcome.is_skip
        assert outcome.reason == EXCLUDED
        assert outcome.finding is None
        assert outcome.decided

    def test_any_exclusion_suffices(self, snapshot: ProjectSnapshot) -> None:
        rule = make_rule(
            exclusions=[
                {"field": "buildingType", "operator": "==", "value": "hospital"},
                {"field": "isRehabilitation", "operator": "exists"},
            ]
        )
        assert evaluate_rule(rule, snapshot).reason == EXCLUDED

    def test_skipped_exclusion_does_not_block(self, snapshot: ProjectSnapshot) -> None:
        rule = make_rule(exclusions=[{"field": "electrical.missing", "operator": ">", "value": 1}])
        assert evaluate_rule(rule, snapshot).is_fail

    def test_false_exclusion_does_not_block(self, snapshot: ProjectSnapshot) -> None:
        rule = make_rule(exclusions=[{"field": "isRehabilitation", "operator": "==", "value": False}])
        assert evaluate_rule(rule, snapshot).is_fail


class TestMalformed:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"id": ""},
            {"regulationId": ""},
            {"severity": "catastrophic"},
            {"conditions": []},
            {"conditions": [{"field": "buildingType", "operator": "roughly", "value": 1}]},
            {"conditions": [{"field": "buildingType", "operator": "lookup_gt"}]},
            {"conditions": [{"field": "buildingType", "operator": "ordinal_gt", "value": "A"}]},
            {"conditions": [{"field": "buildingType", "operator": "in", "value": "residential"}]},
        ],
    )
    def test_skipped_never_raises(self, snapshot: ProjectSnapshot, overrides: dict[str, Any]) -> None:
        outcome = evaluate_rule(make_rule(**overrides), snapshot)
        assert outcome.is_skip
        assert outcome.reason == MALFORMED
        assert outcome.diagnostics
        assert outcome.finding is None

    BAD_ORDINAL = {"field": "buildingType", "operator": "ordinal_gt", "value": "Z", "scale": ["A", "B"]}
    # Passes structural checks but cannot be evaluated.
    BAD_ROUND = {"field": "electrical.rcdSensitivity", "operator": "formula_gt", "value": "round(grossFloorArea, 0.5)"}
    FALSE = {"field": "electrical.rcdSensitivity", "operator": ">", "value": 100}

    @pytest.mark.parametrize("bad", [BAD_ORDINAL, BAD_ROUND])
    def test_malformed_exclusion_does_not_fire(self, snapshot: ProjectSnapshot, bad: dict[str, Any]) -> None:
        outcome = evaluate_rule(make_rule(exclusions=[bad]), snapshot)
        assert outcome.reason == MALFORMED
        assert outcome.finding is None

    @pytest.mark.parametrize("bad", [BAD_ORDINAL, BAD_ROUND])
    def test_false_condition_does_not_hide_malformed(self, snapshot: ProjectSnapshot, bad: dict[str, Any]) -> None:
        for conditions in ([self.FALSE, bad], [bad, self.FALSE]):
            outcome = evaluate_rule(make_rule(conditions=conditions), snapshot)
            assert outcome.is_skip
            assert outcome.reason == MALFORMED

    def test_non_euroclass_threshold(self, snapshot: ProjectSnapshot) -> None:
        rule = make_rule(
            conditions=[self.FALSE, {"field": "buildingType", "operator": "reaction_class_lt", "value": "Z"}]
        )
        assert evaluate_rule(rule, snapshot).reason == MALFORMED

    def test_logged_as_warning(self, snapshot: ProjectSnapshot, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("WARNING", logger="wallnut.rules.engine"):
            evaluate_rule(make_rule(conditions=[]), snapshot)
        assert any("malformed" in r.message for r in caplog.records)


class TestRequiredValue:
    TABLES = [
        LookupTable(
            id="fire-resistance",
            keys=["buildingType", "fireSafety.riskCategory"],
            values={"residential": {"1": 30, "2": 60}},
        )
    ]

    def test_lookup_threshold_rendered(self, snapshot: ProjectSnapshot) -> None:
        rule = make_rule(
            description="REI {fireSafety.structuralFireResistance}",
            conditions=[
                {
                    "field": "fireSafety.structuralFireResistance",
                    "operator": "lookup_lt",
                    "table": "fire-resistance",
                }
            ],
            requiredValue="Consultar quadro",
        )
        outcome = evaluate_rule(rule, snapshot, self.TABLES)
        assert outcome.is_fail
        assert outcome.finding is not None
        assert outcome.finding.required_value == "≥ 60"

    def test_template_when_no_lookup(self, snapshot: ProjectSnapshot) -> None:
        rule = make_rule(requiredValue="≤ {limits.max} mA", currentValueTemplate="{electrical.rcdSensitivity} mA")
        finding = evaluate_rule(rule, snapshot).finding
        assert finding is not None
        assert finding.required_value == "≤ — mA"
        assert finding.current_value == "30 mA"

    def test_no_templates(self, snapshot: ProjectSnapshot) -> None:
        finding = evaluate_rule(make_rule(), snapshot).finding
        assert finding is not None
        assert finding.required_value is None
        assert finding.current_value is None


# ---------------------------------------------------------------------------
# Plugin evaluation
# ---------------------------------------------------------------------------


class TestEvaluatePlugin:
    @pytest.fixture
    def plugin(self) -> SpecialtyPlugin:
        return SpecialtyPlugin.model_validate(
            {
                "id": "electrical",
                "name": "Elétrica",
                "areas": ["electrical"],
                "regulations": [
                    {"id": "RTIEBT", "shortRef": "Portaria 949-A/2006", "status": "active"},
                    {"id": "OLD", "shortRef": "DL 740/74", "status": "revoked"},
                ],
                "rules": [
                    make_rule().model_dump(by_alias=True),
                    make_rule(id="R2", regulationId="OLD").model_dump(by_alias=True),
                    make_rule(id="R3", enabled=False).model_dump(by_alias=True),
                ],
            }
        )

    def test_outcomes_in_plugin_order(self, plugin: SpecialtyPlugin, snapshot: ProjectSnapshot) -> None:
        evaluation = evaluate_plugin(plugin, snapshot)
        assert [o.rule_id for o in evaluation.outcomes] == ["R1", "R2", "R3"]

    def test_inactive_regulation_skipped(self, plugin: SpecialtyPlugin, snapshot: ProjectSnapshot) -> None:
        outcomes = evaluate_plugin(plugin, snapshot).outcomes
        assert outcomes[1].reason == INACTIVE_REGULATION
        assert outcomes[2].reason == DISABLED

    def test_finding_uses_short_ref(self, plugin: SpecialtyPlugin, snapshot: ProjectSnapshot) -> None:
        findings = evaluate_plugin(plugin, snapshot).findings
        assert len(findings) == 1
        assert findings[0].regulation == "Portaria 949-A/2006"
        assert findings[0].plugin_id == "electrical"
        assert findings[0].area == "electrical"


# ---------------------------------------------------------------------------
# Interpolation
# ---------------------------------------------------------------------------


class TestInterpolation:
    def test_rcd_sensitivity_sentence(self, snapshot: ProjectSnapshot) -> None:
        text = interpolate("Sensibilidade diferencial de {electrical.rcdSensitivity} mA", snapshot)
        assert text == "Sensibilidade diferencial de 30 mA"

    def test_booleans(self, snapshot: ProjectSnapshot) -> None:
        assert interpolate("{isRehabilitation}", snapshot) == "Sim"
        assert format_value(False) == "Não"

    def test_thousands_grouping(self, snapshot: ProjectSnapshot) -> None:
        assert interpolate("{grossFloorArea} m²", snapshot) == "1.234.567 m²"

    def test_decimals(self, snapshot: ProjectSnapshot) -> None:
        assert interpolate("{electrical.contractedPower}", snapshot) == "20,70"
        assert format_value(1234.5) == "1.234,50"
        assert format_value(-0.5) == "-0,50"

    def test_integral_float(self) -> None:
        assert format_value(60.0) == "60"

    def test_arrays(self, snapshot: ProjectSnapshot) -> None:
        assert interpolate("{tags}", snapshot) == "[a, b]"
        assert format_value([1000, True]) == "[1.000, Sim]"

    def test_missing_and_null(self, snapshot: ProjectSnapshot) -> None:
        assert interpolate("{nope.nothing}", snapshot) == "—"
        assert format_value(None) == "—"
        assert format_value(NOT_FOUND) == "—"

    def test_custom_settings(self, snapshot: ProjectSnapshot) -> None:
        settings = FormatSettings(yes_label="Yes", thousands_separator=",", decimal_separator=".")
        assert interpolate("{isRehabilitation} {grossFloorArea}", snapshot, settings) == "Yes 1,234,567"

    def test_placeholders(self) -> None:
        assert placeholders("{a.b} and { c }") == ["a.b", "c"]

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WALLNUT_YES_LABEL", "Yes")
        monkeypatch.setenv("WALLNUT_DECIMAL_SEP", ".")
        settings = FormatSettings.from_env()
        assert settings.yes_label == "Yes"
        assert settings.decimal_separator == "."
        assert settings.no_label == "Não"
