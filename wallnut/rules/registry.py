"""RegulationRegistry — which regulations of a plugin are in force."""

from __future__ import annotations

from wallnut.rules.models import DeclarativeRule, RegulationDocument, SpecialtyPlugin

# Amended regulations remain partially in force.
APPLICABLE_STATUSES = frozenset({"active", "amended"})


class RegulationRegistry:
    """Read-only index of a plugin's regulations and their rules.

    Rules citing a regulation the plugin does not list are treated as
    applicable: there is no lifecycle information to exclude them.
    """

    def __init__(self, plugin: SpecialtyPlugin) -> None:
        self._plugin = plugin
        self._regulations: dict[str, RegulationDocument] = {r.id: r for r in plugin.regulations}
        self._rules: dict[str, list[DeclarativeRule]] = {}
        for rule in plugin.rules:
            self._rules.setdefault(rule.regulation_id, []).append(rule)

    def get_regulation(self, regulation_id: str) -> RegulationDocument | None:
        return self._regulations.get(regulation_id)

    def get_by_status(self, status: str) -> list[RegulationDocument]:
        return [r for r in self._regulations.values() if r.status == status]

    def get_applicable_regulations(self) -> list[RegulationDocument]:
        return [r for r in self._regulations.values() if r.status in APPLICABLE_STATUSES]

    def is_applicable(self, regulation_id: str) -> bool:
        reg = self._regulations.get(regulation_id)
        return reg is None or reg.status in APPLICABLE_STATUSES

    def get_rules_for_regulation(self, regulation_id: str) -> list[DeclarativeRule]:
        return list(self._rules.get(regulation_id, []))

    def get_active_rules(self) -> list[DeclarativeRule]:
        """Enabled rules of applicable regulations, in plugin order."""
        return [
            rule for rule in self._plugin.rules
            if rule.enabled and self.is_applicable(rule.regulation_id)
        ]

    def regulation_ref(self, regulation_id: str) -> str:
        """Display reference for a regulation: its short ref, else its id."""
        reg = self._regulations.get(regulation_id)
        if reg is not None and reg.short_ref:
            return reg.short_ref
        return regulation_id

    def area_for(self, regulation_id: str) -> str:
        """Specialty area for findings from *regulation_id*."""
        reg = self._regulations.get(regulation_id)
        if reg is not None and reg.area:
            return reg.area
        if self._plugin.areas:
            return self._plugin.areas[0]
        return self._plugin.id
