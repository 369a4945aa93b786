"""Abstract SpecialtyProvider interface.

Every built-in specialty implements this interface to contribute its
regulations, declarative rules, lookup tables and computed fields.  Rule
data is returned as plain dicts in the camelCase shape of authored rule
JSON, so a provider reads the same as a plugin file on disk.
"""

from __future__ import annotations

import abc
from typing import Any

from wallnut.rules.models import SpecialtyPlugin
from wallnut.rules.validate import ensure_valid_plugin


class SpecialtyProvider(abc.ABC):
    """Base class for all specialty providers."""

    version: str = "1.0.0"

    @property
    @abc.abstractmethod
    def id(self) -> str:
        """Plugin identifier (e.g. 'electrical', 'fire-safety')."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Human-readable specialty name."""

    @property
    @abc.abstractmethod
    def description(self) -> str:
        """What the specialty covers."""

    @property
    @abc.abstractmethod
    def areas(self) -> list[str]:
        """Specialty areas findings are filed under; the first is the default."""

    @abc.abstractmethod
    def register_regulations(self) -> list[dict[str, Any]]:
        """Return RegulationDocument-compatible dicts.

        Each dict should have: id, shortRef, title, status, legalForce,
        area, effectiveDate.
        """

    @abc.abstractmethod
    def register_rules(self) -> list[dict[str, Any]]:
        """Return DeclarativeRule-compatible dicts.

        Each dict should have: id, regulationId, article, description,
        severity, conditions, and optionally exclusions, remediation,
        currentValueTemplate, requiredValue, tags.
        """

    def register_lookup_tables(self) -> list[dict[str, Any]]:
        """Return LookupTable-compatible dicts (id, keys, values)."""
        return []

    def register_computed_fields(self) -> list[dict[str, Any]]:
        """Return ComputedField-compatible dicts (id, computation)."""
        return []

    def build(self) -> SpecialtyPlugin:
        """Assemble and validate the plugin.

        Raises
        ------
        RuleValidationError
            If any rule, table or regulation reference is invalid.
        """
        plugin = SpecialtyPlugin.model_validate(
            {
                "id": self.id,
                "name": self.name,
                "version": self.version,
                "areas": self.areas,
                "description": self.description,
                "regulations": self.register_regulations(),
                "rules": self.register_rules(),
                "lookupTables": self.register_lookup_tables(),
                "computedFields": self.register_computed_fields(),
            }
        )
        ensure_valid_plugin(plugin)
        return plugin
