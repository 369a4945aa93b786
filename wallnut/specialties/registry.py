"""SpecialtyRegistry — discover, register, and query specialty plugins."""

from __future__ import annotations

import logging

from wallnut.rules.models import SpecialtyPlugin
from wallnut.specialties.base import SpecialtyProvider

logger = logging.getLogger(__name__)


class SpecialtyRegistry:
    """Central registry for specialty plugins.

    Accepts ready-built plugins (e.g. from :func:`load_plugin`) or
    providers, which are built and validated on registration.  Plugins are
    kept in registration order, which is the order analyses report them.
    """

    def __init__(self) -> None:
        self._plugins: dict[str, SpecialtyPlugin] = {}
        self._area_map: dict[str, str] = {}  # area -> plugin id

    def register(self, plugin: SpecialtyPlugin | SpecialtyProvider) -> SpecialtyPlugin:
        """Add a plugin to the registry, replacing any with the same id."""
        if isinstance(plugin, SpecialtyProvider):
            plugin = plugin.build()
        self._plugins[plugin.id] = plugin
        for area in plugin.areas:
            self._area_map.setdefault(area, plugin.id)
        logger.info(
            "Registered specialty: %s (%d regulations, %d rules)",
            plugin.id, len(plugin.regulations), len(plugin.rules),
        )
        return plugin

    def auto_discover(self) -> None:
        """Load all built-in specialties."""
        from wallnut.specialties.electrical import ElectricalSpecialty
        from wallnut.specialties.fire_safety import FireSafetySpecialty
        from wallnut.specialties.thermal import ThermalSpecialty

        for provider_cls in [
            ElectricalSpecialty,
            FireSafetySpecialty,
            ThermalSpecialty,
        ]:
            self.register(provider_cls())

    def get(self, plugin_id: str) -> SpecialtyPlugin | None:
        """Get a plugin by id."""
        return self._plugins.get(plugin_id)

    def plugin_for_area(self, area: str) -> SpecialtyPlugin | None:
        """Get the first registered plugin covering *area*."""
        plugin_id = self._area_map.get(area)
        if plugin_id is None:
            return None
        return self._plugins.get(plugin_id)

    def list_plugins(self) -> list[SpecialtyPlugin]:
        """Return all registered plugins."""
        return list(self._plugins.values())

    def __len__(self) -> int:
        return len(self._plugins)

    def __contains__(self, plugin_id: object) -> bool:
        return plugin_id in self._plugins
