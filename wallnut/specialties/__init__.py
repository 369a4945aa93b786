"""Specialty plugins — built-in providers, registry and JSON loader."""

from wallnut.specialties.base import SpecialtyProvider
from wallnut.specialties.electrical import ElectricalSpecialty
from wallnut.specialties.fire_safety import FireSafetySpecialty
from wallnut.specialties.loader import load_plugin
from wallnut.specialties.registry import SpecialtyRegistry
from wallnut.specialties.thermal import ThermalSpecialty

__all__ = [
    "ElectricalSpecialty",
    "FireSafetySpecialty",
    "SpecialtyProvider",
    "SpecialtyRegistry",
    "ThermalSpecialty",
    "load_plugin",
]
