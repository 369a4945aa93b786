"""ThermalSpecialty — thermal behaviour of residential buildings (REH)."""

from __future__ import annotations

from typing import Any

from wallnut.specialties.base import SpecialtyProvider

REH = "reh"
REH_PORTARIA = "portaria-349b"


class ThermalSpecialty(SpecialtyProvider):
    """Thermal performance: envelope U-values, ceiling heights and heat pumps."""

    @property
    def id(self) -> str:
        return "thermal"

    @property
    def name(self) -> str:
        return "Comportamento Térmico"

    @property
    def description(self) -> str:
        return "Requisitos de comportamento térmico da envolvente em edifícios de habitação."

    @property
    def areas(self) -> list[str]:
        return ["thermal"]

    def register_regulations(self) -> list[dict[str, Any]]:
        return [
            {
                "id": REH,
                "shortRef": "DL 118/2013",
                "title": "Regulamento de Desempenho Energético dos Edifícios de Habitação",
                "status": "amended",
                "legalForce": "legal",
                "area": "thermal",
                "effectiveDate": "2013-12-01",
            },
            {
                "id": REH_PORTARIA,
                "shortRef": "Portaria 349-B/2013",
                "title": "Requisitos de conceção para edifícios de habitação",
                "status": "active",
                "legalForce": "regulatory",
                "area": "thermal",
                "effectiveDate": "2013-12-01",
            },
        ]

    def register_rules(self) -> list[dict[str, Any]]:
        return [
            {
                "id": "REH-U-WALL",
                "regulationId": REH_PORTARIA,
                "article": "Anexo, Tabela I.01",
                "description": "Coeficiente de transmissão térmica das paredes exteriores de {envelope.externalWallUValue} W/(m².K) na zona {location.climateZoneWinter}",
                "severity": "warning",
                "conditions": [
                    {
                        "field": "envelope.externalWallUValue",
                        "operator": "lookup_gt",
                        "table": "max-u-wall",
                        "keys": ["location.climateZoneWinter"],
                    },
                ],
                "exclusions": [
                    {"field": "isRehabilitation", "operator": "==", "value": True},
                ],
                "remediation": "Reforçar o isolamento térmico das paredes exteriores.",
                "currentValueTemplate": "{envelope.externalWallUValue} W/(m².K)",
            },
            {
                "id": "REH-U-ROOF",
                "regulationId": REH_PORTARIA,
                "article": "Anexo, Tabela I.01",
                "description": "Coeficiente de transmissão térmica da cobertura de {envelope.roofUValue} W/(m².K) na zona {location.climateZoneWinter}",
                "severity": "warning",
                "conditions": [
                    {
                        "field": "envelope.roofUValue",
                        "operator": "lookup_gt",
                        "table": "max-u-roof",
                        "keys": ["location.climateZoneWinter"],
                    },
                ],
                "remediation": "Reforçar o isolamento térmico da cobertura.",
                "currentValueTemplate": "{envelope.roofUValue} W/(m².K)",
            },
            {
                "id": "REH-HEIGHT-01",
                "regulationId": REH,
                "article": "Art. 65.º",
                "description": "Pé-direito médio de {computed.avgFloorHeight} m abaixo do mínimo regulamentar",
                "severity": "info",
                "conditions": [
                    {"field": "computed.avgFloorHeight", "operator": "<", "value": 2.4},
                ],
                "remediation": "Rever a altura entre pisos.",
                "currentValueTemplate": "{computed.avgFloorHeight} m",
                "requiredValue": "≥ 2,40 m",
            },
            {
                "id": "REH-GLAZING-01",
                "regulationId": REH,
                "article": "Art. 30.º",
                "description": "Área envidraçada excessiva face à área útil",
                "severity": "info",
                "conditions": [
                    {
                        "field": "envelope.glazingArea",
                        "operator": "computed_gt",
                        "formula": "0.25 * grossFloorArea",
                    },
                ],
                "remediation": "Reduzir a área envidraçada ou reforçar a proteção solar.",
                "currentValueTemplate": "{envelope.glazingArea} m²",
            },
            {
                "id": "REH-HP-01",
                "regulationId": REH,
                "article": "Art. 31.º",
                "description": "Potência contratada de {electrical.contractedPower} kVA insuficiente para a bomba de calor",
                "severity": "warning",
                "conditions": [
                    {"field": "thermal.hasHeatPump", "operator": "exists"},
                    {
                        "field": "electrical.contractedPower",
                        "operator": "formula_lt",
                        "value": "thermal.heatPumpElectricPower * 1.25",
                    },
                ],
                "remediation": "Aumentar a potência contratada ou rever o dimensionamento da bomba de calor.",
                "currentValueTemplate": "{electrical.contractedPower} kVA",
            },
        ]

    def register_lookup_tables(self) -> list[dict[str, Any]]:
        return [
            {
                "id": "max-u-wall",
                "description": "U máximo de paredes exteriores (W/(m².K)) por zona climática de inverno",
                "keys": ["location.climateZoneWinter"],
                "values": {"I1": 0.50, "I2": 0.40, "I3": 0.35},
            },
            {
                "id": "max-u-roof",
                "description": "U máximo de coberturas (W/(m².K)) por zona climática de inverno",
                "keys": ["location.climateZoneWinter"],
                "values": {"I1": 0.40, "I2": 0.35, "I3": 0.30},
            },
        ]

    def register_computed_fields(self) -> list[dict[str, Any]]:
        return [
            {
                "id": "avgFloorHeight",
                "description": "Pé-direito médio (altura do edifício / número de pisos)",
                "computation": {
                    "type": "arithmetic",
                    "operands": ["buildingHeight", "numberOfFloors"],
                    "operation": "divide",
                },
            },
        ]
