"""ElectricalSpecialty — low-voltage installations (RTIEBT)."""

from __future__ import annotations

from typing import Any

from wallnut.specialties.base import SpecialtyProvider

RTIEBT = "rtiebt"
RSIUEE = "rsiuee"


class ElectricalSpecialty(SpecialtyProvider):
    """Electrical installations: protection, earthing and supply."""

    @property
    def id(self) -> str:
        return "electrical"

    @property
    def name(self) -> str:
        return "Instalações Elétricas"

    @property
    def description(self) -> str:
        return "Instalações elétricas de baixa tensão: proteção diferencial, terras e potência."

    @property
    def areas(self) -> list[str]:
        return ["electrical"]

    def register_regulations(self) -> list[dict[str, Any]]:
        return [
            {
                "id": RTIEBT,
                "shortRef": "Portaria 949-A/2006",
                "title": "Regras Técnicas das Instalações Elétricas de Baixa Tensão",
                "status": "active",
                "legalForce": "legal",
                "area": "electrical",
                "effectiveDate": "2006-09-11",
                "tags": ["baixa tensão"],
            },
            {
                "id": RSIUEE,
                "shortRef": "DL 740/74",
                "title": "Regulamento de Segurança de Instalações de Utilização de Energia Elétrica",
                "status": "revoked",
                "legalForce": "legal",
                "area": "electrical",
                "effectiveDate": "1974-12-26",
                "notes": "Substituído pelas RTIEBT.",
            },
        ]

    def register_rules(self) -> list[dict[str, Any]]:
        return [
            {
                "id": "RTIEBT-RCD-01",
                "regulationId": RTIEBT,
                "article": "Secção 801.5.3",
                "description": "Sensibilidade diferencial de {electrical.rcdSensitivity} mA superior ao máximo admitido em habitações",
                "severity": "critical",
                "conditions": [
                    {"field": "electrical.rcdSensitivity", "operator": ">", "value": 30},
                ],
                "exclusions": [
                    {"field": "buildingType", "operator": "in", "value": ["industrial"]},
                ],
                "remediation": "Instalar dispositivos diferenciais de alta sensibilidade (≤ 30 mA).",
                "currentValueTemplate": "{electrical.rcdSensitivity} mA",
                "requiredValue": "≤ 30 mA",
                "tags": ["proteção diferencial"],
            },
            {
                "id": "RTIEBT-EARTH-01",
                "regulationId": RTIEBT,
                "article": "Secção 542",
                "description": "Instalação sem elétrodo de terra",
                "severity": "critical",
                "conditions": [
                    {"field": "electrical.hasEarthingSystem", "operator": "==", "value": False},
                ],
                "remediation": "Executar elétrodo de terra e ligação equipotencial principal.",
                "currentValueTemplate": "{electrical.hasEarthingSystem}",
            },
            {
                "id": "RTIEBT-EARTH-02",
                "regulationId": RTIEBT,
                "article": "Secção 413.1.4",
                "description": "Resistência de terra de {electrical.earthingResistance} Ω incompatível com a sensibilidade diferencial",
                "severity": "critical",
                "conditions": [
                    {
                        "field": "electrical.earthingResistance",
                        "operator": "formula_gt",
                        "value": "50000 / electrical.rcdSensitivity",
                    },
                ],
                "remediation": "Melhorar o elétrodo de terra ou reduzir a sensibilidade diferencial (R ≤ 50 V / IΔn).",
                "currentValueTemplate": "{electrical.earthingResistance} Ω",
            },
            {
                "id": "RTIEBT-POWER-01",
                "regulationId": RTIEBT,
                "article": "Secção 801.2.1",
                "description": "Potência contratada de {electrical.contractedPower} kVA acima do limite para alimentação {electrical.supplyType}",
                "severity": "warning",
                "conditions": [
                    {
                        "field": "electrical.contractedPower",
                        "operator": "lookup_gt",
                        "table": "max-contracted-power",
                        "keys": ["electrical.supplyType"],
                    },
                ],
                "remediation": "Passar a alimentação trifásica ou rever a potência a contratar.",
                "currentValueTemplate": "{electrical.contractedPower} kVA",
            },
            {
                "id": "RTIEBT-BATH-01",
                "regulationId": RTIEBT,
                "article": "Secção 701.512.3",
                "description": "Tomada instalada no volume {electrical.bathroomSocketZone} de casa de banho",
                "severity": "warning",
                "conditions": [
                    {"field": "electrical.bathroomSocketZone", "operator": "in", "value": ["0", "1", "2"]},
                ],
                "remediation": "Deslocar as tomadas para o volume 3 ou para fora dos volumes.",
            },
            {
                "id": "RTIEBT-CIRC-01",
                "regulationId": RTIEBT,
                "article": "Secção 801.3",
                "description": "Habitação com apenas {electrical.numberOfCircuits} circuitos",
                "severity": "info",
                "conditions": [
                    {"field": "buildingType", "operator": "==", "value": "residential"},
                    {"field": "electrical.numberOfCircuits", "operator": "<", "value": 3},
                ],
                "remediation": "Separar iluminação, tomadas e cozinha em circuitos distintos.",
            },
            {
                "id": "RTIEBT-EMERG-01",
                "regulationId": RTIEBT,
                "article": "Secção 801.56",
                "description": "Iluminação de segurança em falta",
                "severity": "warning",
                "conditions": [
                    {"field": "numberOfFloors", "operator": ">=", "value": 3},
                    {"field": "electrical.hasEmergencyLighting", "operator": "not_exists"},
                ],
                "remediation": "Prever blocos autónomos de iluminação de segurança nas vias de evacuação.",
            },
            {
                "id": "RSIUEE-01",
                "regulationId": RSIUEE,
                "article": "Art. 12.º",
                "description": "Quadro sem interruptor geral",
                "severity": "warning",
                "conditions": [
                    {"field": "electrical.hasMainSwitch", "operator": "==", "value": False},
                ],
            },
        ]

    def register_lookup_tables(self) -> list[dict[str, Any]]:
        return [
            {
                "id": "max-contracted-power",
                "description": "Potência máxima (kVA) por tipo de alimentação",
                "keys": ["electrical.supplyType"],
                "values": {"single_phase": 13.8, "three_phase": 41.4},
            },
        ]
