"""FireSafetySpecialty — fire safety in buildings (SCIE)."""

from __future__ import annotations

from typing import Any

from wallnut.specialties.base import SpecialtyProvider

SCIE = "scie-dl220"
SCIE_RT = "scie-rt"

RISK_CATEGORIES = ["1", "2", "3", "4"]


class FireSafetySpecialty(SpecialtyProvider):
    """Fire safety: risk categories, fire resistance, evacuation and materials."""

    @property
    def id(self) -> str:
        return "fire-safety"

    @property
    def name(self) -> str:
        return "Segurança Contra Incêndio"

    @property
    def description(self) -> str:
        return "Segurança contra incêndio em edifícios: categorias de risco, resistência ao fogo e evacuação."

    @property
    def areas(self) -> list[str]:
        return ["fire_safety"]

    def register_regulations(self) -> list[dict[str, Any]]:
        return [
            {
                "id": SCIE,
                "shortRef": "DL 220/2008",
                "title": "Regime Jurídico de Segurança Contra Incêndio em Edifícios",
                "status": "amended",
                "legalForce": "legal",
                "area": "fire_safety",
                "effectiveDate": "2009-01-01",
                "notes": "Alterado pelo DL 224/2015.",
            },
            {
                "id": SCIE_RT,
                "shortRef": "Portaria 1532/2008",
                "title": "Regulamento Técnico de Segurança Contra Incêndio em Edifícios",
                "status": "active",
                "legalForce": "legal",
                "area": "fire_safety",
                "effectiveDate": "2009-01-01",
            },
        ]

    def register_rules(self) -> list[dict[str, Any]]:
        return [
            {
                "id": "SCIE-CAT-01",
                "regulationId": SCIE,
                "article": "Anexo III",
                "description": "Categoria de risco {fireSafety.riskCategory} incompatível com a altura de {buildingHeight} m",
                "severity": "critical",
                "conditions": [
                    {"field": "buildingHeight", "operator": ">", "value": 28},
                    {
                        "field": "fireSafety.riskCategory",
                        "operator": "ordinal_lt",
                        "value": "3",
                        "scale": RISK_CATEGORIES,
                    },
                ],
                "remediation": "Rever a classificação da utilização-tipo para a 3.ª ou 4.ª categoria de risco.",
                "currentValueTemplate": "{fireSafety.riskCategory}.ª categoria",
                "requiredValue": "3.ª categoria ou superior",
            },
            {
                "id": "SCIE-CAT-02",
                "regulationId": SCIE,
                "article": "Anexo III",
                "description": "Categoria de risco {fireSafety.riskCategory} inferior à indicada pela altura do edifício",
                "severity": "warning",
                "conditions": [
                    {
                        "field": "fireSafety.riskCategory",
                        "operator": "ordinal_lt",
                        "value": "2",
                        "scale": RISK_CATEGORIES,
                    },
                    {"field": "computed.heightRiskCategory", "operator": "!=", "value": "1"},
                ],
                "remediation": "Confirmar a categoria de risco face à altura do edifício.",
            },
            {
                "id": "SCIE-RF-01",
                "regulationId": SCIE_RT,
                "article": "Art. 15.º",
                "description": "Resistência ao fogo dos elementos estruturais de {fireSafety.structuralFireResistance} min inferior à exigida",
                "severity": "critical",
                "conditions": [
                    {
                        "field": "fireSafety.structuralFireResistance",
                        "operator": "lookup_lt",
                        "table": "fire-resistance",
                    },
                ],
                "remediation": "Reforçar a proteção passiva da estrutura (pinturas intumescentes, revestimentos).",
                "currentValueTemplate": "REI {fireSafety.structuralFireResistance}",
                "requiredValue": "Consultar Quadro IX",
            },
            {
                "id": "SCIE-EVAC-01",
                "regulationId": SCIE_RT,
                "article": "Art. 57.º",
                "description": "Distância de evacuação de {fireSafety.maxEvacuationDistance} m em impasse",
                "severity": "warning",
                "conditions": [
                    {"field": "fireSafety.maxEvacuationDistance", "operator": ">", "value": 15},
                ],
                "exclusions": [
                    {"field": "fireSafety.hasSprinklers", "operator": "==", "value": True},
                ],
                "remediation": "Criar uma segunda saída ou reduzir o percurso em impasse.",
                "currentValueTemplate": "{fireSafety.maxEvacuationDistance} m",
                "requiredValue": "≤ 15 m",
            },
            {
                "id": "SCIE-MAT-01",
                "regulationId": SCIE_RT,
                "article": "Art. 41.º",
                "description": "Revestimento das vias de evacuação com reação ao fogo {fireSafety.escapeRouteLiningClass}",
                "severity": "warning",
                "conditions": [
                    {
                        "field": "fireSafety.escapeRouteLiningClass",
                        "operator": "reaction_class_lt",
                        "value": "C",
                    },
                ],
                "remediation": "Aplicar revestimentos de classe C-s2 d0 ou melhor.",
                "requiredValue": "C ou melhor",
            },
            {
                "id": "SCIE-EMERG-01",
                "regulationId": SCIE_RT,
                "article": "Art. 115.º",
                "description": "Autonomia da iluminação de emergência de {electrical.emergencyLightingAutonomy} min",
                "severity": "warning",
                "conditions": [
                    {"field": "electrical.hasEmergencyLighting", "operator": "==", "value": True},
                    {"field": "electrical.emergencyLightingAutonomy", "operator": "<", "value": 60},
                ],
                "remediation": "Prever blocos autónomos com autonomia mínima de 1 hora.",
                "requiredValue": "≥ 60 min",
            },
        ]

    def register_lookup_tables(self) -> list[dict[str, Any]]:
        return [
            {
                "id": "fire-resistance",
                "description": "Resistência ao fogo padrão mínima (min) por utilização-tipo e categoria de risco",
                "keys": ["buildingType", "fireSafety.riskCategory"],
                "values": {
                    "residential": {"1": 30, "2": 60, "3": 90, "4": 120},
                    "commercial": {"1": 60, "2": 90, "3": 120, "4": 180},
                    "hospital": {"1": 60, "2": 90, "3": 120, "4": 180},
                },
            },
        ]

    def register_computed_fields(self) -> list[dict[str, Any]]:
        return [
            {
                "id": "heightRiskCategory",
                "description": "Categoria de risco indicada pela altura do edifício",
                "computation": {
                    "type": "tier",
                    "field": "buildingHeight",
                    "tiers": [
                        {"max": 9, "result": "1"},
                        {"min": 9, "max": 28, "result": "2"},
                        {"min": 28, "max": 50, "result": "3"},
                        {"min": 50, "result": "4"},
                    ],
                },
            },
        ]
