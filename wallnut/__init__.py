"""Wallnut — declarative regulatory rule evaluation for building projects."""

__version__ = "1.0.0"

from wallnut.analysis.analyzer import AnalysisResult, ComplianceAnalyzer
from wallnut.analysis.report import AnalysisReport
from wallnut.config import FormatSettings, configure_logging
from wallnut.rules.engine import evaluate_plugin, evaluate_rule
from wallnut.rules.models import DeclarativeRule, Finding, SpecialtyPlugin
from wallnut.rules.resolver import ProjectSnapshot
from wallnut.specialties.loader import load_plugin
from wallnut.specialties.registry import SpecialtyRegistry

__all__ = [
    "AnalysisReport",
    "AnalysisResult",
    "ComplianceAnalyzer",
    "DeclarativeRule",
    "Finding",
    "FormatSettings",
    "ProjectSnapshot",
    "SpecialtyPlugin",
    "SpecialtyRegistry",
    "__version__",
    "configure_logging",
    "evaluate_plugin",
    "evaluate_rule",
    "load_plugin",
]
