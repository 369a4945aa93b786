"""Global configuration: constants, display formatting, logging setup."""

from __future__ import annotations

import logging
import os

from pydantic import BaseModel

# Environment variable controlling the log level used by configure_logging()
LOG_LEVEL_ENV = "WALLNUT_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"

# Rendered in place of an unresolved {field.path} placeholder
MISSING_VALUE_PLACEHOLDER = "—"

# Regulation bucket for findings that carry no regulation reference
UNASSIGNED_REGULATION = "(sem regulamento)"

# Euroclass reaction-to-fire scale, best (A1) to worst
EUROCLASS_SCALE = (
    "A1", "A2", "B", "C", "D", "E", "F",
    "CFL-s1", "CFL-s2", "DFL-s1", "EFL", "FFL",
)

# Project namespaces shared by every specialty (building-level context)
GENERIC_FIELD_NAMESPACES = frozenset({
    "buildingType",
    "numberOfFloors",
    "grossFloorArea",
    "isRehabilitation",
    "occupancy",
    "location",
    "computed",
    "building",
    "buildingHeight",
    "constructionYear",
    "projectType",
    "municipality",
    "district",
    "parish",
})


class FormatSettings(BaseModel):
    """How resolved values are rendered into finding text."""

    yes_label: str = "Sim"
    no_label: str = "Não"
    missing_placeholder: str = MISSING_VALUE_PLACEHOLDER
    thousands_separator: str = "."
    decimal_separator: str = ","
    decimals: int = 2
    """Fraction digits for non-integral numbers."""

    @classmethod
    def from_env(cls) -> FormatSettings:
        """Build settings from ``WALLNUT_*`` environment variables."""
        overrides: dict[str, str] = {}
        for key, env in (
            ("yes_label", "WALLNUT_YES_LABEL"),
            ("no_label", "WALLNUT_NO_LABEL"),
            ("thousands_separator", "WALLNUT_THOUSANDS_SEP"),
            ("decimal_separator", "WALLNUT_DECIMAL_SEP"),
        ):
            value = os.environ.get(env)
            if value is not None:
                overrides[key] = value
        return cls(**overrides)


def configure_logging(level: str | int | None = None) -> None:
    """Configure root logging for command-line or service use.

    The level defaults to ``$WALLNUT_LOG_LEVEL`` and then ``INFO``.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
