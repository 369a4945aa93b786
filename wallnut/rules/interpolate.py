"""``{field.path}`` interpolation of finding text."""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from wallnut.config import FormatSettings
from wallnut.rules.resolver import NOT_FOUND, ProjectSnapshot, resolve

_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")

_DEFAULT_SETTINGS = FormatSettings()


def _group_digits(digits: str, separator: str) -> str:
    if not separator or len(digits) <= 3:
        return digits
    head = len(digits) % 3 or 3
    groups = [digits[:head]] + [digits[i:i + 3] for i in range(head, len(digits), 3)]
    return separator.join(groups)


def format_number(value: int | float, settings: FormatSettings = _DEFAULT_SETTINGS) -> str:
    """Format a number with grouped thousands.

    Integral values print without decimals (``1.234``); others with
    ``settings.decimals`` fraction digits (``2,50``).
    """
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, int) or value.is_integer():
        text = str(abs(int(value)))
        fraction = ""
    else:
        text = f"{abs(value):.{settings.decimals}f}"
        text, _, fraction = text.partition(".")
    sign = "-" if value < 0 else ""
    out = sign + _group_digits(text, settings.thousands_separator)
    if fraction:
        out += settings.decimal_separator + fraction
    return out


def format_value(value: Any, settings: FormatSettings = _DEFAULT_SETTINGS) -> str:
    """Render a resolved value for display."""
    if value is NOT_FOUND or value is None:
        return settings.missing_placeholder
    if isinstance(value, bool):
        return settings.yes_label if value else settings.no_label
    if isinstance(value, (int, float)):
        return format_number(value, settings)
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        inner = ", ".join(f"{k}: {format_value(v, settings)}" for k, v in value.items())
        return "{" + inner + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(v, settings) for v in value) + "]"
    if isinstance(value, (set, frozenset)):
        return "[" + ", ".join(sorted(format_value(v, settings) for v in value)) + "]"
    return str(value)


def interpolate(
    template: str,
    snapshot: ProjectSnapshot,
    settings: FormatSettings = _DEFAULT_SETTINGS,
) -> str:
    """Replace every ``{field.path}`` in *template* with its formatted value.

    Unresolved placeholders render as ``settings.missing_placeholder``.
    """
    if not template:
        return template

    def substitute(match: re.Match[str]) -> str:
        return format_value(resolve(match.group(1).strip(), snapshot), settings)

    return _PLACEHOLDER.sub(substitute, template)


def placeholders(template: str) -> list[str]:
    """Field paths referenced by *template*."""
    return [m.strip() for m in _PLACEHOLDER.findall(template or "")]
