"""Load specialty plugins from JSON.

A plugin is either a single JSON file holding the whole
:class:`SpecialtyPlugin`, or a directory::

    <plugin>/
        plugin.json            metadata (id, name, version, areas, ...)
        regulations.json       {"regulations": [...]} or a bare list
        rules.json             {"rules": [...]} or a bare list
        lookup-tables.json     {"tables": [...]} or a bare list
        computed-fields.json   {"fields": [...]} or a bare list

Rules may also be split per regulation as ``regulations/<id>/rules.json``
next to a ``regulations/registry.json``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from wallnut.rules.models import SpecialtyPlugin
from wallnut.rules.validate import ensure_valid_plugin

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _read_list(path: Path, key: str) -> list[Any]:
    """Read a JSON list stored bare or under *key*; missing file → []."""
    if not path.is_file():
        return []
    raw = _read_json(path)
    if isinstance(raw, dict):
        raw = raw.get(key, [])
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a list of {key}")
    return raw


def _assemble_directory(folder: Path) -> dict[str, Any]:
    meta_path = folder / "plugin.json"
    if not meta_path.is_file():
        raise FileNotFoundError(f"Plugin metadata not found: {meta_path}")
    data = _read_json(meta_path)
    if not isinstance(data, dict):
        raise ValueError(f"{meta_path}: expected a JSON object")

    regulations = _read_list(folder / "regulations.json", "regulations")
    rules = _read_list(folder / "rules.json", "rules")

    reg_dir = folder / "regulations"
    if reg_dir.is_dir():
        regulations.extend(_read_list(reg_dir / "registry.json", "regulations"))
        for rules_path in sorted(reg_dir.glob("*/rules.json")):
            rules.extend(_read_list(rules_path, "rules"))

    data.setdefault("regulations", [])
    data["regulations"] = list(data["regulations"]) + regulations
    data.setdefault("rules", [])
    data["rules"] = list(data["rules"]) + rules
    data.setdefault("lookupTables", _read_list(folder / "lookup-tables.json", "tables"))
    data.setdefault("computedFields", _read_list(folder / "computed-fields.json", "fields"))
    return data


def load_plugin(path: str | Path, *, validate: bool = True) -> SpecialtyPlugin:
    """Load a plugin from a JSON file or a plugin directory.

    Raises
    ------
    FileNotFoundError
        If *path* (or a directory's ``plugin.json``) does not exist.
    ValueError
        On invalid JSON, a definition that does not fit the models, or
        (with *validate*) a :class:`RuleValidationError`.
    """
    path = Path(path)
    if path.is_dir():
        data = _assemble_directory(path)
    elif path.is_file():
        data = _read_json(path)
    else:
        raise FileNotFoundError(f"Plugin not found: {path}")

    plugin = SpecialtyPlugin.model_validate(data)
    if validate:
        ensure_valid_plugin(plugin)
    logger.debug("Loaded plugin %s from %s (%d rules)", plugin.id, path, len(plugin.rules))
    return plugin
