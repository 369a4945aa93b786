"""Field resolution against an immutable project snapshot.

Usage::

    snapshot = ProjectSnapshot(project, computed={"avgFloorHeight": 2.8})
    resolve("electrical.rcdSensitivity", snapshot)   # -> 30
    resolve("electrical.missing", snapshot)          # -> NOT_FOUND
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any

COMPUTED_PREFIX = "computed."


class _NotFound:
    """Sentinel for a path that does not resolve.

    Distinct from ``None``: a field explicitly set to ``null``/``False``/``0``
    *was* found.
    """

    _instance: _NotFound | None = None

    def __new__(cls) -> _NotFound:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"

    def __reduce__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()


def freeze(value: Any) -> Any:
    """Return a deeply read-only copy of nested mappings and sequences."""
    if isinstance(value, Mapping):
        return MappingProxyType({str(k): freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze(v) for v in value)
    return value


class ProjectSnapshot:
    """Read-only view of a project plus its derived ``computed.*`` values.

    Parameters
    ----------
    data:
        The nested project record, organised by domain
        (``electrical``, ``fireSafety`` ...).
    computed:
        Values derived upstream, addressed as ``computed.<key>``.
    """

    __slots__ = ("_data", "_computed")

    def __init__(
        self,
        data: Mapping[str, Any] | None = None,
        computed: Mapping[str, Any] | None = None,
    ) -> None:
        if data is not None and not isinstance(data, Mapping):
            raise TypeError(f"Project data must be a mapping, got {type(data).__name__}")
        if computed is not None and not isinstance(computed, Mapping):
            raise TypeError(
                f"Computed values must be a mapping, got {type(computed).__name__}"
            )
        self._data = freeze(data or {})
        self._computed = freeze(computed or {})

    @property
    def data(self) -> Mapping[str, Any]:
        return self._data

    @property
    def computed(self) -> Mapping[str, Any]:
        return self._computed

    def with_computed(self, computed: Mapping[str, Any]) -> ProjectSnapshot:
        """Return a new snapshot sharing this project data with other derived values."""
        clone = ProjectSnapshot.__new__(ProjectSnapshot)
        clone._data = self._data
        clone._computed = freeze(computed)
        return clone

    def __repr__(self) -> str:
        return f"ProjectSnapshot({len(self._data)} fields, {len(self._computed)} computed)"


def walk(root: Any, parts: Sequence[str]) -> Any:
    """Follow *parts* through nested mappings; NOT_FOUND on any gap."""
    current = root
    for part in parts:
        if isinstance(current, Mapping):
            if part not in current:
                return NOT_FOUND
            current = current[part]
        elif isinstance(current, Sequence) and not isinstance(current, str) and part.isdigit():
            index = int(part)
            if index >= len(current):
                return NOT_FOUND
            current = current[index]
        else:
            return NOT_FOUND
    return current


def resolve(path: str, snapshot: ProjectSnapshot) -> Any:
    """Resolve a dotted *path* against *snapshot*.

    ``computed.*`` paths look in the derived values first, then in a
    ``computed`` subtree of the project itself.  Returns :data:`NOT_FOUND`
    when any segment is absent.
    """
    if not path:
        return NOT_FOUND
    parts = path.split(".")
    if path.startswith(COMPUTED_PREFIX):
        value = walk(snapshot.computed, parts[1:])
        if value is not NOT_FOUND:
            return value
    return walk(snapshot.data, parts)
