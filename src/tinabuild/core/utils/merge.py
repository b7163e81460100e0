"""Layered merging of configuration mappings.

Later layers win. Nested mappings merge key by key; lists are replaced unless
the overriding list opens with a marker:

- ``["+", ...]`` appends to the inherited list, so a project file can add a
  flag to the default dev server command: ``command: ["+", "--verbose"]``.
- ``["=", ...]`` replaces it, for lists whose first real item is ``"+"``.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

APPEND_MARKER = "+"
REPLACE_MARKER = "="


def merge_lists(inherited: List[Any], layer: List[Any]) -> List[Any]:
    """
    >>> merge_lists(["npx", "tinacms"], ["+", "--verbose"])
    ['npx', 'tinacms', '--verbose']
    >>> merge_lists(["npx", "tinacms"], ["node", "dev.js"])
    ['node', 'dev.js']
    """
    if not layer:
        return list(inherited)
    marker, rest = layer[0], layer[1:]
    if marker == APPEND_MARKER:
        return list(inherited) + list(rest)
    if marker == REPLACE_MARKER:
        return list(rest)
    return list(layer)


def deep_merge(base: Mapping[str, Any], override: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Return ``base`` with ``override`` laid over it. Inputs are not mutated.

    >>> deep_merge({"readiness": {"port": 4001, "host": "localhost"}}, {"readiness": {"port": 4100}})
    {'readiness': {'port': 4100, 'host': 'localhost'}}
    """
    merged: Dict[str, Any] = dict(base)
    for key, new in (override or {}).items():
        old = merged.get(key)
        if isinstance(old, Mapping) and isinstance(new, Mapping):
            merged[key] = deep_merge(old, new)
        elif isinstance(old, list) and isinstance(new, list):
            merged[key] = merge_lists(old, new)
        else:
            merged[key] = new
    return merged


def merge_layers(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Fold ``layers`` left to right with deep_merge; ``None`` layers are skipped."""
    merged: Dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged = deep_merge(merged, layer)
    return merged


__all__ = ["APPEND_MARKER", "REPLACE_MARKER", "deep_merge", "merge_layers", "merge_lists"]
