"""Small helpers for working with mappings keyed by resource names."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

K = TypeVar("K")
T = TypeVar("T")


def sorted_map_keys(m: Mapping[K, Any]) -> list[K]:
    """Return the keys of a mapping in ascending order."""
    return sorted(m)


def sorted_all_inner_maps_keys(m: Mapping[Any, Mapping[K, Any]]) -> list[K]:
    """Return the keys of every inner mapping, all together, in ascending order."""
    return sorted(key for inner in m.values() for key in inner)


def get_property(p: T | None, default: T) -> T:
    """Return ``p`` unless it is None, in which case return ``default``."""
    return default if p is None else p


def true_key_values(m: Mapping[K, bool]) -> list[K]:
    """Return, in ascending order, the keys whose value is true."""
    return [key for key in sorted(m) if m[key]]