# confbind/merge.py
"""
confbind.merge
--------------

Folds prioritized sources into a single configuration tree.
"""

import copy
import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from .provenance import ProvenanceStore

log = logging.getLogger(__name__)


def deep_merge(base: Mapping, updates: Mapping) -> Dict[str, Any]:
    """
    Recursively merge the `updates` mapping into the `base` mapping.

    - Works on a deep copy of `base`; neither input is modified.
    - If a key exists in both and BOTH values are mappings, they are merged
      recursively.
    - Otherwise (key only in `updates`, or either value is a list, scalar or
      None) the value from `updates` replaces the base value wholesale.
      Lists are never concatenated.

    Args:
        base: The lower-priority tree.
        updates: The higher-priority tree.

    Returns:
        A new dictionary representing the merged result.
    """
    merged = copy.deepcopy(dict(base))

    for key, value_updates in updates.items():
        value_base = merged.get(key)
        if isinstance(value_base, Mapping) and isinstance(value_updates, Mapping):
            merged[key] = deep_merge(value_base, value_updates)
        else:
            merged[key] = copy.deepcopy(value_updates)

    return merged


def sort_sources(sources: Iterable) -> list:
    """Order sources by ascending priority; ties keep registration order."""
    # sorted() is stable
    return sorted(sources, key=lambda s: s.priority)


def merge_sources(sources: Iterable, provenance: Optional[ProvenanceStore] = None) -> Dict[str, Any]:
    """
    Load every source in ascending priority order and deep-merge the results.

    A source whose ``load()`` raises is skipped with a warning; the remaining
    sources are still merged. Loads run one after another.

    Args:
        sources: Objects exposing ``name``, ``priority`` and ``load()``.
        provenance: Optional store that records which source set each leaf.

    Returns:
        The merged tree.
    """
    merged: Dict[str, Any] = {}
    for source in sort_sources(sources):
        name = getattr(source, "name", None) or type(source).__name__
        try:
            data = source.load()
        except Exception as e:
            log.warning(f"Failed to load config source {name}: {e}")
            continue

        if not data:
            log.debug(f"Source {name} (priority {source.priority}) contributed nothing")
            continue
        if not isinstance(data, Mapping):
            log.warning(f"Ignoring config source {name}: load() returned {type(data).__name__}, not a mapping")
            continue

        log.debug(f"Merging source {name} (priority {source.priority}): {len(data)} top-level keys")
        merged = deep_merge(merged, data)
        if provenance is not None:
            provenance.record_tree(data, name, source.priority)

    return merged
