# confbind/pipeline.py
"""
confbind.pipeline
-----------------

The resolution pipeline and the state it publishes.

A ``Pipeline`` is one published result of merge -> resolve -> decrypt,
together with the instance cache for that result. Reloading never mutates a
pipeline: ``reload()`` builds a new one with a fresh, empty cache, and the
owner swaps its reference. Two overlapping reloads therefore each produce a
complete pipeline and the last one published wins.
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .encryption import SecretDecryptor
from .merge import merge_sources
from .placeholders import EnvLookup, PlaceholderResolver
from .provenance import ProvenanceStore

log = logging.getLogger(__name__)

ChangeListener = Callable[[Dict[str, Any]], None]


class InstanceCache:
    """
    One bound instance per schema class.

    ``get_or_bind`` calls the factory on the first request for a class and
    returns the stored instance afterwards, until ``invalidate()``.
    """

    def __init__(self):
        self._instances: Dict[type, Any] = {}
        self._lock = threading.RLock()

    def get_or_bind(self, cls: type, factory: Callable[[], Any]) -> Any:
        with self._lock:
            if cls in self._instances:
                return self._instances[cls]
            instance = factory()
            self._instances[cls] = instance
            return instance

    def invalidate(self) -> None:
        with self._lock:
            self._instances.clear()

    def __contains__(self, cls: type) -> bool:
        return cls in self._instances

    def __len__(self) -> int:
        return len(self._instances)


class ChangeNotifier:
    """Synchronous fan-out of refreshed trees to listeners, in registration order."""

    def __init__(self):
        self._listeners: List[ChangeListener] = []

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register `listener`; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, tree: Mapping[str, Any]) -> None:
        """
        Call every listener with its own deep copy of `tree`.

        A listener that raises is logged and skipped; the rest still run.
        """
        for listener in list(self._listeners):
            try:
                listener(copy.deepcopy(dict(tree)))
            except Exception:
                log.exception(f"Error in config change listener {listener!r}")

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)


@dataclass(frozen=True)
class Pipeline:
    """
    A published configuration tree and its instance cache.

    Attributes:
        tree: The merged, resolved and decrypted tree. Treat as read-only;
            hand out ``snapshot()`` copies instead.
        cache: Bound instances for this tree.
        provenance: Which source set each leaf, if tracking was enabled.
    """

    tree: Dict[str, Any] = field(default_factory=dict)
    cache: InstanceCache = field(default_factory=InstanceCache)
    provenance: Optional[ProvenanceStore] = None

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self.tree)


def resolve_tree(sources: Iterable, env_lookup: Optional[EnvLookup] = None,
                 decryptor: Optional[SecretDecryptor] = None, resolve_placeholders: bool = True,
                 provenance: Optional[ProvenanceStore] = None) -> Dict[str, Any]:
    """
    Run merge -> placeholder resolution -> decryption and return the tree.

    Source failures are logged and skipped. Decryption failures propagate.
    """
    tree = merge_sources(sources, provenance)
    if resolve_placeholders:
        tree = PlaceholderResolver(env_lookup).resolve_tree(tree)
    if decryptor is not None:
        tree = decryptor.decrypt_tree(tree)
    return tree


def build_pipeline(sources: Iterable, env_lookup: Optional[EnvLookup] = None,
                   decryptor: Optional[SecretDecryptor] = None, resolve_placeholders: bool = True,
                   track_provenance: bool = False) -> Pipeline:
    """Build a new ``Pipeline`` from `sources` with an empty cache."""
    provenance = ProvenanceStore() if track_provenance else None
    tree = resolve_tree(sources, env_lookup, decryptor, resolve_placeholders, provenance)
    return Pipeline(tree=tree, cache=InstanceCache(), provenance=provenance)


def reload(pipeline: Pipeline, sources: Iterable, **options: Any) -> Pipeline:
    """
    Rebuild from `sources`, invalidating `pipeline`'s cache.

    The old pipeline's cache is cleared so instances bound from it are not
    served again; the returned pipeline starts with an empty cache.
    """
    new_pipeline = build_pipeline(sources, **options)
    pipeline.cache.invalidate()
    return new_pipeline
