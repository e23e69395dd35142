# confbind/provenance.py
"""
confbind.provenance
-------------------

Optional provenance tracking for merged configuration values.

When enabled via ``ConfigManager(track_provenance=True)``, every merge of a
source records which source supplied each leaf. This answers "why is this
value X?" by tracing the override chain across sources.

Thread-safety:
    - A ``ProvenanceStore`` is written only while a pipeline is being built,
      and is published together with the tree it describes.
    - ``ProvenanceEntry`` is a frozen dataclass, so published entries can be
      read from any thread.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True)
class ProvenanceEntry:
    """Records the origin of a single config leaf.

    Attributes:
        value: The value that was set.
        source: Name of the source that set it, e.g.
            ``"file:config/application.yml"``, ``"env"``, ``"memory"``.
        key: The full dot-notation path (e.g., ``"database.pool.max"``).
        priority: Priority of the source that set it.
    """

    value: Any
    source: str
    key: str
    priority: int = 0

    def __repr__(self) -> str:
        return f"{self.key} = {self.value!r}  ← {self.source} (priority {self.priority})"


@dataclass
class ProvenanceStore:
    """Current and historical provenance for every merged leaf.

    Attributes:
        _entries: Winning provenance per key.
        _history: Entries that were later overridden, oldest first.
    """

    _entries: dict[str, ProvenanceEntry] = field(default_factory=dict)
    _history: dict[str, list[ProvenanceEntry]] = field(default_factory=dict)

    def record(self, key: str, value: Any, source: str, priority: int = 0) -> None:
        """Record that a key was set to a value by a source.

        If the key already has an entry, the previous entry moves to history.
        Entries for leaves below `key` are dropped: the value replaced them.
        """
        self._forget_below(key)
        if key in self._entries:
            self._history.setdefault(key, []).append(self._entries[key])
        self._entries[key] = ProvenanceEntry(value=value, source=source, key=key, priority=priority)

    def record_tree(self, tree: Mapping, source: str, priority: int = 0, prefix: str = "") -> None:
        """Record every leaf of ``tree`` as coming from ``source``.

        Nested mappings are walked; sequences are recorded as single leaves
        because a merge replaces them wholesale.
        """
        for k, v in tree.items():
            key = f"{prefix}.{k}" if prefix else str(k)
            if isinstance(v, Mapping):
                # a mapping over a scalar replaces it
                self._entries.pop(key, None)
                self._history.pop(key, None)
                self.record_tree(v, source, priority, key)
            else:
                self.record(key, v, source, priority)

    def _forget_below(self, key: str) -> None:
        prefix = f"{key}."
        for stale in [k for k in self._entries if k.startswith(prefix)]:
            del self._entries[stale]
        for stale in [k for k in self._history if k.startswith(prefix)]:
            del self._history[stale]

    def get(self, key: str) -> ProvenanceEntry | None:
        return self._entries.get(key)

    def get_history(self, key: str) -> list[ProvenanceEntry]:
        """Full override chain for a key, oldest first, ending at the winner."""
        history = list(self._history.get(key, []))
        current = self._entries.get(key)
        if current:
            history.append(current)
        return history
