# tests/test_provenance.py
"""
Tests for provenance tracking.

Covers:
    - ProvenanceEntry and ProvenanceStore standalone behavior
    - Provenance recorded by merge_sources()
    - Opt-in behavior (disabled by default)
"""

import pytest

from confbind.merge import merge_sources
from confbind.pipeline import build_pipeline
from confbind.provenance import ProvenanceEntry, ProvenanceStore
from confbind.sources import InMemoryConfigSource

# ---------------------------------------------------------------------------
# ProvenanceEntry
# ---------------------------------------------------------------------------


class TestProvenanceEntry:
    """Tests for the ProvenanceEntry dataclass."""

    def test_frozen(self):
        """ProvenanceEntry is immutable."""
        entry = ProvenanceEntry(value=42, source="memory", key="a.b")
        with pytest.raises(AttributeError):
            entry.value = 99  # type: ignore[misc]

    def test_repr(self):
        """repr shows key = value ← source (priority)."""
        entry = ProvenanceEntry(value=42, source="file:application.yml", key="db.port", priority=100)
        r = repr(entry)
        assert r == "db.port = 42  ← file:application.yml (priority 100)"

    def test_equality(self):
        a = ProvenanceEntry(value=1, source="s", key="k")
        b = ProvenanceEntry(value=1, source="s", key="k")
        assert a == b


# ---------------------------------------------------------------------------
# ProvenanceStore
# ---------------------------------------------------------------------------


class TestProvenanceStore:
    """Tests for the ProvenanceStore."""

    def test_record_and_get(self):
        store = ProvenanceStore()
        store.record("a.b", 42, "memory", 50)
        entry = store.get("a.b")
        assert entry is not None
        assert entry.value == 42
        assert entry.source == "memory"
        assert entry.priority == 50

    def test_get_missing(self):
        """get() returns None for unrecorded keys."""
        assert ProvenanceStore().get("missing") is None

    def test_triple_override(self):
        """Three successive overrides produce correct history."""
        store = ProvenanceStore()
        store.record("x", "a", "memory")
        store.record("x", "b", "file")
        store.record("x", "c", "env")

        assert store.get("x").value == "c"
        assert [e.value for e in store.get_history("x")] == ["a", "b", "c"]

    def test_record_tree_walks_mappings(self):
        """Nested mappings are walked; lists are single leaves."""
        store = ProvenanceStore()
        store.record_tree({"db": {"host": "h", "ports": [1, 2]}}, "file:app.yml", 100)
        assert store.get("db.host").value == "h"
        assert store.get("db.ports").value == [1, 2]
        assert store.get("db") is None

    def test_get_history_empty(self):
        assert ProvenanceStore().get_history("unknown") == []


# ---------------------------------------------------------------------------
# merge_sources + provenance
# ---------------------------------------------------------------------------


class TestMergeProvenance:
    """Provenance recorded while sources are merged."""

    def test_override_chain_follows_priority(self):
        store = ProvenanceStore()
        merge_sources([
            InMemoryConfigSource({"x": 3}, 300, name="env"),
            InMemoryConfigSource({"x": 1}, 100, name="file:application.yml"),
            InMemoryConfigSource({"x": 2}, 150, name="file:application-dev.yml"),
        ], store)

        history = store.get_history("x")
        assert [e.source for e in history] == ["file:application.yml", "file:application-dev.yml", "env"]
        assert [e.priority for e in history] == [100, 150, 300]

    def test_untouched_keys_keep_their_source(self):
        store = ProvenanceStore()
        merge_sources([
            InMemoryConfigSource({"a": 1, "b": 1}, 1, name="low"),
            InMemoryConfigSource({"b": 2}, 2, name="high"),
        ], store)
        assert store.get("a").source == "low"
        assert store.get("b").source == "high"

    def test_disabled_by_default(self):
        pipeline = build_pipeline([InMemoryConfigSource({"a": 1})])
        assert pipeline.provenance is None

    def test_scalar_over_subtree_drops_replaced_leaves(self):
        """A scalar replacing a section leaves no entries for the old leaves."""
        store = ProvenanceStore()
        tree = merge_sources([
            InMemoryConfigSource({"db": {"host": "h", "pool": {"max": 5}}}, 1, name="file"),
            InMemoryConfigSource({"db": "sqlite://memory"}, 2, name="env"),
        ], store)

        assert tree == {"db": "sqlite://memory"}
        assert store.get("db").source == "env"
        assert store.get("db.host") is None
        assert store.get_history("db.pool.max") == []

    def test_subtree_over_scalar_drops_scalar(self):
        store = ProvenanceStore()
        merge_sources([
            InMemoryConfigSource({"db": "sqlite://memory"}, 1, name="file"),
            InMemoryConfigSource({"db": {"host": "h"}}, 2, name="env"),
        ], store)

        assert store.get("db") is None
        assert store.get("db.host").source == "env"
