# tests/test_utils.py
"""
Tests for confbind.utils path and dot-notation helpers.
"""

from pathlib import Path

import pytest

from confbind.utils import expand_path, get_by_dot, iter_leaves, resolve_path, set_by_dot


class TestExpandPath:
    """Tests for confbind.utils.expand_path()."""

    def test_none_input(self):
        assert expand_path(None) is None

    def test_tilde_expansion(self, monkeypatch):
        monkeypatch.setenv("HOME", "/home/testuser")
        assert expand_path("~/config/application.yml") == "/home/testuser/config/application.yml"

    def test_env_var_expansion(self, monkeypatch):
        monkeypatch.setenv("MY_DIR", "/opt/config")
        assert expand_path("$MY_DIR/application.yml") == "/opt/config/application.yml"

    def test_plain_path_unchanged(self):
        assert expand_path("/absolute/path/application.yml") == "/absolute/path/application.yml"


class TestResolvePath:
    """Tests for confbind.utils.resolve_path()."""

    def test_none_input(self):
        assert resolve_path(None) is None

    def test_resolves_relative(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = resolve_path("config")
        assert isinstance(result, Path)
        assert result.is_absolute()
        assert result == (tmp_path / "config").resolve()


class TestDotAccess:

    def test_get_nested(self):
        assert get_by_dot({"a": {"b": {"c": 1}}}, "a.b.c") == 1

    def test_get_section(self):
        assert get_by_dot({"a": {"b": 1}}, "a") == {"b": 1}

    def test_get_none_value_is_found(self):
        assert get_by_dot({"a": None}, "a") is None

    @pytest.mark.parametrize("key", ["x", "a.x", "a.b.c"])
    def test_get_missing(self, key):
        with pytest.raises(KeyError):
            get_by_dot({"a": {"b": 1}}, key)

    def test_set_creates_intermediates(self):
        tree = {}
        set_by_dot(tree, "a.b.c", 1)
        assert tree == {"a": {"b": {"c": 1}}}

    def test_set_replaces_scalar_segment(self):
        tree = {"a": "scalar"}
        set_by_dot(tree, "a.b", 1)
        assert tree == {"a": {"b": 1}}

    def test_set_keeps_siblings(self):
        tree = {"a": {"x": 1}}
        set_by_dot(tree, "a.y", 2)
        assert tree == {"a": {"x": 1, "y": 2}}


class TestIterLeaves:

    def test_flattens(self):
        tree = {"db": {"host": "h", "pool": {"max": 5}}, "tags": ["a"], "empty": {}}
        assert dict(iter_leaves(tree)) == {
            "db.host": "h",
            "db.pool.max": 5,
            "tags": ["a"],
            "empty": {},
        }

    def test_prefix(self):
        assert list(iter_leaves({"a": 1}, "root")) == [("root.a", 1)]
