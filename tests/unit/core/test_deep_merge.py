"""Unit tests for deep_merge."""

from rpcwire.core.utils import deep_merge


class TestDeepMerge:
    """Tests for deep_merge."""

    def test_nested_dicts_merged(self):
        base = {"server": {"host": "127.0.0.1", "port": 8765}}
        override = {"server": {"port": 9000}}
        assert deep_merge(base, override) == {"server": {"host": "127.0.0.1", "port": 9000}}

    def test_lists_replaced(self):
        """Lists are replaced, not concatenated."""
        assert deep_merge({"a": [1, 2]}, {"a": [3]}) == {"a": [3]}

    def test_inputs_not_modified(self):
        base = {"a": {"b": 1}}
        override = {"a": {"c": 2}}
        deep_merge(base, override)
        assert base == {"a": {"b": 1}}
        assert override == {"a": {"c": 2}}
