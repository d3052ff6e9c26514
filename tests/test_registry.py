"""Tests for NodeRegistry."""

import pytest
from crontinject.exceptions import NodeNotFoundError


class TestNodeRegistry:
    def test_register_and_get(self, registry, make_node):
        node = make_node("a")

        assert registry.register(node) is node
        assert registry.get("a") is node
        assert "a" in registry
        assert len(registry) == 1

    def test_register_same_node_twice(self, registry, make_node):
        node = make_node("a")
        registry.register(node)
        registry.register(node)
        assert len(registry) == 1

    def test_duplicate_id_rejected(self, registry, make_node):
        registry.register(make_node("a"))
        with pytest.raises(ValueError, match="already registered"):
            registry.register(make_node("a"))

    def test_get_missing(self, registry):
        assert registry.get("nope") is None

    def test_get_or_raise(self, registry):
        with pytest.raises(NodeNotFoundError) as exc_info:
            registry.get_or_raise("nope")
        assert exc_info.value.node_id == "nope"

    def test_list_and_unregister(self, registry, make_node):
        registry.register(make_node("a"))
        registry.register(make_node("b"))

        assert registry.list_nodes() == ["a", "b"]
        assert registry.unregister("a") is True
        assert registry.unregister("a") is False
        assert registry.list_nodes() == ["b"]
