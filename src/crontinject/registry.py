from typing import TYPE_CHECKING

from crontinject.exceptions import NodeNotFoundError

if TYPE_CHECKING:
    from crontinject.node import InjectNode


class NodeRegistry:
    def __init__(self):
        self._nodes: dict[str, "InjectNode"] = {}

    def register(self, node: "InjectNode") -> "InjectNode":
        """Register a live node under its id.

        Raises:
            ValueError: If another node already uses the id
        """
        existing = self._nodes.get(node.id)
        if existing is not None and existing is not node:
            raise ValueError(f"Node '{node.id}' is already registered")

        self._nodes[node.id] = node
        return node

    def get(self, node_id: str):
        return self._nodes.get(node_id)

    def get_or_raise(self, node_id: str):
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)

        return node

    def list_nodes(self):
        return list(self._nodes.keys())

    def unregister(self, node_id):
        if node_id in self._nodes:
            del self._nodes[node_id]
            return True

        return False

    def __len__(self):
        return len(self._nodes)

    def __contains__(self, node_id):
        return node_id in self._nodes
