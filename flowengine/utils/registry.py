"""Node type registry.

This module provides the table that maps a node ``type`` string, as found in
graph JSON, to the factory that builds a node execution unit for it.
"""

from typing import Callable, Dict

from flowengine.nodes.base import Node
from flowengine.utils.errors import InvalidNodeTypeError

NodeFactory = Callable[..., Node]


class NodeRegistry:
    """Registry for node types.

    Factories are called with keyword arguments ``spec``, ``context``,
    ``global_data`` and ``evaluator``, so a ``BaseNode`` subclass can be
    registered directly.

    The graph loader consults the registry to decide which nodes to keep, and
    the flow model consults it again each time a node is activated.

    Example:
        >>> registry = NodeRegistry()
        >>> registry.register_node_type("ApprovalNode", ApprovalNode)
        >>> registry.get_node_type("ApprovalNode")
        <class 'ApprovalNode'>
    """

    def __init__(self):
        """Initialize registry with the built-in node types."""
        self._node_types: Dict[str, NodeFactory] = {}
        self._register_builtin_nodes()

    def _register_builtin_nodes(self):
        """Register built-in node types."""
        from flowengine.nodes.start import StartNode
        from flowengine.nodes.task import TaskNode

        self._node_types[StartNode.type_name] = StartNode
        self._node_types[TaskNode.type_name] = TaskNode

    def register_node_type(self, type_name: str, factory: NodeFactory) -> None:
        """Register a node type.

        Args:
            type_name: Type identifier used in graph JSON (e.g., "ApprovalNode")
            factory: Node class or callable building a node unit
        """
        self._node_types[type_name] = factory

    def unregister_node_type(self, type_name: str) -> None:
        """Remove a node type if present."""
        self._node_types.pop(type_name, None)

    def get_node_type(self, type_name: str) -> NodeFactory:
        """Get a node factory by type name.

        Args:
            type_name: Node type identifier

        Returns:
            Node factory

        Raises:
            InvalidNodeTypeError: If type not found
        """
        if type_name not in self._node_types:
            raise InvalidNodeTypeError(
                f"Node type '{type_name}' not registered. "
                f"Available types: {', '.join(self._node_types.keys())}"
            )
        return self._node_types[type_name]

    def has_node_type(self, type_name: str) -> bool:
        """Check if node type is registered."""
        return type_name in self._node_types

    def list_node_types(self) -> list[str]:
        """List all registered node types."""
        return list(self._node_types.keys())

    def __contains__(self, type_name: str) -> bool:
        return self.has_node_type(type_name)

    def __repr__(self) -> str:
        return f"NodeRegistry(node_types={len(self._node_types)})"
