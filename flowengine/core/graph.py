"""Compiled graph structures for flowengine.

This module turns the editor's ``{nodes, edges}`` document into the static,
immutable representation the scheduler walks: one NodeSpec per kept node,
with its edges folded into ``incoming`` and ``outgoing`` references.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Collection, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from flowengine.parsers.graph_json import get_condition_expression, parse_graph_json

logger = logging.getLogger(__name__)


class EdgeRef(BaseModel):
    """One end of an edge, stored on the node at the other end.

    For an outgoing reference ``peer_node_id`` is the edge target, for an
    incoming reference it is the edge source.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    peer_node_id: str
    properties: Dict[str, Any] = Field(default_factory=dict)

    @property
    def condition_expression(self) -> Optional[str]:
        """Condition guarding this edge, if any."""
        return get_condition_expression(self.properties)


class NodeSpec(BaseModel):
    """Static description of a node, built once per load."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    incoming: Tuple[EdgeRef, ...] = ()
    outgoing: Tuple[EdgeRef, ...] = ()


@dataclass
class FlowGraph:
    """Compiled graph ready for execution.

    Attributes:
        nodes: Mapping of node IDs to NodeSpecs, in document order
        start_nodes: NodeSpecs whose type is the start-node type
        start_node_type: Type used to pick start nodes
        dropped_nodes: IDs of nodes skipped because their type is unknown
    """

    nodes: Dict[str, NodeSpec]
    start_nodes: List[NodeSpec]
    start_node_type: str
    dropped_nodes: List[str] = field(default_factory=list)

    @classmethod
    def from_graph_data(
        cls,
        graph_data: Any,
        node_types: Collection[str],
        start_node_type: str,
    ) -> "FlowGraph":
        """Compile editor JSON into a FlowGraph.

        Nodes whose type is not in ``node_types`` are dropped with a warning.
        Edges touching a dropped node are kept on the surviving side only.
        Start nodes never receive incoming references, whatever edges were
        drawn into them.

        Args:
            graph_data: ``{nodes, edges}`` document
            node_types: Registered node type names
            start_node_type: Node type that seeds fresh runs

        Returns:
            FlowGraph with incoming/outgoing references resolved

        Raises:
            GraphValidationError: If the document is malformed
        """
        document = parse_graph_json(graph_data)

        kept: Dict[str, Dict[str, Any]] = {}
        dropped: List[str] = []
        for node in document.nodes:
            if node.type not in node_types:
                logger.warning("Unrecognized node type '%s', dropping node '%s'", node.type, node.id)
                dropped.append(node.id)
                continue
            kept[node.id] = {
                "id": node.id,
                "type": node.type,
                "properties": node.properties,
                "incoming": [],
                "outgoing": [],
            }

        for edge in document.edges:
            source = kept.get(edge.source_node_id)
            target = kept.get(edge.target_node_id)
            if source is not None:
                source["outgoing"].append(
                    EdgeRef(id=edge.id, peer_node_id=edge.target_node_id, properties=edge.properties)
                )
            if target is not None and target["type"] != start_node_type:
                target["incoming"].append(
                    EdgeRef(id=edge.id, peer_node_id=edge.source_node_id, properties=edge.properties)
                )

        nodes = {
            node_id: NodeSpec(
                id=data["id"],
                type=data["type"],
                properties=data["properties"],
                incoming=tuple(data["incoming"]),
                outgoing=tuple(data["outgoing"]),
            )
            for node_id, data in kept.items()
        }
        start_nodes = [spec for spec in nodes.values() if spec.type == start_node_type]

        logger.debug(
            "Loaded graph: %d nodes (%d start), %d dropped",
            len(nodes),
            len(start_nodes),
            len(dropped),
        )
        return cls(
            nodes=nodes,
            start_nodes=start_nodes,
            start_node_type=start_node_type,
            dropped_nodes=dropped,
        )

    def get_node(self, node_id: str) -> Optional[NodeSpec]:
        """Get a NodeSpec by ID, or None if not loaded."""
        return self.nodes.get(node_id)

    def has_node(self, node_id: str) -> bool:
        """Check if a node exists in the graph."""
        return node_id in self.nodes

    def get_children(self, node_id: str) -> List[str]:
        """Get target node IDs of a node's outgoing edges."""
        spec = self.nodes.get(node_id)
        return [edge.peer_node_id for edge in spec.outgoing] if spec else []

    def get_parents(self, node_id: str) -> List[str]:
        """Get source node IDs of a node's incoming edges."""
        spec = self.nodes.get(node_id)
        return [edge.peer_node_id for edge in spec.incoming] if spec else []
