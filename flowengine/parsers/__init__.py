"""Parsers for the graph JSON consumed by the engine."""

from flowengine.parsers.graph_json import (
    GraphJSON,
    GraphNode,
    GraphEdge,
    parse_graph_json,
    get_condition_expression,
)

__all__ = [
    "GraphJSON",
    "GraphNode",
    "GraphEdge",
    "parse_graph_json",
    "get_condition_expression",
]
