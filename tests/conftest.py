"""Pytest configuration and fixtures for flowengine tests."""

import asyncio
from typing import Any, Dict, List, Sequence, Tuple

import pytest

from flowengine import (
    ActionResult,
    Engine,
    MemoryRecorder,
    NodeRegistry,
    TaskNode,
    TaskStatus,
)
from flowengine.core.state import ActionParams, ResumeParams


# =============================================================================
# Test Nodes
# =============================================================================


class RecordingNode(TaskNode):
    """Task node that logs each activation into ``context["activations"]``.

    Properties:
        delay: Seconds to sleep inside the action
        set: Mapping merged into global data before continuing
    """

    type_name = "RecordingNode"

    async def action(self, params: ActionParams) -> None:
        self.context.setdefault("activations", []).append((self.node_id, params.task_id))
        delay = self.properties.get("delay")
        if delay:
            await asyncio.sleep(delay)
        if self.properties.get("set"):
            self.update_global_data(self.properties["set"])
        return None


class InterruptNode(TaskNode):
    """Suspends its branch; on resume merges the payload and continues."""

    type_name = "InterruptNode"

    async def action(self, params: ActionParams) -> ActionResult:
        self.context.setdefault("activations", []).append((self.node_id, params.task_id))
        return ActionResult(status=TaskStatus.INTERRUPTED, detail={"reason": "approval"})

    async def on_resume(self, params: ResumeParams) -> None:
        self.context.setdefault("resumed", []).append((self.node_id, params.task_id, params.data))
        self.update_global_data(params.data)
        await self.proceed(params)


class FailingNode(TaskNode):
    """Action raises."""

    type_name = "FailingNode"

    async def action(self, params: ActionParams) -> None:
        raise RuntimeError("boom")


class RejectingNode(TaskNode):
    """Action reports an error status through a plain mapping."""

    type_name = "RejectingNode"

    async def action(self, params: ActionParams) -> Dict[str, Any]:
        return {"status": "error", "detail": {"reason": "rejected"}}


TEST_NODES = (RecordingNode, InterruptNode, FailingNode, RejectingNode)


# =============================================================================
# Graph Helpers
# =============================================================================


def build_graph(
    nodes: Sequence[Tuple[Any, ...]],
    edges: Sequence[Tuple[Any, ...]] = (),
) -> Dict[str, List[Dict[str, Any]]]:
    """Build editor-style graph JSON.

    Args:
        nodes: ``(id, type)`` or ``(id, type, properties)`` tuples
        edges: ``(source, target)`` or ``(source, target, condition)`` tuples
    """
    graph_nodes = []
    for node in nodes:
        node_id, node_type = node[0], node[1]
        properties = node[2] if len(node) > 2 else {}
        graph_nodes.append(
            {"id": node_id, "type": node_type, "x": 100, "y": 100, "properties": properties}
        )

    graph_edges = []
    for index, edge in enumerate(edges):
        properties: Dict[str, Any] = {}
        if len(edge) > 2 and edge[2] is not None:
            properties["conditionExpression"] = edge[2]
        graph_edges.append(
            {
                "id": f"e{index}",
                "type": "polyline",
                "sourceNodeId": edge[0],
                "targetNodeId": edge[1],
                "properties": properties,
            }
        )

    return {"nodes": graph_nodes, "edges": graph_edges}


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def graph_builder():
    """Expose ``build_graph`` to tests."""
    return build_graph


@pytest.fixture
def registry():
    """Create a fresh node registry with the test node types."""
    registry = NodeRegistry()
    for node_cls in TEST_NODES:
        registry.register_node_type(node_cls.type_name, node_cls)
    return registry


@pytest.fixture
def recorder():
    """Create an in-memory recorder for testing."""
    return MemoryRecorder()


@pytest.fixture
def engine(recorder):
    """Create an engine with the test node types registered."""
    engine = Engine(recorder=recorder)
    for node_cls in TEST_NODES:
        engine.register(node_cls.type_name, node_cls)
    return engine


@pytest.fixture
def linear_graph():
    """S -> A -> B"""
    return build_graph(
        [("S", "StartNode"), ("A", "RecordingNode"), ("B", "RecordingNode")],
        [("S", "A"), ("A", "B")],
    )


@pytest.fixture
def diamond_graph():
    """S -> {A, B} -> J"""
    return build_graph(
        [
            ("S", "StartNode"),
            ("A", "RecordingNode"),
            ("B", "RecordingNode"),
            ("J", "RecordingNode"),
        ],
        [("S", "A"), ("S", "B"), ("A", "J"), ("B", "J")],
    )
