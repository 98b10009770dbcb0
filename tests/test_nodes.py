"""Tests for node units and the node registry."""

from typing import Any, Dict, List

import pytest

from flowengine import (
    ActionResult,
    BaseNode,
    EdgeRef,
    InvalidNodeTypeError,
    Node,
    NodeRegistry,
    NodeSpec,
    StartNode,
    TaskNode,
    TaskStatus,
)
from flowengine.core.state import ExecParams, NextTaskParam


def make_spec(*conditions: Any, node_type: str = "TaskNode") -> NodeSpec:
    """Spec for node A with one outgoing edge per condition."""
    outgoing = []
    for index, condition in enumerate(conditions):
        properties = {"conditionExpression": condition} if condition is not None else {}
        outgoing.append(EdgeRef(id=f"e{index}", peer_node_id=f"T{index}", properties=properties))
    return NodeSpec(id="A", type=node_type, properties={"label": "a"}, outgoing=tuple(outgoing))


class TestActionResult:
    """Tests for ActionResult coercion."""

    def test_none_continues(self):
        result = ActionResult.coerce(None)

        assert result.status is None
        assert result.should_continue

    def test_mapping(self):
        result = ActionResult.coerce({"status": "interrupted", "detail": {"reason": "wait"}})

        assert result.status == TaskStatus.INTERRUPTED
        assert result.detail == {"reason": "wait"}
        assert not result.should_continue

    def test_success_continues(self):
        assert ActionResult.coerce({"status": "success"}).should_continue
        assert ActionResult(status=TaskStatus.SUCCESS).should_continue

    def test_error_stops(self):
        assert not ActionResult(status=TaskStatus.ERROR).should_continue

    def test_invalid_status(self):
        with pytest.raises(ValueError):
            ActionResult.coerce({"status": "paused"})


class TestBaseNode:
    """Tests for BaseNode."""

    def test_satisfies_protocol(self):
        assert isinstance(TaskNode(make_spec()), Node)

    def test_attributes_from_spec(self):
        node = TaskNode(make_spec(None))

        assert node.node_id == "A"
        assert node.type == "TaskNode"
        assert node.properties == {"label": "a"}
        assert len(node.outgoing) == 1
        assert node.incoming == ()

    def test_shared_state_not_copied(self):
        """Test that units reference the given dicts."""
        context: Dict[str, Any] = {"service": object()}
        global_data: Dict[str, Any] = {}
        first = TaskNode(make_spec(), context=context, global_data=global_data)
        second = TaskNode(make_spec(), context=context, global_data=global_data)

        first.update_global_data({"x": 1})

        assert second.global_data == {"x": 1}
        assert global_data == {"x": 1}
        assert second.context is context

    @pytest.mark.asyncio
    async def test_get_outgoing(self):
        """Test edge filtering by condition."""
        node = TaskNode(
            make_spec(None, "x > 5", "x <= 5", "broken ==="),
            global_data={"x": 10},
        )

        outgoing = await node.get_outgoing()

        assert [edge.peer_node_id for edge in outgoing] == ["T0", "T1"]

    @pytest.mark.asyncio
    async def test_execute_calls_next(self):
        """Test that a successful action hands the firing edges to next."""
        received: List[NextTaskParam] = []

        async def next_task(data: NextTaskParam) -> None:
            received.append(data)

        node = TaskNode(make_spec(None, "false"))
        result = await node.execute(
            ExecParams(execution_id="exec-1", task_id="task-1", node_id="A", next=next_task)
        )

        assert result.status is None
        assert result.node_type == "TaskNode"
        assert len(received) == 1
        assert received[0].task_id == "task-1"
        assert received[0].node_type == "TaskNode"
        assert received[0].properties == {"label": "a"}
        assert [edge.peer_node_id for edge in received[0].outgoing] == ["T0"]

    @pytest.mark.asyncio
    async def test_interrupt_skips_next(self):
        """Test that an interrupted action does not continue."""

        class WaitingNode(BaseNode):
            async def action(self, params):
                return ActionResult(status=TaskStatus.INTERRUPTED, detail={"reason": "wait"})

        received: List[NextTaskParam] = []

        async def next_task(data: NextTaskParam) -> None:
            received.append(data)

        result = await WaitingNode(make_spec(None)).execute(
            ExecParams(execution_id="exec-1", task_id="task-1", node_id="A", next=next_task)
        )

        assert result.status == TaskStatus.INTERRUPTED
        assert result.detail == {"reason": "wait"}
        assert received == []

    def test_repr(self):
        assert repr(StartNode(make_spec(node_type="StartNode"))) == "StartNode(id='A')"


class TestNodeRegistry:
    """Tests for NodeRegistry."""

    def test_builtin_types(self):
        registry = NodeRegistry()

        assert registry.list_node_types() == ["StartNode", "TaskNode"]
        assert registry.get_node_type("StartNode") is StartNode
        assert "TaskNode" in registry

    def test_register_and_unregister(self):
        registry = NodeRegistry()

        registry.register_node_type("CustomNode", TaskNode)
        assert registry.has_node_type("CustomNode")

        registry.unregister_node_type("CustomNode")
        registry.unregister_node_type("CustomNode")
        assert not registry.has_node_type("CustomNode")

    def test_unknown_type(self):
        with pytest.raises(InvalidNodeTypeError) as exc_info:
            NodeRegistry().get_node_type("MysteryNode")

        assert "MysteryNode" in str(exc_info.value)
