"""Node implementations for flow execution."""

from flowengine.nodes.base import Node, BaseNode, ActionResult, NodeExecResult
from flowengine.nodes.start import StartNode
from flowengine.nodes.task import TaskNode

__all__ = [
    "Node",
    "BaseNode",
    "ActionResult",
    "NodeExecResult",
    "StartNode",
    "TaskNode",
]
