"""
flowengine: graph-driven task orchestration

Runs a directed graph of typed nodes, drawn in a diagram editor and exported
as ``{nodes, edges}`` JSON. Branches run concurrently on asyncio, edges can
carry condition expressions, and any node can suspend its branch until the
caller resumes it.

Example:
    >>> from flowengine import Engine, TaskNode, ActionResult, TaskStatus
    >>>
    >>> class ApprovalNode(TaskNode):
    ...     async def action(self, params):
    ...         return ActionResult(status=TaskStatus.INTERRUPTED, detail={"reason": "approve"})
    >>>
    >>> engine = Engine()
    >>> engine.register("ApprovalNode", ApprovalNode)
    >>> engine.load(graph_data)
    >>> result = await engine.execute()
    >>> await engine.resume(result.execution_id, result.task_id, result.node_id)
"""

__version__ = "0.1.0"

# Core components
from flowengine.core.graph import FlowGraph, NodeSpec, EdgeRef
from flowengine.core.events import FlowResult, FlowStatus, TaskStatus, SignalEmitter
from flowengine.core.state import InvocationRequest
from flowengine.core.scheduler import Scheduler
from flowengine.core.model import FlowModel

# Nodes
from flowengine.nodes import Node, BaseNode, ActionResult, NodeExecResult, StartNode, TaskNode

# Node registry
from flowengine.utils.registry import NodeRegistry

# Recorders
from flowengine.recorders import Recorder, TaskRecord, MemoryRecorder, SQLiteRecorder

# Expressions
from flowengine.expression import ExpressionEvaluator, SafeExpressionEvaluator

# Configuration and errors
from flowengine.utils.config import EngineConfig
from flowengine.utils.errors import (
    ErrorCode,
    FlowEngineError,
    GraphValidationError,
    InvalidNodeTypeError,
    NodeNotFoundError,
    NodeExecutionError,
    ExpressionError,
)

# Engine
from flowengine.engine import Engine

__all__ = [
    # Version
    "__version__",
    # Core
    "FlowGraph",
    "NodeSpec",
    "EdgeRef",
    "FlowResult",
    "FlowStatus",
    "TaskStatus",
    "SignalEmitter",
    "InvocationRequest",
    "Scheduler",
    "FlowModel",
    # Nodes
    "Node",
    "BaseNode",
    "ActionResult",
    "NodeExecResult",
    "StartNode",
    "TaskNode",
    # Registry
    "NodeRegistry",
    # Recorders
    "Recorder",
    "TaskRecord",
    "MemoryRecorder",
    "SQLiteRecorder",
    # Expressions
    "ExpressionEvaluator",
    "SafeExpressionEvaluator",
    # Configuration and errors
    "EngineConfig",
    "ErrorCode",
    "FlowEngineError",
    "GraphValidationError",
    "InvalidNodeTypeError",
    "NodeNotFoundError",
    "NodeExecutionError",
    "ExpressionError",
    # Engine
    "Engine",
]
