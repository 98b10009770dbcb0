"""Core execution engine components."""

from flowengine.core.graph import FlowGraph, NodeSpec, EdgeRef
from flowengine.core.events import FlowResult, FlowStatus, TaskStatus, SignalEmitter
from flowengine.core.state import (
    NodeParam,
    TaskParam,
    ActionParams,
    ExecParams,
    ResumeParams,
    NextTaskParam,
    InvocationRequest,
)
from flowengine.core.scheduler import Scheduler
from flowengine.core.model import FlowModel

__all__ = [
    "FlowGraph",
    "NodeSpec",
    "EdgeRef",
    "FlowResult",
    "FlowStatus",
    "TaskStatus",
    "SignalEmitter",
    "NodeParam",
    "TaskParam",
    "ActionParams",
    "ExecParams",
    "ResumeParams",
    "NextTaskParam",
    "InvocationRequest",
    "Scheduler",
    "FlowModel",
]
