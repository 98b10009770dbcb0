"""Parameter objects passed between the flow model, scheduler and nodes."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from flowengine.core.events import FlowResult
    from flowengine.core.graph import EdgeRef


@dataclass
class NodeParam:
    """Ready-queue entry: a node waiting to be activated."""

    execution_id: str
    node_id: str


@dataclass
class TaskParam:
    """An activation registered in the in-flight map."""

    execution_id: str
    node_id: str
    task_id: str


@dataclass
class ActionParams:
    """Arguments handed to a node's ``action``."""

    execution_id: str
    task_id: str
    node_id: str


@dataclass
class NextTaskParam:
    """What a settled activation hands to the scheduler's continuation.

    Attributes:
        execution_id: Execution of the activation
        task_id: The activation
        node_id: Node that ran
        node_type: Type of that node
        outgoing: Firing edges; each target is scheduled once per edge
        properties: Node properties, copied into the task record
    """

    execution_id: str
    task_id: str
    node_id: str
    node_type: str
    outgoing: List["EdgeRef"] = field(default_factory=list)
    properties: Dict[str, Any] = field(default_factory=dict)


NextCallback = Callable[[NextTaskParam], Awaitable[None]]


@dataclass
class ExecParams(ActionParams):
    """Arguments handed to a node's ``execute``: action params plus ``next``."""

    next: Optional[NextCallback] = None


@dataclass
class ResumeParams(ExecParams):
    """Arguments handed to a node's ``on_resume``.

    Attributes:
        data: Payload supplied by the caller that resumed the activation
    """

    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class InvocationRequest:
    """External request to start or resume a run.

    A request with ``task_id`` resumes that interrupted activation. Otherwise
    it starts a run from ``node_id`` or, when unset, from every start node.

    Attributes:
        execution_id: Execution to run in (generated when unset)
        task_id: Interrupted activation to resume
        node_id: Node to start from, or the node of the resumed activation
        data: Payload passed to ``on_resume``
        callback: Receives the FlowResult once the run settles
        on_error: Receives the exception if the invocation fails
    """

    execution_id: Optional[str] = None
    task_id: Optional[str] = None
    node_id: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    callback: Optional[Callable[["FlowResult"], None]] = None
    on_error: Optional[Callable[[BaseException], None]] = None
