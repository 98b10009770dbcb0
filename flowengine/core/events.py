"""Statuses and completion signals for flow execution.

The scheduler reports the end of a run (or the suspension of one branch)
through a SignalEmitter. The flow model is its main subscriber and turns
each signal into at most one delivery to the invocation that started the run.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class FlowStatus(str, Enum):
    """Status of an execution as reported by a signal."""

    COMPLETED = "completed"
    INTERRUPTED = "interrupted"
    RUNNING = "running"
    ERROR = "error"


class TaskStatus(str, Enum):
    """Status returned by a node's action."""

    SUCCESS = "success"
    ERROR = "error"
    INTERRUPTED = "interrupted"


@dataclass
class FlowResult:
    """Payload of a completed, interrupted or error signal.

    Attributes:
        execution_id: Execution the signal belongs to
        status: FlowStatus of the execution
        node_id: Node whose settling produced the signal
        task_id: Activation whose settling produced the signal
        detail: Detail returned by the node (interruption reason, error info)
        error: Exception that failed the activation, for error signals
    """

    execution_id: str
    status: FlowStatus
    node_id: Optional[str] = None
    task_id: Optional[str] = None
    detail: Optional[Dict[str, Any]] = None
    error: Optional[BaseException] = field(default=None, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        data: Dict[str, Any] = {
            "execution_id": self.execution_id,
            "status": self.status.value,
            "node_id": self.node_id,
            "task_id": self.task_id,
        }
        if self.detail is not None:
            data["detail"] = self.detail
        if self.error is not None:
            data["error"] = str(self.error)
        return data


SignalListener = Callable[[FlowResult], None]


class SignalEmitter:
    """Synchronous callback registry for execution signals.

    Listeners run in registration order. A failing listener is logged and
    does not stop the remaining listeners or the scheduler.
    """

    def __init__(self):
        self._listeners: List[SignalListener] = []

    def on(self, listener: SignalListener) -> None:
        """Register a signal listener.

        Args:
            listener: Callable receiving FlowResult objects
        """
        self._listeners.append(listener)

    def off(self, listener: SignalListener) -> None:
        """Remove a signal listener.

        Args:
            listener: The listener to remove
        """
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, result: FlowResult) -> None:
        """Deliver a signal to all listeners.

        Args:
            result: The signal payload
        """
        logger.debug("Signal %s for execution %s", result.status.value, result.execution_id)
        for listener in list(self._listeners):
            try:
                listener(result)
            except Exception:
                logger.exception("Error in signal listener")

    def clear(self) -> None:
        """Remove all listeners."""
        self._listeners.clear()
