"""Base protocol for task history recorders.

A recorder keeps the ordered history of every execution: one TaskRecord per
settled activation. Retention is bounded by a maximum number of tracked
executions; when it is exceeded the oldest execution and all of its records
are evicted.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


@dataclass
class TaskRecord:
    """History entry appended when an activation settles.

    Attributes:
        execution_id: Execution the activation belongs to
        task_id: The activation
        node_id: Node that ran
        node_type: Type of that node
        timestamp: When the activation settled
        properties: Node properties at the time
        status: Settle status for interrupted or failed activations
        detail: Detail returned alongside that status
    """

    execution_id: str
    task_id: str
    node_id: str
    node_type: str
    timestamp: datetime = field(default_factory=datetime.now)
    properties: Dict[str, Any] = field(default_factory=dict)
    status: Optional[str] = None
    detail: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for storage."""
        return {
            "execution_id": self.execution_id,
            "task_id": self.task_id,
            "node_id": self.node_id,
            "node_type": self.node_type,
            "timestamp": self.timestamp.isoformat(),
            "properties": self.properties,
            "status": self.status,
            "detail": self.detail,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskRecord":
        """Deserialize from dictionary."""
        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)

        return cls(
            execution_id=data["execution_id"],
            task_id=data["task_id"],
            node_id=data["node_id"],
            node_type=data["node_type"],
            timestamp=timestamp or datetime.now(),
            properties=data.get("properties") or {},
            status=data.get("status"),
            detail=data.get("detail"),
        )


@runtime_checkable
class Recorder(Protocol):
    """Protocol for task history recorders."""

    max_executions: int

    async def add_task(self, record: TaskRecord) -> None:
        """Append a task record to its execution's history.

        Recording a task id a second time replaces its record but keeps its
        original position in the history.

        Args:
            record: Record to store
        """
        ...

    async def get_task(self, task_id: str) -> Optional[TaskRecord]:
        """Get a task record.

        Args:
            task_id: Task identifier

        Returns:
            TaskRecord or None if not found (or evicted)
        """
        ...

    async def get_execution_tasks(self, execution_id: str) -> List[str]:
        """List task ids of an execution in the order they were recorded.

        Args:
            execution_id: Execution identifier

        Returns:
            List of task ids (empty if unknown or evicted)
        """
        ...

    async def clear(self) -> None:
        """Delete all recorded executions and tasks."""
        ...
