"""In-memory recorder for testing and development.

History is lost when the process terminates. This is the default recorder
of an Engine.
"""

import logging
from collections import OrderedDict
from typing import Dict, List, Optional

from flowengine.recorders.base import TaskRecord
from flowengine.utils.config import DEFAULT_MAX_EXECUTIONS

logger = logging.getLogger(__name__)


class MemoryRecorder:
    """In-memory task history.

    Executions are kept in insertion order; once more than
    ``max_executions`` are tracked the oldest one is evicted together with
    its task records.
    """

    def __init__(self, max_executions: int = DEFAULT_MAX_EXECUTIONS):
        """Initialize an empty recorder.

        Args:
            max_executions: Executions to keep before evicting the oldest
        """
        if max_executions < 1:
            raise ValueError("max_executions must be at least 1")
        self.max_executions = max_executions
        self._executions: "OrderedDict[str, List[str]]" = OrderedDict()
        self._tasks: Dict[str, TaskRecord] = {}

    async def add_task(self, record: TaskRecord) -> None:
        """Store a record and evict the oldest execution if over the limit."""
        task_ids = self._executions.get(record.execution_id)
        if task_ids is None:
            task_ids = self._executions[record.execution_id] = []
            self._evict()
        if record.task_id not in task_ids:
            task_ids.append(record.task_id)
        self._tasks[record.task_id] = record

    async def get_task(self, task_id: str) -> Optional[TaskRecord]:
        return self._tasks.get(task_id)

    async def get_execution_tasks(self, execution_id: str) -> List[str]:
        return list(self._executions.get(execution_id, []))

    async def clear(self) -> None:
        self._executions.clear()
        self._tasks.clear()

    def _evict(self) -> None:
        while len(self._executions) > self.max_executions:
            execution_id, task_ids = self._executions.popitem(last=False)
            for task_id in task_ids:
                self._tasks.pop(task_id, None)
            logger.debug("Evicted execution %s (%d tasks)", execution_id, len(task_ids))

    def list_executions(self) -> List[str]:
        """List tracked execution ids, oldest first."""
        return list(self._executions.keys())

    def __repr__(self) -> str:
        return f"MemoryRecorder(executions={len(self._executions)}, tasks={len(self._tasks)})"
