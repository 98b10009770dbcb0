"""Scheduler for node activations.

The scheduler keeps, per execution, a ready-queue of nodes waiting to run
and an in-flight map of activations that have started but not settled. Each
call to ``run`` drains the ready-queue and starts every entry as its own
asyncio task; activations never wait for one another. When the queue and the
in-flight map of an execution are both empty the execution is quiescent and
a *completed* signal is emitted.

There is no join: a node reached by N firing edges is activated N times.
An interrupted activation signals immediately, while its siblings may still
be running.
"""

import asyncio
import logging
from typing import Any, Coroutine, Dict, List, Optional, Set, TYPE_CHECKING

from flowengine.core.events import FlowResult, FlowStatus, SignalEmitter, TaskStatus
from flowengine.core.state import ExecParams, NextTaskParam, NodeParam, ResumeParams, TaskParam
from flowengine.recorders.base import Recorder, TaskRecord
from flowengine.utils.errors import NodeExecutionError
from flowengine.utils.ids import create_task_id

if TYPE_CHECKING:
    from flowengine.core.model import FlowModel

logger = logging.getLogger(__name__)


class Scheduler:
    """Queue-based activation scheduler.

    Attributes:
        flow_model: Model used to build node units for activations
        recorder: Recorder receiving a TaskRecord per settled activation
        signals: Emitter of completed, interrupted and error signals
    """

    def __init__(self, flow_model: "FlowModel", recorder: Recorder):
        """Initialize scheduler.

        Args:
            flow_model: Owning flow model
            recorder: Task history recorder
        """
        self.flow_model = flow_model
        self.recorder = recorder
        self.signals = SignalEmitter()
        self._node_queues: Dict[str, List[NodeParam]] = {}
        self._running: Dict[str, Dict[str, TaskParam]] = {}
        self._pending: Set[asyncio.Task] = set()

    def add_task(self, execution_id: str, node_id: str) -> None:
        """Append a node to an execution's ready-queue.

        Args:
            execution_id: Execution identifier
            node_id: Node to activate on the next ``run``
        """
        self._node_queues.setdefault(execution_id, []).append(
            NodeParam(execution_id=execution_id, node_id=node_id)
        )

    def run(
        self,
        execution_id: str,
        node_id: Optional[str] = None,
        task_id: Optional[str] = None,
    ) -> None:
        """Start every queued activation, or signal completion if idle.

        Args:
            execution_id: Execution to drive
            node_id: Node whose settling triggered this call, for the signal
            task_id: Activation whose settling triggered this call, for the signal
        """
        queue = self._node_queues.get(execution_id) or []
        if queue:
            self._node_queues[execution_id] = []
            for item in queue:
                task_param = TaskParam(
                    execution_id=execution_id,
                    node_id=item.node_id,
                    task_id=create_task_id(),
                )
                self._push_running(task_param)
                logger.debug("Scheduling node '%s' as %s", task_param.node_id, task_param.task_id)
                self._spawn(self._exec(task_param))
        elif not self.has_running_task(execution_id):
            self._node_queues.pop(execution_id, None)
            self.signals.emit(
                FlowResult(
                    execution_id=execution_id,
                    node_id=node_id,
                    task_id=task_id,
                    status=FlowStatus.COMPLETED,
                )
            )

    def resume(
        self,
        execution_id: str,
        task_id: str,
        node_id: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Resume an interrupted activation.

        The activation is registered in flight again under its original task
        id and its node's ``resume`` logic runs as a new asyncio task.

        Args:
            execution_id: Execution of the interrupted activation
            task_id: The interrupted activation
            node_id: Node of the interrupted activation
            data: Payload handed to ``on_resume``
        """
        task_param = TaskParam(execution_id=execution_id, node_id=node_id, task_id=task_id)
        self._push_running(task_param)
        self._spawn(self._resume(task_param, data or {}))

    def has_running_task(self, execution_id: str) -> bool:
        """Check whether an execution has activations in flight."""
        running = self._running.get(execution_id)
        if not running:
            self._running.pop(execution_id, None)
            return False
        return True

    def get_running_tasks(self, execution_id: str) -> List[TaskParam]:
        """List the activations of an execution currently in flight."""
        return list(self._running.get(execution_id, {}).values())

    def get_queued_nodes(self, execution_id: str) -> List[str]:
        """List node ids waiting in an execution's ready-queue."""
        return [item.node_id for item in self._node_queues.get(execution_id, [])]

    async def wait_idle(self) -> None:
        """Wait until every started activation task has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _push_running(self, task_param: TaskParam) -> None:
        self._running.setdefault(task_param.execution_id, {})[task_param.task_id] = task_param

    def _remove_running(self, task_param: TaskParam) -> None:
        running = self._running.get(task_param.execution_id)
        if running:
            running.pop(task_param.task_id, None)

    async def _exec(self, task_param: TaskParam) -> None:
        try:
            node = self.flow_model.create_task(task_param.node_id)
            result = await node.execute(
                ExecParams(
                    execution_id=task_param.execution_id,
                    task_id=task_param.task_id,
                    node_id=task_param.node_id,
                    next=self._next,
                )
            )
        except Exception as e:
            await self._failed(task_param, e)
            return

        if result.status == TaskStatus.INTERRUPTED:
            await self._settle(task_param, result.node_type, result.properties, result.status, result.detail)
            self.signals.emit(
                FlowResult(
                    execution_id=task_param.execution_id,
                    node_id=task_param.node_id,
                    task_id=task_param.task_id,
                    status=FlowStatus.INTERRUPTED,
                    detail=result.detail,
                )
            )
        elif result.status == TaskStatus.ERROR:
            await self._settle(task_param, result.node_type, result.properties, result.status, result.detail)
            self.signals.emit(
                FlowResult(
                    execution_id=task_param.execution_id,
                    node_id=task_param.node_id,
                    task_id=task_param.task_id,
                    status=FlowStatus.ERROR,
                    detail=result.detail,
                )
            )

    async def _resume(self, task_param: TaskParam, data: Dict[str, Any]) -> None:
        try:
            node = self.flow_model.create_task(task_param.node_id)
            await node.resume(
                ResumeParams(
                    execution_id=task_param.execution_id,
                    task_id=task_param.task_id,
                    node_id=task_param.node_id,
                    next=self._next,
                    data=data,
                )
            )
        except Exception as e:
            await self._failed(task_param, e)
            return

        if task_param.task_id in self._running.get(task_param.execution_id, {}):
            logger.warning(
                "Resumed task %s of node '%s' returned without continuing; "
                "execution %s stays in flight",
                task_param.task_id,
                task_param.node_id,
                task_param.execution_id,
            )

    async def _next(self, data: NextTaskParam) -> None:
        task_param = TaskParam(
            execution_id=data.execution_id,
            node_id=data.node_id,
            task_id=data.task_id,
        )
        # Successors are queued only once the record is stored
        await self._settle(task_param, data.node_type, data.properties)

        for edge in data.outgoing:
            self.add_task(data.execution_id, edge.peer_node_id)
        self.run(data.execution_id, node_id=data.node_id, task_id=data.task_id)

    async def _settle(
        self,
        task_param: TaskParam,
        node_type: str,
        properties: Optional[Dict[str, Any]],
        status: Optional[TaskStatus] = None,
        detail: Optional[Dict[str, Any]] = None,
    ) -> None:
        try:
            await self.recorder.add_task(
                TaskRecord(
                    execution_id=task_param.execution_id,
                    task_id=task_param.task_id,
                    node_id=task_param.node_id,
                    node_type=node_type,
                    properties=dict(properties or {}),
                    status=status.value if status else None,
                    detail=detail,
                )
            )
        finally:
            self._remove_running(task_param)

    async def _failed(self, task_param: TaskParam, error: Exception) -> None:
        logger.error(
            "Activation %s of node '%s' failed",
            task_param.task_id,
            task_param.node_id,
            exc_info=error,
        )
        node_type = ""
        spec = self.flow_model.graph.get_node(task_param.node_id) if self.flow_model.graph else None
        if spec is not None:
            node_type = spec.type

        self._remove_running(task_param)
        try:
            await self.recorder.add_task(
                TaskRecord(
                    execution_id=task_param.execution_id,
                    task_id=task_param.task_id,
                    node_id=task_param.node_id,
                    node_type=node_type,
                    properties=dict(spec.properties) if spec else {},
                    status=TaskStatus.ERROR.value,
                    detail={"error": str(error)},
                )
            )
        except Exception:
            logger.exception("Could not record failed activation %s", task_param.task_id)

        self.signals.emit(
            FlowResult(
                execution_id=task_param.execution_id,
                node_id=task_param.node_id,
                task_id=task_param.task_id,
                status=FlowStatus.ERROR,
                detail={"error": str(error)},
                error=NodeExecutionError(task_param.node_id, str(error), error),
            )
        )
