"""Engine facade.

The Engine owns the node registry and the recorder, loads graphs into
FlowModels and turns the callback-based invocation API of the model into
awaitable ``execute`` and ``resume`` coroutines.

Example:
    >>> engine = Engine()
    >>> engine.register("ApprovalNode", ApprovalNode)
    >>> engine.load(graph_data, global_data={"amount": 10})
    >>> result = await engine.execute()
    >>> result.status
    <FlowStatus.INTERRUPTED: 'interrupted'>
    >>> await engine.resume(result.execution_id, result.task_id, result.node_id, {"ok": True})
"""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

from flowengine.core.events import FlowResult
from flowengine.core.model import FlowModel
from flowengine.core.state import InvocationRequest
from flowengine.expression.base import ExpressionEvaluator
from flowengine.recorders.base import Recorder, TaskRecord
from flowengine.recorders.memory import MemoryRecorder
from flowengine.recorders.sqlite import SQLiteRecorder
from flowengine.utils.config import EngineConfig
from flowengine.utils.errors import ErrorCode, FlowEngineError, get_error_msg
from flowengine.utils.registry import NodeFactory, NodeRegistry

logger = logging.getLogger(__name__)


class Engine:
    """Entry point for loading and running flows.

    Attributes:
        config: Engine settings
        registry: Node types available to graphs loaded by this engine
        recorder: Task history shared by every loaded model
        flow_model: Model of the most recently loaded graph
    """

    def __init__(
        self,
        recorder: Optional[Recorder] = None,
        evaluator: Optional[ExpressionEvaluator] = None,
        config: Optional[EngineConfig] = None,
    ):
        """Initialize engine.

        Args:
            recorder: Task history store (built from ``config`` if None)
            evaluator: Edge condition evaluator (SafeExpressionEvaluator if None)
            config: Engine settings (defaults if None)
        """
        self.config = config or EngineConfig()
        self.registry = NodeRegistry()
        self.evaluator = evaluator
        self.recorder: Recorder = recorder or self._default_recorder()
        self.flow_model: Optional[FlowModel] = None

    def _default_recorder(self) -> Recorder:
        if self.config.recorder_path:
            return SQLiteRecorder(self.config.recorder_path, max_executions=self.config.max_executions)
        return MemoryRecorder(max_executions=self.config.max_executions)

    def register(self, type_name: str, factory: NodeFactory) -> None:
        """Register a node type for graphs loaded afterwards.

        Args:
            type_name: Type identifier used in graph JSON
            factory: Node class or callable building a node unit
        """
        self.registry.register_node_type(type_name, factory)

    def set_recorder(self, recorder: Recorder) -> None:
        """Replace the recorder. Models loaded earlier keep the old one."""
        self.recorder = recorder

    def load(
        self,
        graph_data: Any,
        start_node_type: Optional[str] = None,
        global_data: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> FlowModel:
        """Load a graph into a new FlowModel.

        Args:
            graph_data: ``{nodes, edges}`` document
            start_node_type: Start-node type (config value if None)
            global_data: Shared mutable data (config value if None)
            context: Shared injected capabilities (config value if None)

        Returns:
            The loaded FlowModel, also kept as ``flow_model``

        Raises:
            GraphValidationError: If the document is malformed
        """
        flow_model = FlowModel(
            registry=self.registry,
            recorder=self.recorder,
            evaluator=self.evaluator,
            context=context if context is not None else dict(self.config.context),
            global_data=global_data if global_data is not None else dict(self.config.global_data),
            start_node_type=start_node_type or self.config.start_node_type,
        )
        flow_model.load(graph_data)
        self.flow_model = flow_model
        logger.debug("Loaded graph with %d node(s)", len(flow_model.graph.nodes))
        return flow_model

    async def execute(
        self,
        execution_id: Optional[str] = None,
        node_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> FlowResult:
        """Run the flow and wait until it completes or is interrupted.

        Args:
            execution_id: Execution to run in (generated if None)
            node_id: Node to start from (every start node if None)
            data: Extra invocation data

        Returns:
            FlowResult with status completed, interrupted or error

        Raises:
            NodeNotFoundError: If ``node_id`` is not in the graph
            NodeExecutionError: If an activation raised
        """
        return await self._invoke(
            InvocationRequest(execution_id=execution_id, node_id=node_id, data=data or {}),
            resume=False,
        )

    async def resume(
        self,
        execution_id: str,
        task_id: str,
        node_id: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> FlowResult:
        """Resume an interrupted activation and wait for the next result.

        Args:
            execution_id: Execution of the interrupted activation
            task_id: The interrupted activation
            node_id: Node of the interrupted activation
            data: Payload handed to the node's ``on_resume``

        Returns:
            FlowResult with status completed, interrupted or error
        """
        return await self._invoke(
            InvocationRequest(
                execution_id=execution_id,
                task_id=task_id,
                node_id=node_id,
                data=data or {},
            ),
            resume=True,
        )

    async def _invoke(self, request: InvocationRequest, resume: bool) -> FlowResult:
        if self.flow_model is None:
            raise FlowEngineError(get_error_msg(ErrorCode.NOT_LOADED), ErrorCode.NOT_LOADED)

        future: asyncio.Future = asyncio.get_running_loop().create_future()

        def callback(result: FlowResult) -> None:
            if not future.done():
                future.set_result(result)

        def on_error(error: BaseException) -> None:
            if not future.done():
                future.set_exception(error)

        request.callback = callback
        request.on_error = on_error
        if resume:
            self.flow_model.resume(request)
        else:
            self.flow_model.execute(request)
        return await future

    async def get_execution_record(self, execution_id: str) -> List[TaskRecord]:
        """Get the task records of an execution in the order they were appended.

        Records evicted by the recorder are skipped.
        """
        task_ids = await self.recorder.get_execution_tasks(execution_id)
        records = await asyncio.gather(*(self.recorder.get_task(task_id) for task_id in task_ids))
        return [record for record in records if record is not None]

    def update_global_data(self, patch: Mapping[str, Any]) -> None:
        """Shallow-merge ``patch`` into the loaded model's global data."""
        if self.flow_model is None:
            raise FlowEngineError(get_error_msg(ErrorCode.NOT_LOADED), ErrorCode.NOT_LOADED)
        self.flow_model.update_global_data(patch)

    async def wait_idle(self) -> None:
        """Wait until every activation of the loaded model has finished."""
        if self.flow_model is not None:
            await self.flow_model.scheduler.wait_idle()

    def __repr__(self) -> str:
        return f"Engine(node_types={len(self.registry.list_node_types())}, recorder={self.recorder!r})"
