"""Flow model: compiled graph, shared state and the invocation queue.

A FlowModel owns one Scheduler. Invocations (fresh runs and resumes) are
serialized: a request waits in a FIFO queue until the previous invocation's
run reports completion, interruption or an error. Within one run every
activation proceeds concurrently.

To run two flows truly in parallel, load the graph into two models.
"""

import logging
from collections import deque
from typing import Any, Deque, Dict, List, Mapping, Optional, TYPE_CHECKING

from flowengine.core.events import FlowResult, FlowStatus
from flowengine.core.graph import FlowGraph, NodeSpec
from flowengine.core.scheduler import Scheduler
from flowengine.core.state import InvocationRequest
from flowengine.recorders.base import Recorder
from flowengine.utils.config import DEFAULT_START_NODE_TYPE
from flowengine.utils.errors import (
    ErrorCode,
    FlowEngineError,
    NodeNotFoundError,
    get_error_msg,
)
from flowengine.utils.ids import create_execution_id

if TYPE_CHECKING:
    from flowengine.expression.base import ExpressionEvaluator
    from flowengine.nodes.base import Node
    from flowengine.utils.registry import NodeRegistry

logger = logging.getLogger(__name__)


class FlowModel:
    """Execution model for one loaded graph.

    Attributes:
        registry: Node type registry used at load and activation time
        scheduler: Scheduler driving this model's activations
        graph: Compiled graph, set by ``load``
        context: Shared injected capabilities, passed to every node unit
        global_data: Shared mutable data, passed to every node unit
        start_node_type: Node type whose nodes seed fresh runs
        execution_id: Execution of the active (or last) invocation
        is_running: Whether an invocation is active
    """

    def __init__(
        self,
        registry: "NodeRegistry",
        recorder: Recorder,
        evaluator: Optional["ExpressionEvaluator"] = None,
        context: Optional[Dict[str, Any]] = None,
        global_data: Optional[Dict[str, Any]] = None,
        start_node_type: str = DEFAULT_START_NODE_TYPE,
    ):
        """Initialize flow model.

        Args:
            registry: Node type registry
            recorder: Task history recorder
            evaluator: Edge condition evaluator (SafeExpressionEvaluator if None)
            context: Shared injected capabilities
            global_data: Shared mutable data
            start_node_type: Node type whose nodes seed fresh runs
        """
        if evaluator is None:
            from flowengine.expression.safe import SafeExpressionEvaluator

            evaluator = SafeExpressionEvaluator()

        self.registry = registry
        self.evaluator = evaluator
        self.context: Dict[str, Any] = context if context is not None else {}
        self.global_data: Dict[str, Any] = global_data if global_data is not None else {}
        self.start_node_type = start_node_type
        self.graph: Optional[FlowGraph] = None

        self.execute_queue: Deque[InvocationRequest] = deque()
        self.executing: Optional[InvocationRequest] = None
        self.execution_id: Optional[str] = None
        self.is_running = False

        self.scheduler = Scheduler(self, recorder)
        self.scheduler.signals.on(self._on_task_finished)

    @property
    def start_nodes(self) -> List[NodeSpec]:
        """Start nodes of the loaded graph."""
        return list(self.graph.start_nodes) if self.graph else []

    def load(self, graph_data: Any) -> FlowGraph:
        """Compile graph JSON; required before any execution.

        Args:
            graph_data: ``{nodes, edges}`` document

        Returns:
            The compiled FlowGraph

        Raises:
            GraphValidationError: If the document is malformed
        """
        self.graph = FlowGraph.from_graph_data(
            graph_data,
            node_types=self.registry.list_node_types(),
            start_node_type=self.start_node_type,
        )
        return self.graph

    def execute(self, request: Optional[InvocationRequest] = None) -> None:
        """Queue a fresh run; start it now if no invocation is active.

        Args:
            request: Run parameters and result callbacks
        """
        self.execute_queue.append(request or InvocationRequest())
        if self.is_running:
            return
        self.is_running = True
        self._create_execution()

    def resume(self, request: InvocationRequest) -> None:
        """Queue the resumption of an interrupted activation.

        Args:
            request: Must carry ``execution_id``, ``task_id`` and ``node_id``
        """
        if not (request.execution_id and request.task_id and request.node_id):
            self._report_error(
                request,
                FlowEngineError(get_error_msg(ErrorCode.INVALID_RESUME), ErrorCode.INVALID_RESUME),
            )
            return
        self.execute(request)

    def create_task(self, node_id: str) -> "Node":
        """Build the node unit for one activation of ``node_id``.

        Raises:
            NodeNotFoundError: If the node is not in the loaded graph
            InvalidNodeTypeError: If the node's type is no longer registered
        """
        spec = self.graph.get_node(node_id) if self.graph else None
        if spec is None:
            raise NodeNotFoundError(node_id)
        factory = self.registry.get_node_type(spec.type)
        return factory(
            spec=spec,
            context=self.context,
            global_data=self.global_data,
            evaluator=self.evaluator,
        )

    def update_global_data(self, patch: Mapping[str, Any]) -> None:
        """Shallow-merge ``patch`` into the shared global data.

        The dict is updated in place, so running activations see the change.
        Concurrent updates are not synchronized: the last write wins.
        """
        self.global_data.update(patch)

    def set_start_node_type(self, start_node_type: str) -> None:
        """Change the start-node type; takes effect on the next ``load``."""
        self.start_node_type = start_node_type

    def _create_execution(self) -> None:
        while self.execute_queue:
            request = self.execute_queue.popleft()
            self.executing = request
            self.execution_id = request.execution_id or create_execution_id()

            if self.graph is None:
                self._drop(request, FlowEngineError(get_error_msg(ErrorCode.NOT_LOADED), ErrorCode.NOT_LOADED))
                continue

            if request.task_id:
                logger.debug("Resuming task %s of execution %s", request.task_id, self.execution_id)
                self.scheduler.resume(
                    execution_id=self.execution_id,
                    task_id=request.task_id,
                    node_id=request.node_id,
                    data=request.data,
                )
                return

            if request.node_id:
                spec = self.graph.get_node(request.node_id)
                if spec is None:
                    self._drop(request, NodeNotFoundError(request.node_id))
                    continue
                seeds = [spec]
            else:
                seeds = self.graph.start_nodes

            logger.debug("Starting execution %s from %d node(s)", self.execution_id, len(seeds))
            for seed in seeds:
                self.scheduler.add_task(self.execution_id, seed.id)
            self.scheduler.run(self.execution_id)
            return

        self.executing = None
        self.is_running = False

    def _drop(self, request: InvocationRequest, error: BaseException) -> None:
        self.executing = None
        self._report_error(request, error)

    def _report_error(self, request: InvocationRequest, error: BaseException) -> None:
        logger.warning("Invocation failed: %s", error)
        if request.on_error:
            request.on_error(error)

    def _on_task_finished(self, result: FlowResult) -> None:
        if self.executing is None or result.execution_id != self.execution_id:
            logger.debug(
                "Ignoring %s signal for execution %s, no matching invocation",
                result.status.value,
                result.execution_id,
            )
            return

        request = self.executing
        self.executing = None
        if result.status == FlowStatus.ERROR and result.error is not None:
            if request.on_error:
                request.on_error(result.error)
        elif request.callback:
            request.callback(result)

        if self.execute_queue:
            self._create_execution()
        else:
            self.is_running = False
