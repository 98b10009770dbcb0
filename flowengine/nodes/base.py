"""Base node protocol and implementation.

A node unit wraps one activation of one node. Subclasses override two
coroutines: ``action`` (the node's business logic) and ``on_resume`` (what
to do when a suspended activation is resumed). ``BaseNode.execute`` runs the
action and, unless the action suspended or failed, evaluates the outgoing
edge conditions and hands the firing edges to the scheduler.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Protocol, Tuple, Union, TYPE_CHECKING, runtime_checkable

from flowengine.core.events import TaskStatus
from flowengine.core.state import ActionParams, ExecParams, NextTaskParam, ResumeParams

if TYPE_CHECKING:
    from flowengine.core.graph import EdgeRef, NodeSpec
    from flowengine.expression.base import ExpressionEvaluator

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    """Result returned by a node's action.

    Attributes:
        status: None or SUCCESS to continue, INTERRUPTED to suspend, ERROR to fail
        detail: Extra information recorded with the task (e.g. interruption reason)
    """

    status: Optional[TaskStatus] = None
    detail: Optional[Dict[str, Any]] = None

    @classmethod
    def coerce(cls, value: Union["ActionResult", Mapping[str, Any], None]) -> "ActionResult":
        """Accept an ActionResult, a ``{status, detail}`` mapping or None."""
        if value is None:
            return cls()
        if isinstance(value, ActionResult):
            return value
        status = value.get("status")
        return cls(
            status=TaskStatus(status) if status else None,
            detail=value.get("detail"),
        )

    @property
    def should_continue(self) -> bool:
        return self.status is None or self.status == TaskStatus.SUCCESS


@dataclass
class NodeExecResult:
    """Outcome of ``BaseNode.execute``, inspected by the scheduler."""

    execution_id: str
    task_id: str
    node_id: str
    node_type: str
    status: Optional[TaskStatus] = None
    detail: Optional[Dict[str, Any]] = None
    properties: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class Node(Protocol):
    """Protocol that all node units must implement.

    The scheduler only calls ``execute`` and ``resume``; ``BaseNode``
    implements both on top of ``action`` and ``on_resume``.
    """

    node_id: str
    type: str

    async def execute(self, params: ExecParams) -> NodeExecResult:
        ...

    async def resume(self, params: ResumeParams) -> None:
        ...


class BaseNode:
    """Base implementation of a node unit.

    Instances are built per activation by the flow model, from the node's
    NodeSpec plus the model's shared ``context`` and ``global_data``. Both
    are the model's own objects, not copies: every concurrent activation sees
    the same data.

    Subclasses override ``action`` and optionally ``on_resume``, and set
    ``type_name`` to the type they register under.
    """

    type_name: ClassVar[str] = "BaseNode"

    def __init__(
        self,
        spec: "NodeSpec",
        context: Optional[Dict[str, Any]] = None,
        global_data: Optional[Dict[str, Any]] = None,
        evaluator: Optional["ExpressionEvaluator"] = None,
    ):
        """Initialize node unit.

        Args:
            spec: Static description of the node
            context: Shared injected capabilities
            global_data: Shared mutable data, also the scope of edge conditions
            evaluator: Evaluator for edge conditions
        """
        if evaluator is None:
            from flowengine.expression.safe import SafeExpressionEvaluator

            evaluator = SafeExpressionEvaluator()

        self.spec = spec
        self.node_id = spec.id
        self.type = spec.type
        self.properties = spec.properties
        self.incoming: Tuple["EdgeRef", ...] = spec.incoming
        self.outgoing: Tuple["EdgeRef", ...] = spec.outgoing
        self.context = context if context is not None else {}
        self.global_data = global_data if global_data is not None else {}
        self.evaluator = evaluator

    async def action(self, params: ActionParams) -> Union[ActionResult, Mapping[str, Any], None]:
        """Node business logic. Override in subclasses.

        Returns:
            None to continue, or an ActionResult / ``{status, detail}`` mapping
        """
        return None

    async def on_resume(self, params: ResumeParams) -> None:
        """Logic run when a suspended activation is resumed.

        Must call ``params.next`` (``proceed`` does that) before returning
        for the flow to continue past this node. The default continues
        immediately. If it returns without continuing, the activation stays
        in flight: the invocation never resolves and the flow model accepts
        no further requests.
        """
        await self.proceed(params)

    def update_global_data(self, patch: Mapping[str, Any]) -> None:
        """Shallow-merge ``patch`` into the shared global data."""
        self.global_data.update(patch)

    async def _is_pass(self, edge: "EdgeRef") -> bool:
        expression = edge.condition_expression
        if expression is None:
            return True
        try:
            return bool(await self.evaluator.evaluate(expression, self.global_data))
        except Exception as e:
            logger.debug("Condition on edge '%s' failed (%s), edge not taken", edge.id, e)
            return False

    async def get_outgoing(self) -> List["EdgeRef"]:
        """Return the outgoing edges whose conditions pass.

        All conditions are evaluated concurrently.
        """
        results = await asyncio.gather(*(self._is_pass(edge) for edge in self.outgoing))
        return [edge for edge, passed in zip(self.outgoing, results) if passed]

    async def proceed(self, params: ExecParams) -> None:
        """Evaluate outgoing edges and hand the firing ones to ``params.next``."""
        outgoing = await self.get_outgoing()
        if params.next is None:
            return
        await params.next(
            NextTaskParam(
                execution_id=params.execution_id,
                task_id=params.task_id,
                node_id=self.node_id,
                node_type=self.type,
                outgoing=outgoing,
                properties=self.properties,
            )
        )

    async def execute(self, params: ExecParams) -> NodeExecResult:
        """Run the action and continue the flow when it succeeds.

        Args:
            params: Activation identifiers plus the ``next`` continuation

        Returns:
            NodeExecResult with the action's status and detail
        """
        result = ActionResult.coerce(
            await self.action(
                ActionParams(
                    execution_id=params.execution_id,
                    task_id=params.task_id,
                    node_id=self.node_id,
                )
            )
        )

        if result.should_continue:
            await self.proceed(params)

        return NodeExecResult(
            execution_id=params.execution_id,
            task_id=params.task_id,
            node_id=self.node_id,
            node_type=self.type,
            status=result.status,
            detail=result.detail,
            properties=self.properties,
        )

    async def resume(self, params: ResumeParams) -> None:
        """Resume a suspended activation."""
        await self.on_resume(params)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id='{self.node_id}')"
