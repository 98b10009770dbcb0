"""Base protocol for condition expression evaluators."""

from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class ExpressionEvaluator(Protocol):
    """Protocol for evaluating edge conditions.

    Implementations must not let an expression mutate the scope they are
    given or reach engine internals. Errors may be raised freely: the node
    unit treats any exception as a condition that did not pass.
    """

    async def evaluate(self, expression: str, scope: Dict[str, Any]) -> Any:
        """Evaluate an expression against a data scope.

        Args:
            expression: Condition source, e.g. ``"amount > 100"``
            scope: Names visible to the expression

        Returns:
            The expression value; callers test its truthiness

        Raises:
            Exception: If the expression is invalid or fails
        """
        ...
