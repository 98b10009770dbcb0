"""Condition expression evaluation."""

from flowengine.expression.base import ExpressionEvaluator
from flowengine.expression.safe import SafeExpressionEvaluator, to_python_syntax

__all__ = [
    "ExpressionEvaluator",
    "SafeExpressionEvaluator",
    "to_python_syntax",
]
