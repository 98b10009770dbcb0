"""Allow-listed expression evaluator.

Expressions are parsed with :mod:`ast` and walked node by node; anything not
explicitly supported raises ExpressionError. Editors usually author
conditions in JavaScript syntax, so the common JavaScript operators and
literals are rewritten to their Python spelling before parsing.
"""

import ast
import math
import operator
import re
from typing import Any, Callable, Dict, List

from flowengine.utils.errors import ExpressionError

# Literal strings are matched first so rewrites never touch their contents.
_TOKEN_PATTERN = re.compile(
    r"""
    (?P<string>"(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*')
    |(?P<strict_ne>!==)
    |(?P<strict_eq>===)
    |(?P<ne>!=)
    |(?P<and>&&)
    |(?P<or>\|\|)
    |(?P<not>!)
    |(?P<word>[A-Za-z_$][A-Za-z0-9_$]*)
    """,
    re.VERBOSE,
)

_JS_WORDS = {
    "true": "True",
    "false": "False",
    "null": "None",
    "undefined": "None",
}

_REPLACEMENTS = {
    "strict_ne": " != ",
    "strict_eq": " == ",
    "ne": " != ",
    "and": " and ",
    "or": " or ",
    "not": " not ",
}


def to_python_syntax(expression: str) -> str:
    """Rewrite JavaScript operators and literals into Python syntax.

    Example:
        >>> to_python_syntax("a === 1 && !done")
        'a  ==  1  and   not done'
    """

    def replace(match: re.Match) -> str:
        kind = match.lastgroup
        text = match.group(0)
        if kind == "string":
            return text
        if kind == "word":
            return _JS_WORDS.get(text, text)
        return _REPLACEMENTS[kind]

    return _TOKEN_PATTERN.sub(replace, expression).strip()


class SafeExpressionEvaluator:
    """Evaluate conditions with an explicit allow-list of syntax.

    Supported:
        - literals, lists, tuples, dicts
        - names from the scope and a few pure builtins
        - arithmetic, comparison, boolean and conditional expressions
        - subscripts, and attribute reads that resolve to mapping keys

    Method calls, lambdas, comprehensions, private attribute access and
    assignment are rejected, so a condition can read shared data but never
    change it.

    Powers and sequence repetition are bounded (``max_power_bits``,
    ``max_sequence_length``) so a condition cannot stall the event loop.

    Example:
        >>> evaluator = SafeExpressionEvaluator()
        >>> await evaluator.evaluate("x > 5 && user.role === 'admin'", data)
        True
    """

    BUILTINS: Dict[str, Callable[..., Any]] = {
        "abs": abs,
        "bool": bool,
        "float": float,
        "int": int,
        "len": len,
        "max": max,
        "min": min,
        "round": round,
        "str": str,
        "sum": sum,
        "floor": math.floor,
        "ceil": math.ceil,
    }

    BINARY_OPERATORS = {
        ast.Add: operator.add,
        ast.Sub: operator.sub,
        ast.Mult: operator.mul,
        ast.Div: operator.truediv,
        ast.FloorDiv: operator.floordiv,
        ast.Mod: operator.mod,
        ast.Pow: operator.pow,
    }

    COMPARISONS = {
        ast.Eq: operator.eq,
        ast.NotEq: operator.ne,
        ast.Lt: operator.lt,
        ast.LtE: operator.le,
        ast.Gt: operator.gt,
        ast.GtE: operator.ge,
        ast.Is: operator.is_,
        ast.IsNot: operator.is_not,
        ast.In: lambda x, y: x in y,
        ast.NotIn: lambda x, y: x not in y,
    }

    UNARY_OPERATORS = {
        ast.UAdd: operator.pos,
        ast.USub: operator.neg,
        ast.Not: operator.not_,
    }

    def __init__(
        self,
        max_length: int = 2000,
        max_power_bits: int = 4096,
        max_sequence_length: int = 100_000,
    ):
        self.max_length = max_length
        self.max_power_bits = max_power_bits
        self.max_sequence_length = max_sequence_length

    async def evaluate(self, expression: str, scope: Dict[str, Any]) -> Any:
        """Evaluate ``expression`` against a private copy of ``scope``.

        Raises:
            ExpressionError: If the expression is invalid or unsupported
        """
        return self.evaluate_sync(expression, scope)

    def evaluate_sync(self, expression: str, scope: Dict[str, Any]) -> Any:
        """Synchronous form of :meth:`evaluate`."""
        if not isinstance(expression, str):
            raise ExpressionError("Expression must be a string", str(expression))
        if len(expression) > self.max_length:
            raise ExpressionError("Expression too long", expression[:50])

        source = to_python_syntax(expression)
        try:
            tree = ast.parse(source, mode="eval")
        except SyntaxError as e:
            raise ExpressionError(f"Syntax error in expression: {e}", expression) from e

        names = dict(scope or {})

        try:
            return self._eval_node(tree.body, names)
        except ExpressionError:
            raise
        except Exception as e:
            raise ExpressionError(f"Expression evaluation failed: {e}", expression) from e

    def _eval_node(self, node: ast.AST, names: Dict[str, Any]) -> Any:
        if isinstance(node, ast.Constant):
            return node.value

        if isinstance(node, ast.Name):
            if node.id in names:
                return names[node.id]
            if node.id in self.BUILTINS:
                return self.BUILTINS[node.id]
            raise ExpressionError(f"Name '{node.id}' is not defined")

        if isinstance(node, ast.Attribute):
            if node.attr.startswith("_"):
                raise ExpressionError(f"Access to '{node.attr}' is not allowed")
            obj = self._eval_node(node.value, names)
            if isinstance(obj, dict):
                return obj.get(node.attr)
            if obj is None:
                return None
            raise ExpressionError(f"Attribute access on {type(obj).__name__} is not allowed")

        if isinstance(node, ast.Subscript):
            obj = self._eval_node(node.value, names)
            key = self._eval_node(node.slice, names)
            if obj is None:
                return None
            if isinstance(obj, dict):
                return obj.get(key)
            return obj[key]

        if isinstance(node, ast.BoolOp):
            if isinstance(node.op, ast.And):
                value = True
                for item in node.values:
                    value = self._eval_node(item, names)
                    if not value:
                        return value
                return value
            value = False
            for item in node.values:
                value = self._eval_node(item, names)
                if value:
                    return value
            return value

        if isinstance(node, ast.BinOp):
            op = self.BINARY_OPERATORS.get(type(node.op))
            if op is None:
                raise ExpressionError(f"Unsupported operator: {type(node.op).__name__}")
            left = self._eval_node(node.left, names)
            right = self._eval_node(node.right, names)
            self._check_size(node.op, left, right)
            return op(left, right)

        if isinstance(node, ast.UnaryOp):
            op = self.UNARY_OPERATORS.get(type(node.op))
            if op is None:
                raise ExpressionError(f"Unsupported operator: {type(node.op).__name__}")
            return op(self._eval_node(node.operand, names))

        if isinstance(node, ast.Compare):
            left = self._eval_node(node.left, names)
            for op_node, right_node in zip(node.ops, node.comparators):
                comparison = self.COMPARISONS.get(type(op_node))
                if comparison is None:
                    raise ExpressionError(f"Unsupported comparison: {type(op_node).__name__}")
                right = self._eval_node(right_node, names)
                if not comparison(left, right):
                    return False
                left = right
            return True

        if isinstance(node, ast.IfExp):
            if self._eval_node(node.test, names):
                return self._eval_node(node.body, names)
            return self._eval_node(node.orelse, names)

        if isinstance(node, ast.Call):
            return self._eval_call(node, names)

        if isinstance(node, (ast.List, ast.Tuple)):
            items = [self._eval_node(item, names) for item in node.elts]
            return items if isinstance(node, ast.List) else tuple(items)

        if isinstance(node, ast.Dict):
            return {
                self._eval_node(key, names): self._eval_node(value, names)
                for key, value in zip(node.keys, node.values)
            }

        raise ExpressionError(f"Unsupported expression element: {type(node).__name__}")

    def _check_size(self, op: ast.operator, left: Any, right: Any) -> None:
        if isinstance(op, ast.Pow):
            if isinstance(left, int) and isinstance(right, int) and right > 0:
                if max(abs(left).bit_length(), 1) * right > self.max_power_bits:
                    raise ExpressionError("Power result too large")
        elif isinstance(op, ast.Mult):
            for sequence, count in ((left, right), (right, left)):
                if isinstance(sequence, (str, list, tuple)) and isinstance(count, int):
                    if len(sequence) * count > self.max_sequence_length:
                        raise ExpressionError("Repeated sequence too long")

    def _eval_call(self, node: ast.Call, names: Dict[str, Any]) -> Any:
        if not isinstance(node.func, ast.Name) or node.func.id not in self.BUILTINS:
            raise ExpressionError("Only builtin functions may be called")
        if node.keywords:
            raise ExpressionError("Keyword arguments are not supported")
        args: List[Any] = [self._eval_node(arg, names) for arg in node.args]
        return self.BUILTINS[node.func.id](*args)
