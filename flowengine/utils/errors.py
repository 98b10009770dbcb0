"""Custom error classes for flowengine."""

from enum import Enum


class ErrorCode(str, Enum):
    """Stable codes attached to invocation-level errors."""

    NONE_NODE_ID = "NONE_NODE_ID"
    NONE_NODE_TYPE = "NONE_NODE_TYPE"
    NOT_LOADED = "NOT_LOADED"
    INVALID_RESUME = "INVALID_RESUME"


ERROR_MESSAGES = {
    ErrorCode.NONE_NODE_ID: "Node not found in the loaded graph",
    ErrorCode.NONE_NODE_TYPE: "Node type not registered",
    ErrorCode.NOT_LOADED: "No graph loaded, call load() before executing",
    ErrorCode.INVALID_RESUME: "Resume requires execution_id, task_id and node_id",
}


def get_error_msg(code: ErrorCode) -> str:
    """Return the human readable message for an error code."""
    return ERROR_MESSAGES[code]


class FlowEngineError(Exception):
    """Base exception for all flowengine errors."""

    code: ErrorCode = None

    def __init__(self, message: str, code: ErrorCode = None):
        if code is not None:
            self.code = code
        super().__init__(message)


class GraphValidationError(FlowEngineError):
    """Raised when graph JSON cannot be loaded."""

    pass


class InvalidNodeTypeError(FlowEngineError):
    """Raised when a node type has no registered factory."""

    code = ErrorCode.NONE_NODE_TYPE


class NodeNotFoundError(FlowEngineError):
    """Raised when a node id is not part of the loaded graph."""

    code = ErrorCode.NONE_NODE_ID

    def __init__(self, node_id: str):
        self.node_id = node_id
        super().__init__(f"{get_error_msg(ErrorCode.NONE_NODE_ID)}({node_id})")


class NodeExecutionError(FlowEngineError):
    """Raised when a node activation fails."""

    def __init__(self, node_id: str, message: str, original_error: Exception = None):
        self.node_id = node_id
        self.original_error = original_error
        super().__init__(f"Node '{node_id}' execution failed: {message}")


class ExpressionError(FlowEngineError):
    """Raised when a condition expression cannot be evaluated."""

    def __init__(self, message: str, expression: str = ""):
        self.expression = expression
        super().__init__(message)
