"""Utility functions and helpers."""

from flowengine.utils.config import EngineConfig, load_env, get_config
from flowengine.utils.ids import create_execution_id, create_task_id
from flowengine.utils.errors import (
    ErrorCode,
    FlowEngineError,
    GraphValidationError,
    InvalidNodeTypeError,
    NodeNotFoundError,
    NodeExecutionError,
    ExpressionError,
)

__all__ = [
    "EngineConfig",
    "load_env",
    "get_config",
    "create_execution_id",
    "create_task_id",
    "ErrorCode",
    "FlowEngineError",
    "GraphValidationError",
    "InvalidNodeTypeError",
    "NodeNotFoundError",
    "NodeExecutionError",
    "ExpressionError",
]
