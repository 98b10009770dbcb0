"""Identifier helpers for executions and tasks."""

import uuid


def create_execution_id() -> str:
    """Generate a fresh execution identifier."""
    return f"exec-{uuid.uuid4()}"


def create_task_id() -> str:
    """Generate a fresh task (activation) identifier."""
    return f"task-{uuid.uuid4()}"
