"""Configuration utilities for loading engine settings from the environment."""

import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_START_NODE_TYPE = "StartNode"
DEFAULT_MAX_EXECUTIONS = 100

ENV_START_NODE_TYPE = "FLOWENGINE_START_NODE_TYPE"
ENV_MAX_EXECUTIONS = "FLOWENGINE_MAX_EXECUTIONS"
ENV_RECORDER_PATH = "FLOWENGINE_RECORDER_PATH"


def load_env(env_file: Optional[str] = None) -> None:
    """Load environment variables from a .env file.

    Args:
        env_file: Optional path to .env file. If not specified, searches
                 for .env in current and parent directories.

    Example:
        >>> from flowengine.utils.config import load_env
        >>> load_env()
        >>> os.getenv("FLOWENGINE_MAX_EXECUTIONS")
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()


def get_config(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get configuration value from environment.

    Args:
        key: Configuration key
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    return os.getenv(key, default)


class EngineConfig(BaseModel):
    """Settings shared by an Engine and the flow models it loads.

    Attributes:
        start_node_type: Node type whose nodes seed a fresh run
        max_executions: Executions the default recorder keeps before evicting
        recorder_path: SQLite file for durable task history (memory if unset)
        global_data: Initial mutable data shared by every node activation
        context: Injected capabilities shared by every node activation
    """

    start_node_type: str = DEFAULT_START_NODE_TYPE
    max_executions: int = Field(default=DEFAULT_MAX_EXECUTIONS, ge=1)
    recorder_path: Optional[str] = None
    global_data: Dict[str, Any] = Field(default_factory=dict)
    context: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "EngineConfig":
        """Build a config from FLOWENGINE_* environment variables.

        Args:
            env_file: Optional .env file to load first

        Returns:
            EngineConfig with environment overrides applied
        """
        load_env(env_file)
        values: Dict[str, Any] = {}

        start_node_type = get_config(ENV_START_NODE_TYPE)
        if start_node_type:
            values["start_node_type"] = start_node_type

        max_executions = get_config(ENV_MAX_EXECUTIONS)
        if max_executions:
            values["max_executions"] = int(max_executions)

        recorder_path = get_config(ENV_RECORDER_PATH)
        if recorder_path:
            values["recorder_path"] = recorder_path

        return cls(**values)
