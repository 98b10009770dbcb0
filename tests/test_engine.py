"""Tests for the Engine facade and its configuration."""

import os
from typing import Any, Dict

import pytest

from flowengine import (
    Engine,
    EngineConfig,
    ErrorCode,
    FlowEngineError,
    FlowModel,
    FlowStatus,
    MemoryRecorder,
    SQLiteRecorder,
)
from flowengine.utils.config import (
    ENV_MAX_EXECUTIONS,
    ENV_RECORDER_PATH,
    ENV_START_NODE_TYPE,
)

ENV_NAMES = (ENV_START_NODE_TYPE, ENV_MAX_EXECUTIONS, ENV_RECORDER_PATH)


@pytest.fixture
def clean_env(monkeypatch):
    """Unset FLOWENGINE_* variables, including ones loaded from .env files."""
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    yield
    for name in ENV_NAMES:
        os.environ.pop(name, None)


class TestEngineConfig:
    """Tests for EngineConfig."""

    def test_defaults(self):
        config = EngineConfig()

        assert config.start_node_type == "StartNode"
        assert config.max_executions == 100
        assert config.recorder_path is None
        assert config.global_data == {}

    def test_invalid_max_executions(self):
        with pytest.raises(ValueError):
            EngineConfig(max_executions=0)

    def test_from_env(self, clean_env, monkeypatch):
        monkeypatch.setenv(ENV_START_NODE_TYPE, "BeginNode")
        monkeypatch.setenv(ENV_MAX_EXECUTIONS, "5")

        config = EngineConfig.from_env()

        assert config.start_node_type == "BeginNode"
        assert config.max_executions == 5
        assert config.recorder_path is None

    def test_from_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(f"{ENV_MAX_EXECUTIONS}=7\n{ENV_RECORDER_PATH}={tmp_path / 'flow.db'}\n")

        config = EngineConfig.from_env(str(env_file))

        assert config.max_executions == 7
        assert config.recorder_path == str(tmp_path / "flow.db")


class TestEngine:
    """Tests for Engine."""

    def test_default_recorder(self):
        engine = Engine(config=EngineConfig(max_executions=3))

        assert isinstance(engine.recorder, MemoryRecorder)
        assert engine.recorder.max_executions == 3

    def test_sqlite_recorder_from_config(self, tmp_path):
        engine = Engine(config=EngineConfig(recorder_path=str(tmp_path / "flow.db")))

        assert isinstance(engine.recorder, SQLiteRecorder)

    def test_load_returns_model(self, engine, linear_graph):
        model = engine.load(linear_graph)

        assert isinstance(model, FlowModel)
        assert engine.flow_model is model
        assert [spec.id for spec in model.start_nodes] == ["S"]

    def test_load_uses_config_defaults(self, linear_graph):
        config = EngineConfig(start_node_type="TaskNode", global_data={"x": 1})
        engine = Engine(config=config)

        model = engine.load(linear_graph)

        assert model.start_node_type == "TaskNode"
        assert model.start_nodes == []
        assert model.global_data == {"x": 1}
        model.update_global_data({"x": 2})
        assert config.global_data == {"x": 1}

    def test_set_recorder(self, engine, linear_graph):
        recorder = MemoryRecorder()
        engine.set_recorder(recorder)

        model = engine.load(linear_graph)

        assert model.scheduler.recorder is recorder

    def test_update_global_data_is_shallow(self, engine, linear_graph):
        """Test that patches replace top-level keys in place."""
        global_data: Dict[str, Any] = {"a": {"b": 1, "c": 2}, "keep": True}
        engine.load(linear_graph, global_data=global_data)

        engine.update_global_data({"a": {"b": 3}, "new": 1})

        assert global_data == {"a": {"b": 3}, "keep": True, "new": 1}
        assert engine.flow_model.global_data is global_data

    def test_update_global_data_before_load(self):
        with pytest.raises(FlowEngineError) as exc_info:
            Engine().update_global_data({"x": 1})

        assert exc_info.value.code == ErrorCode.NOT_LOADED

    @pytest.mark.asyncio
    async def test_get_execution_record_unknown(self, engine):
        assert await engine.get_execution_record("exec-missing") == []

    @pytest.mark.asyncio
    async def test_run_with_sqlite_recorder(self, tmp_path, linear_graph):
        """Test a full run recorded in SQLite."""
        engine = Engine(config=EngineConfig(recorder_path=str(tmp_path / "flow.db")))
        engine.register("RecordingNode", engine.registry.get_node_type("TaskNode"))
        engine.load(linear_graph)

        result = await engine.execute()

        assert result.status == FlowStatus.COMPLETED
        records = await engine.get_execution_record(result.execution_id)
        assert [record.node_id for record in records] == ["S", "A", "B"]
        assert records[1].node_type == "RecordingNode"

    @pytest.mark.asyncio
    async def test_eviction_through_engine(self, linear_graph):
        """Test that only the newest executions keep their history."""
        engine = Engine(config=EngineConfig(max_executions=1))
        engine.register("RecordingNode", engine.registry.get_node_type("TaskNode"))
        engine.load(linear_graph)

        first = await engine.execute()
        second = await engine.execute()

        assert await engine.get_execution_record(first.execution_id) == []
        assert len(await engine.get_execution_record(second.execution_id)) == 3

    def test_repr(self, engine):
        assert "Engine(" in repr(engine)
