"""Tests for task history recorders."""

from datetime import datetime

import pytest

from flowengine import MemoryRecorder, Recorder, SQLiteRecorder, TaskRecord


def make_record(execution_id: str, task_id: str, node_id: str = "A", **kwargs) -> TaskRecord:
    return TaskRecord(
        execution_id=execution_id,
        task_id=task_id,
        node_id=node_id,
        node_type="TaskNode",
        **kwargs,
    )


# =============================================================================
# TaskRecord Tests
# =============================================================================


class TestTaskRecord:
    """Tests for TaskRecord serialization."""

    def test_serialization(self):
        """Test serializing and deserializing a record."""
        original = make_record(
            "exec-1",
            "task-1",
            properties={"label": "approve"},
            status="interrupted",
            detail={"reason": "approval"},
        )

        data = original.to_dict()
        restored = TaskRecord.from_dict(data)

        assert isinstance(data["timestamp"], str)
        assert restored == original

    def test_timestamp_set(self):
        """Test that timestamp defaults to now."""
        before = datetime.now()
        record = make_record("exec-1", "task-1")
        after = datetime.now()

        assert before <= record.timestamp <= after


# =============================================================================
# MemoryRecorder Tests
# =============================================================================


class TestMemoryRecorder:
    """Tests for MemoryRecorder."""

    def test_satisfies_protocol(self):
        assert isinstance(MemoryRecorder(), Recorder)

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            MemoryRecorder(max_executions=0)

    @pytest.mark.asyncio
    async def test_add_and_get(self):
        """Test appending and reading records in order."""
        recorder = MemoryRecorder()
        await recorder.add_task(make_record("exec-1", "task-1", "S"))
        await recorder.add_task(make_record("exec-1", "task-2", "A"))

        assert await recorder.get_execution_tasks("exec-1") == ["task-1", "task-2"]
        record = await recorder.get_task("task-2")
        assert record.node_id == "A"
        assert await recorder.get_task("missing") is None
        assert await recorder.get_execution_tasks("missing") == []

    @pytest.mark.asyncio
    async def test_same_task_replaced_in_place(self):
        """Test that recording a task twice keeps one slot with the latest record."""
        recorder = MemoryRecorder()
        await recorder.add_task(make_record("exec-1", "task-1", status="interrupted"))
        await recorder.add_task(make_record("exec-1", "task-2", "B"))
        await recorder.add_task(make_record("exec-1", "task-1"))

        assert await recorder.get_execution_tasks("exec-1") == ["task-1", "task-2"]
        assert (await recorder.get_task("task-1")).status is None

    @pytest.mark.asyncio
    async def test_eviction(self):
        """Test that the oldest execution is evicted with its tasks."""
        recorder = MemoryRecorder(max_executions=2)
        await recorder.add_task(make_record("exec-1", "task-1"))
        await recorder.add_task(make_record("exec-2", "task-2"))
        await recorder.add_task(make_record("exec-1", "task-3"))
        await recorder.add_task(make_record("exec-3", "task-4"))

        assert recorder.list_executions() == ["exec-2", "exec-3"]
        assert await recorder.get_execution_tasks("exec-1") == []
        assert await recorder.get_task("task-1") is None
        assert await recorder.get_task("task-3") is None
        assert await recorder.get_task("task-2") is not None

    @pytest.mark.asyncio
    async def test_clear(self):
        recorder = MemoryRecorder()
        await recorder.add_task(make_record("exec-1", "task-1"))

        await recorder.clear()

        assert recorder.list_executions() == []
        assert await recorder.get_task("task-1") is None


# =============================================================================
# SQLiteRecorder Tests
# =============================================================================


class TestSQLiteRecorder:
    """Tests for SQLiteRecorder."""

    @pytest.fixture
    def db_path(self, tmp_path):
        return str(tmp_path / "records" / "flow.db")

    def test_satisfies_protocol(self, db_path):
        assert isinstance(SQLiteRecorder(db_path), Recorder)

    @pytest.mark.asyncio
    async def test_add_and_get(self, db_path):
        """Test records round trip through the database."""
        recorder = SQLiteRecorder(db_path)
        original = make_record("exec-1", "task-1", "S", detail={"reason": "approval"})
        await recorder.add_task(original)
        await recorder.add_task(make_record("exec-1", "task-2", "A"))

        assert await recorder.get_execution_tasks("exec-1") == ["task-1", "task-2"]
        assert await recorder.get_task("task-1") == original
        assert await recorder.get_task("missing") is None

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, db_path):
        """Test that a second recorder on the same file sees the history."""
        await SQLiteRecorder(db_path).add_task(make_record("exec-1", "task-1"))

        recorder = SQLiteRecorder(db_path)

        assert await recorder.get_execution_tasks("exec-1") == ["task-1"]

    @pytest.mark.asyncio
    async def test_same_task_replaced_in_place(self, db_path):
        recorder = SQLiteRecorder(db_path)
        await recorder.add_task(make_record("exec-1", "task-1", status="interrupted"))
        await recorder.add_task(make_record("exec-1", "task-2", "B"))
        await recorder.add_task(make_record("exec-1", "task-1"))

        assert await recorder.get_execution_tasks("exec-1") == ["task-1", "task-2"]
        assert (await recorder.get_task("task-1")).status is None

    @pytest.mark.asyncio
    async def test_eviction(self, db_path):
        """Test that the oldest execution is evicted with its tasks."""
        recorder = SQLiteRecorder(db_path, max_executions=2)
        await recorder.add_task(make_record("exec-1", "task-1"))
        await recorder.add_task(make_record("exec-2", "task-2"))
        await recorder.add_task(make_record("exec-3", "task-3"))

        assert await recorder.list_executions() == ["exec-2", "exec-3"]
        assert await recorder.get_task("task-1") is None
        assert await recorder.get_execution_tasks("exec-1") == []

    @pytest.mark.asyncio
    async def test_clear(self, db_path):
        recorder = SQLiteRecorder(db_path)
        await recorder.add_task(make_record("exec-1", "task-1"))

        await recorder.clear()

        assert await recorder.list_executions() == []
        assert await recorder.get_task("task-1") is None
