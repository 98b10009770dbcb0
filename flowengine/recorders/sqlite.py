"""SQLite recorder for durable task history.

Records survive process restarts, which makes it possible to resume an
interrupted execution from a different process and still read its full
history.

The database schema:
- flow_executions: seq (insertion order), execution_id
- flow_tasks: seq (insertion order), task_id, execution_id, record (JSON)
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import aiosqlite

from flowengine.recorders.base import TaskRecord
from flowengine.utils.config import DEFAULT_MAX_EXECUTIONS

logger = logging.getLogger(__name__)


class SQLiteRecorder:
    """SQLite-based task history.

    Same retention rule as MemoryRecorder: once more than ``max_executions``
    executions are stored, the oldest are deleted with their tasks.
    """

    def __init__(
        self,
        db_path: str = "flowengine_records.db",
        max_executions: int = DEFAULT_MAX_EXECUTIONS,
    ):
        """Initialize SQLite recorder.

        Args:
            db_path: Path to SQLite database file
            max_executions: Executions to keep before evicting the oldest
        """
        if max_executions < 1:
            raise ValueError("max_executions must be at least 1")
        self.db_path = db_path
        self.max_executions = max_executions
        self._initialized = False
        self._write_lock = asyncio.Lock()

    async def _ensure_initialized(self):
        """Ensure database and tables exist."""
        if self._initialized:
            return

        db_dir = Path(self.db_path).parent
        if db_dir and not db_dir.exists():
            db_dir.mkdir(parents=True, exist_ok=True)

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS flow_executions (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    execution_id TEXT NOT NULL UNIQUE,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS flow_tasks (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    task_id TEXT NOT NULL UNIQUE,
                    execution_id TEXT NOT NULL,
                    record TEXT NOT NULL
                )
                """
            )
            await db.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_flow_tasks_execution
                ON flow_tasks(execution_id)
                """
            )
            await db.commit()

        self._initialized = True

    async def add_task(self, record: TaskRecord) -> None:
        """Store a task record, evicting old executions if needed."""
        await self._ensure_initialized()
        record_json = json.dumps(record.to_dict(), default=str)

        async with self._write_lock:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute(
                    "INSERT OR IGNORE INTO flow_executions (execution_id) VALUES (?)",
                    (record.execution_id,),
                )
                if cursor.rowcount:
                    await self._evict(db)

                await db.execute(
                    """
                    INSERT INTO flow_tasks (task_id, execution_id, record)
                    VALUES (?, ?, ?)
                    ON CONFLICT(task_id)
                    DO UPDATE SET record = excluded.record
                    """,
                    (record.task_id, record.execution_id, record_json),
                )
                await db.commit()

    async def _evict(self, db: aiosqlite.Connection) -> None:
        async with db.execute(
            "SELECT execution_id FROM flow_executions ORDER BY seq DESC LIMIT -1 OFFSET ?",
            (self.max_executions,),
        ) as cursor:
            stale = [row[0] for row in await cursor.fetchall()]

        for execution_id in stale:
            await db.execute("DELETE FROM flow_tasks WHERE execution_id = ?", (execution_id,))
            await db.execute("DELETE FROM flow_executions WHERE execution_id = ?", (execution_id,))
            logger.debug("Evicted execution %s", execution_id)

    async def get_task(self, task_id: str) -> Optional[TaskRecord]:
        await self._ensure_initialized()

        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT record FROM flow_tasks WHERE task_id = ?",
                (task_id,),
            ) as cursor:
                row = await cursor.fetchone()
                if row:
                    return TaskRecord.from_dict(json.loads(row[0]))
                return None

    async def get_execution_tasks(self, execution_id: str) -> List[str]:
        await self._ensure_initialized()

        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT task_id FROM flow_tasks WHERE execution_id = ? ORDER BY seq",
                (execution_id,),
            ) as cursor:
                rows = await cursor.fetchall()
                return [row[0] for row in rows]

    async def list_executions(self) -> List[str]:
        """List stored execution ids, oldest first."""
        await self._ensure_initialized()

        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute("SELECT execution_id FROM flow_executions ORDER BY seq") as cursor:
                rows = await cursor.fetchall()
                return [row[0] for row in rows]

    async def clear(self) -> None:
        await self._ensure_initialized()

        async with self._write_lock:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute("DELETE FROM flow_tasks")
                await db.execute("DELETE FROM flow_executions")
                await db.commit()

    def __repr__(self) -> str:
        return f"SQLiteRecorder(db_path='{self.db_path}')"
