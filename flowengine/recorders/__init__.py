"""Task history recorders."""

from flowengine.recorders.base import Recorder, TaskRecord
from flowengine.recorders.memory import MemoryRecorder
from flowengine.recorders.sqlite import SQLiteRecorder

__all__ = [
    "Recorder",
    "TaskRecord",
    "MemoryRecorder",
    "SQLiteRecorder",
]
