"""
Модели данных для пула загрузки.
"""

from .task import Task, TaskResult, TaskStatus
from .worker import Worker, WorkerStatus, WorkerMetrics
from .pool_metrics import PoolCounters, PoolStatus

__all__ = [
    "Task",
    "TaskResult",
    "TaskStatus",
    "Worker",
    "WorkerStatus",
    "WorkerMetrics",
    "PoolCounters",
    "PoolStatus"
]
