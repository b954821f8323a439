"""
Основные компоненты пула воркеров.
"""

from .worker_pool import WorkerPool, WorkerPoolConfig
from .task_channel import TaskChannel, ChannelConfig
from .graceful_shutdown import GracefulShutdown, ShutdownConfig
from .task_executor import TaskExecutor, ExecutionConfig
from .worker_manager import WorkerManager, WorkerManagerConfig

__all__ = [
    "WorkerPool",
    "WorkerPoolConfig",
    "TaskChannel",
    "ChannelConfig",
    "GracefulShutdown",
    "ShutdownConfig",
    "TaskExecutor",
    "ExecutionConfig",
    "WorkerManager",
    "WorkerManagerConfig"
]
