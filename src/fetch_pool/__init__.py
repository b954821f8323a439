"""
Массовая загрузка списка идентификаторов через пул воркеров
с ограниченной конкурентностью и экспортом счетчиков в Prometheus.

Основные компоненты:
- WorkerPool: пул воркеров с обратным давлением и счетчиками
- TaskChannel: ограниченная FIFO-очередь задач
- GracefulShutdown: механизм корректного завершения работы
- WorkloadFeeder: отправка задач загрузки в пул
"""

from .core.worker_pool import WorkerPool, WorkerPoolConfig
from .core.task_channel import TaskChannel, ChannelConfig
from .core.graceful_shutdown import GracefulShutdown, ShutdownConfig
from .core.task_executor import ExecutionConfig
from .core.worker_manager import WorkerManagerConfig
from .models.task import Task, TaskResult, TaskStatus
from .models.worker import Worker, WorkerStatus
from .models.pool_metrics import PoolCounters, PoolStatus
from .feeder import WorkloadFeeder, FeederConfig, FetchTask
from .utils.config import Config, load_config
from .utils.logger import get_logger, setup_logging
from .exceptions import (
    FetchPoolError,
    ConfigurationError,
    ShutdownError,
    TaskExecutionError,
    TaskTimeoutError,
    TaskChannelError,
    FeederError
)

__version__ = "1.0.0"

__all__ = [
    "WorkerPool",
    "WorkerPoolConfig",
    "TaskChannel",
    "ChannelConfig",
    "GracefulShutdown",
    "ShutdownConfig",
    "ExecutionConfig",
    "WorkerManagerConfig",
    "Task",
    "TaskResult",
    "TaskStatus",
    "Worker",
    "WorkerStatus",
    "PoolCounters",
    "PoolStatus",
    "WorkloadFeeder",
    "FeederConfig",
    "FetchTask",
    "Config",
    "load_config",
    "get_logger",
    "setup_logging",
    "FetchPoolError",
    "ConfigurationError",
    "ShutdownError",
    "TaskExecutionError",
    "TaskTimeoutError",
    "TaskChannelError",
    "FeederError"
]
