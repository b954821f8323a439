"""
Основной класс пула воркеров с ограниченной конкурентностью.
"""

import threading
from dataclasses import dataclass, field, replace
from typing import Callable, Any, Optional, Dict

from .task_channel import TaskChannel, ChannelConfig
from .graceful_shutdown import GracefulShutdown, ShutdownConfig, ShutdownStatus
from .task_executor import TaskExecutor, ExecutionConfig
from .worker_manager import WorkerManager, WorkerManagerConfig

from ..models.task import Task
from ..models.pool_metrics import PoolCounters, PoolStatus

from ..utils.logger import get_logger
from ..exceptions import ConfigurationError, ShutdownError, TaskChannelError


logger = get_logger(__name__)


@dataclass
class WorkerPoolConfig:
    """Конфигурация компонентов пула.

    Границы пула (max_workers, max_queue_size) задаются в конструкторе
    WorkerPool и имеют приоритет над одноименными полями компонентов.
    """

    channel_config: ChannelConfig = field(default_factory=ChannelConfig)
    shutdown_config: ShutdownConfig = field(default_factory=ShutdownConfig)
    execution_config: ExecutionConfig = field(default_factory=ExecutionConfig)
    worker_config: WorkerManagerConfig = field(default_factory=WorkerManagerConfig)


def _validate_bound(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise ConfigurationError(f"{name} must be >= 1, got {value}")
    return value


class WorkerPool:
    """Пул воркеров: не более max_workers задач выполняются одновременно,
    не более max_queue_size ожидают в очереди, остальные отправители
    блокируются в submit.

    Пул принимает задачи сразу после создания и живет до вызова stop().
    """

    def __init__(self, max_workers: int, max_queue_size: int, config: Optional[WorkerPoolConfig] = None):
        self.max_workers = _validate_bound("max_workers", max_workers)
        self.max_queue_size = _validate_bound("max_queue_size", max_queue_size)
        self.config = config or WorkerPoolConfig()

        worker_config = replace(self.config.worker_config, max_workers=max_workers)
        if not 0 <= worker_config.min_workers <= max_workers:
            raise ConfigurationError(
                f"min_workers must be between 0 and max_workers ({max_workers}), got {worker_config.min_workers}"
            )
        if worker_config.idle_timeout is not None and worker_config.idle_timeout <= 0:
            raise ConfigurationError("idle_timeout must be > 0 or None")
        channel_config = replace(self.config.channel_config, max_size=max_queue_size)

        self._lock = threading.Lock()
        self._status = PoolStatus.RUNNING

        # Инициализация компонентов
        self._counters = PoolCounters()
        self._task_channel = TaskChannel(channel_config)
        self._graceful_shutdown = GracefulShutdown(self.config.shutdown_config)
        try:
            self._task_executor = TaskExecutor(self.config.execution_config)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        self._worker_manager = WorkerManager(worker_config, self._counters)

        self._setup_callbacks()
        self._worker_manager.start()

        logger.info(f"WorkerPool started: max_workers={max_workers}, max_queue_size={max_queue_size}")

    def _setup_callbacks(self):
        """Настройка callback'ов между компонентами."""
        self._worker_manager.set_task_executor(self._task_executor.execute_task)
        self._worker_manager.set_get_task_callback(self._task_channel.get_task)

    def submit(self, func: Callable, *args, name: str = "", **kwargs) -> None:
        """
        Отправка задачи в пул.

        Блокирует вызывающий поток, пока очередь заполнена. Ошибки самой
        задачи сюда не попадают: они видны только в счетчике неудачных задач.

        Args:
            func: Функция для выполнения
            *args: Аргументы функции
            name: Имя задачи для логов
            **kwargs: Именованные аргументы функции

        Raises:
            ShutdownError: пул остановлен или останавливается
            ValueError: func не является вызываемым объектом
        """
        if self._graceful_shutdown.is_shutdown_initiated():
            raise ShutdownError("Pool is shutting down")

        task = Task(name=name, func=func, args=args, kwargs=kwargs)

        self._worker_manager.admit_task()
        try:
            self._task_channel.submit_task(task)
        except TaskChannelError as e:
            self._counters.task_dropped()
            logger.warning(f"Task {task.id} ({task.name}) dropped: {e}")
            raise ShutdownError("Pool stopped before the task could be queued") from e

        logger.debug(f"Task {task.id} ({task.name}) submitted to pool")

    # Счетчики

    def running_workers(self) -> int:
        """Количество воркеров, выполняющих задачу."""
        return self._counters.running_workers

    def idle_workers(self) -> int:
        """Количество запущенных воркеров без задачи."""
        return self._counters.idle_workers

    def submitted_tasks(self) -> int:
        return self._counters.submitted_tasks

    def waiting_tasks(self) -> int:
        """Количество принятых, но еще не запущенных задач."""
        return self._counters.waiting_tasks

    def successful_tasks(self) -> int:
        return self._counters.successful_tasks

    def failed_tasks(self) -> int:
        return self._counters.failed_tasks

    def completed_tasks(self) -> int:
        return self._counters.completed_tasks

    def get_metrics(self) -> Dict[str, Any]:
        """Получение метрик пула."""
        metrics = self._counters.to_dict()
        metrics.update({
            'max_workers': self.max_workers,
            'max_queue_size': self.max_queue_size,
            'status': self._status.value,
            'channel_metrics': self._task_channel.get_metrics(),
            'execution_metrics': self._task_executor.get_metrics(),
            'worker_metrics': self._worker_manager.get_worker_stats()
        })
        return metrics

    # Жизненный цикл

    def wait_for_completion(self, timeout: Optional[float] = None) -> bool:
        """
        Ожидание завершения всех отправленных задач.

        Args:
            timeout: Таймаут ожидания (None - без ограничения)

        Returns:
            True если все задачи завершены, False если таймаут
        """
        return self._counters.wait_drained(timeout)

    def wait_for_shutdown_request(self, timeout: Optional[float] = None) -> bool:
        """Ожидание запроса на остановку (сигнал или вызов stop())."""
        return self._graceful_shutdown.wait_for_request(timeout)

    def stop(self, timeout: Optional[float] = None) -> ShutdownStatus:
        """
        Остановка пула с graceful shutdown.

        Новые задачи отклоняются, поставленные в очередь выполняются
        (не дольше timeout), затем воркеры завершаются. Задачи, не успевшие
        запуститься, учитываются как неудачные.

        Args:
            timeout: Таймаут ожидания задач, по умолчанию из ShutdownConfig
        """
        with self._lock:
            if self._status != PoolStatus.RUNNING:
                return self._graceful_shutdown.get_status()
            self._status = PoolStatus.STOPPING

        logger.info("Stopping WorkerPool...")
        self._graceful_shutdown.initiate_shutdown()

        def wait_for_tasks(default_timeout: Optional[float]) -> bool:
            return self.wait_for_completion(timeout if timeout is not None else default_timeout)

        status = self._graceful_shutdown.execute_shutdown(
            stop_new_tasks_callback=self._worker_manager.stop_accepting,
            wait_for_tasks_callback=wait_for_tasks,
            terminate_workers_callback=self._terminate_workers
        )

        with self._lock:
            self._status = PoolStatus.STOPPED

        logger.info(f"WorkerPool stopped: {self._counters.to_dict()}")
        return status

    def _terminate_workers(self) -> bool:
        """Закрытие канала, сброс невыполненных задач и остановка воркеров."""
        self._task_channel.close()
        for task in self._task_channel.drain():
            self._counters.task_dropped()
            logger.warning(f"Task {task.id} ({task.name}) dropped at shutdown")
        return self._worker_manager.stop()

    def add_cleanup_callback(self, callback: Callable[[], None]):
        """Callback, вызываемый в конце остановки пула."""
        self._graceful_shutdown.add_cleanup_callback(callback)

    def get_status(self) -> PoolStatus:
        """Получение статуса пула."""
        return self._status

    def is_running(self) -> bool:
        return self._status == PoolStatus.RUNNING

    def is_shutting_down(self) -> bool:
        return self._graceful_shutdown.is_shutdown_initiated()

    def get_worker_count(self) -> int:
        """Количество запущенных воркеров (занятых и свободных)."""
        return len(self._worker_manager)

    def get_queue_size(self) -> int:
        """Количество задач в канале."""
        return len(self._task_channel)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

    def __repr__(self) -> str:
        return (f"WorkerPool(status={self._status.value}, "
                f"workers={self.get_worker_count()}/{self.max_workers}, "
                f"queue_size={self.get_queue_size()}/{self.max_queue_size})")
