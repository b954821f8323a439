"""
Исполнитель задач для пула воркеров.
"""

import time
import threading
import concurrent.futures
from typing import Optional, Dict, Any
from dataclasses import dataclass
from datetime import datetime

from ..models.task import Task, TaskResult, TaskStatus
from ..models.worker import Worker
from ..utils.logger import get_logger
from ..exceptions import TaskExecutionError, TaskTimeoutError


logger = get_logger(__name__)


@dataclass
class ExecutionConfig:
    """Конфигурация выполнения задач."""
    timeout: Optional[float] = None  # None - без ограничения
    log_execution_details: bool = False


class TaskExecutor:
    """Исполнитель задач: превращает любой сбой тела задачи в TaskResult."""

    def __init__(self, config: Optional[ExecutionConfig] = None):
        self.config = config or ExecutionConfig()
        if self.config.timeout is not None and self.config.timeout <= 0:
            raise ValueError("Execution timeout must be > 0")
        self._execution_lock = threading.Lock()

        # Метрики выполнения
        self._metrics = self._empty_metrics()

        logger.info(f"TaskExecutor initialized with config: {self.config}")

    @staticmethod
    def _empty_metrics() -> Dict[str, Any]:
        return {
            'total_executions': 0,
            'successful_executions': 0,
            'failed_executions': 0,
            'timeout_executions': 0,
            'total_execution_time': 0.0,
            'max_execution_time': 0.0
        }

    def execute_task(self, task: Task, worker: Worker) -> TaskResult:
        """
        Выполнение задачи.

        Исключения тела задачи не покидают этот метод.

        Args:
            task: Задача для выполнения
            worker: Воркер, выполняющий задачу

        Returns:
            Результат выполнения задачи
        """
        start_time = time.monotonic()

        task.status = TaskStatus.RUNNING
        task.started_at = datetime.now()
        worker.set_busy()

        error = None
        try:
            if self.config.log_execution_details:
                logger.info(f"Executing task {task.id} ({task.name}) on {worker.name}")

            if self.config.timeout:
                self._execute_with_timeout(task)
            else:
                self._execute_sync(task)

        except TaskTimeoutError as e:
            error = e
            logger.error(f"Task {task.id} ({task.name}) timed out after {self.config.timeout}s")

        except TaskExecutionError as e:
            error = e
            logger.error(f"Task {task.id} ({task.name}) failed with error: {e.__cause__!r}")

        finally:
            execution_time = time.monotonic() - start_time
            task.completed_at = datetime.now()
            task.status = TaskStatus.COMPLETED if error is None else TaskStatus.FAILED
            worker.set_idle()
            worker.update_metrics(execution_time, error is None)
            self._update_metrics(execution_time, error is None, isinstance(error, TaskTimeoutError))

        if error is None and self.config.log_execution_details:
            logger.info(f"Task {task.id} completed successfully in {execution_time:.3f}s")

        return TaskResult(
            task_id=task.id,
            status=task.status,
            error=error,
            execution_time=execution_time
        )

    def _execute_sync(self, task: Task):
        """Синхронное выполнение задачи."""
        try:
            task.run()
        except BaseException as e:
            # SystemExit и KeyboardInterrupt из тела задачи не должны завершать воркер
            raise TaskExecutionError(f"Task execution failed: {e!r}") from e

    def _execute_with_timeout(self, task: Task):
        """Выполнение задачи с таймаутом.

        Задача, превысившая таймаут, считается неудачной, но воркер
        дожидается фактического завершения ее тела: иначе число
        одновременно выполняемых задач перестало бы быть ограниченным.
        """
        timed_out = False

        with concurrent.futures.ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"task-{task.id[:8]}"
        ) as executor:
            future = executor.submit(task.run)
            done, _ = concurrent.futures.wait([future], timeout=self.config.timeout)
            if not done:
                timed_out = True
                logger.warning(f"Task {task.id} ({task.name}) exceeded {self.config.timeout}s, "
                               f"waiting for it to return")

        if timed_out:
            raise TaskTimeoutError(f"Task {task.id} timed out after {self.config.timeout}s")

        error = future.exception()
        if error is not None:
            raise TaskExecutionError(f"Task execution failed: {error!r}") from error

    def _update_metrics(self, execution_time: float, success: bool, is_timeout: bool = False):
        """Обновление метрик выполнения."""
        with self._execution_lock:
            self._metrics['total_executions'] += 1
            self._metrics['total_execution_time'] += execution_time
            self._metrics['max_execution_time'] = max(
                self._metrics['max_execution_time'],
                execution_time
            )

            if success:
                self._metrics['successful_executions'] += 1
            else:
                self._metrics['failed_executions'] += 1
                if is_timeout:
                    self._metrics['timeout_executions'] += 1

    def get_metrics(self) -> Dict[str, Any]:
        """Получение метрик выполнения."""
        with self._execution_lock:
            metrics = self._metrics.copy()

        total = metrics['total_executions']
        if total > 0:
            metrics['average_execution_time'] = metrics['total_execution_time'] / total
            metrics['failure_rate'] = (metrics['failed_executions'] / total) * 100
        else:
            metrics['average_execution_time'] = 0.0
            metrics['failure_rate'] = 0.0

        return metrics

    def reset_metrics(self):
        """Сброс метрик."""
        with self._execution_lock:
            self._metrics = self._empty_metrics()

        logger.info("TaskExecutor metrics reset")

    def __repr__(self) -> str:
        metrics = self.get_metrics()
        return f"TaskExecutor(executions={metrics['total_executions']}, failure_rate={metrics['failure_rate']:.1f}%)"
