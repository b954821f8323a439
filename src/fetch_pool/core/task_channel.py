"""
Канал задач для пула воркеров.
"""

import queue
import threading
import time
from typing import Optional, List
from dataclasses import dataclass

from ..models.task import Task
from ..utils.logger import get_logger
from ..exceptions import TaskChannelError


logger = get_logger(__name__)


@dataclass
class ChannelConfig:
    """Конфигурация канала задач."""
    max_size: int = 100
    put_poll_interval: float = 0.1  # Период проверки закрытия при блокирующей отправке


class TaskChannel:
    """Ограниченная FIFO-очередь задач между отправителями и воркерами.

    Отправка блокируется, пока очередь заполнена: так реализовано
    обратное давление на отправителя.
    """

    def __init__(self, config: Optional[ChannelConfig] = None):
        self.config = config or ChannelConfig()
        if self.config.max_size < 1:
            raise ValueError("Channel max_size must be >= 1")

        self._queue = queue.Queue(maxsize=self.config.max_size)
        self._closed_event = threading.Event()
        self._metrics_lock = threading.Lock()

        self._metrics = {
            'tasks_submitted': 0,
            'tasks_retrieved': 0,
            'blocked_submits': 0,
            'total_block_time': 0.0,
            'max_block_time': 0.0,
            'max_size_reached': 0
        }

        logger.info(f"TaskChannel initialized with config: {self.config}")

    def submit_task(self, task: Task, timeout: Optional[float] = None) -> bool:
        """
        Отправка задачи в канал.

        Блокирует вызывающий поток, пока в очереди нет места.

        Args:
            task: Задача для выполнения
            timeout: Максимальное время ожидания места (None - ждать всегда)

        Returns:
            True если задача добавлена, False если истек таймаут

        Raises:
            TaskChannelError: канал закрыт
        """
        if self._closed_event.is_set():
            raise TaskChannelError("Channel is closed")

        start_time = time.monotonic()
        deadline = None if timeout is None else start_time + timeout
        blocked = False

        while True:
            try:
                self._queue.put(task, timeout=self.config.put_poll_interval)
                break
            except queue.Full:
                blocked = True
                if self._closed_event.is_set():
                    raise TaskChannelError("Channel closed while waiting for capacity")
                if deadline is not None and time.monotonic() >= deadline:
                    return False

        block_time = time.monotonic() - start_time
        with self._metrics_lock:
            self._metrics['tasks_submitted'] += 1
            self._metrics['max_size_reached'] = max(
                self._metrics['max_size_reached'],
                self._queue.qsize()
            )
            if blocked:
                self._metrics['blocked_submits'] += 1
                self._metrics['total_block_time'] += block_time
                self._metrics['max_block_time'] = max(self._metrics['max_block_time'], block_time)

        if blocked:
            logger.debug(f"Task {task.id} waited {block_time:.3f}s for channel capacity")
        return True

    def get_task(self, timeout: Optional[float] = None) -> Optional[Task]:
        """
        Получение следующей задачи в порядке поступления.

        Args:
            timeout: Таймаут для получения задачи

        Returns:
            Задача или None если таймаут
        """
        try:
            task = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

        with self._metrics_lock:
            self._metrics['tasks_retrieved'] += 1

        logger.debug(f"Task {task.id} retrieved from channel")
        return task

    def drain(self) -> List[Task]:
        """Извлечение всех задач, оставшихся в очереди."""
        tasks = []
        while True:
            try:
                tasks.append(self._queue.get_nowait())
            except queue.Empty:
                break
        if tasks:
            logger.info(f"Drained {len(tasks)} tasks from channel")
        return tasks

    def close(self):
        """Закрытие канала: новые отправки отклоняются."""
        self._closed_event.set()
        logger.info("Task channel closed")

    def is_closed(self) -> bool:
        return self._closed_event.is_set()

    def get_metrics(self) -> dict:
        """Получение метрик канала."""
        with self._metrics_lock:
            metrics = self._metrics.copy()
        metrics['current_size'] = len(self)
        return metrics

    def __len__(self) -> int:
        """Размер канала."""
        return self._queue.qsize()

    def __repr__(self) -> str:
        return f"TaskChannel(size={len(self)}, max_size={self.config.max_size})"
