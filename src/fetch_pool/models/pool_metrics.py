"""
Счетчики пула воркеров.

Все изменения выполняются под одной блокировкой, поэтому каждая задача
в любой момент находится ровно в одном из состояний: ожидает, выполняется,
завершена. Число завершенных задач не хранится отдельно, а вычисляется
как сумма успешных и неудачных.
"""

import threading
from enum import Enum
from typing import Dict, Optional
from datetime import datetime


class PoolStatus(Enum):
    """Статусы пула."""
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class PoolCounters:
    """Потокобезопасные счетчики и датчики пула воркеров."""

    def __init__(self):
        self._lock = threading.Lock()
        self._drained = threading.Condition(self._lock)

        # Датчики
        self._running_workers = 0
        self._idle_workers = 0
        self._waiting_tasks = 0

        # Монотонные счетчики
        self._submitted_tasks = 0
        self._successful_tasks = 0
        self._failed_tasks = 0

        self.started_at = datetime.now()

    # Переходы воркеров

    def worker_started(self):
        with self._lock:
            self._idle_workers += 1

    def worker_retired(self):
        with self._lock:
            self._idle_workers -= 1

    # Переходы задач

    def task_submitted(self):
        """Задача принята: увеличивается до передачи в канал."""
        with self._lock:
            self._submitted_tasks += 1
            self._waiting_tasks += 1

    def task_started(self):
        """Воркер забрал задачу из канала."""
        with self._lock:
            self._waiting_tasks -= 1
            self._idle_workers -= 1
            self._running_workers += 1

    def task_finished(self, success: bool):
        """Воркер завершил задачу и снова свободен."""
        with self._lock:
            self._running_workers -= 1
            self._idle_workers += 1
            if success:
                self._successful_tasks += 1
            else:
                self._failed_tasks += 1
            self._drained.notify_all()

    def task_dropped(self):
        """Принятая задача так и не была запущена (остановка пула)."""
        with self._lock:
            self._waiting_tasks -= 1
            self._failed_tasks += 1
            self._drained.notify_all()

    # Чтение

    @property
    def running_workers(self) -> int:
        return self._running_workers

    @property
    def idle_workers(self) -> int:
        return self._idle_workers

    @property
    def submitted_tasks(self) -> int:
        return self._submitted_tasks

    @property
    def waiting_tasks(self) -> int:
        return self._waiting_tasks

    @property
    def successful_tasks(self) -> int:
        return self._successful_tasks

    @property
    def failed_tasks(self) -> int:
        return self._failed_tasks

    @property
    def completed_tasks(self) -> int:
        with self._lock:
            return self._successful_tasks + self._failed_tasks

    def wait_drained(self, timeout: Optional[float] = None) -> bool:
        """
        Ожидание завершения всех принятых задач.

        Args:
            timeout: Таймаут ожидания (None - без ограничения)

        Returns:
            True если все задачи завершены, False если таймаут
        """
        with self._drained:
            return self._drained.wait_for(
                lambda: self._successful_tasks + self._failed_tasks >= self._submitted_tasks,
                timeout=timeout
            )

    def get_uptime(self) -> float:
        return (datetime.now() - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, float]:
        """Согласованный снимок всех счетчиков."""
        with self._lock:
            completed = self._successful_tasks + self._failed_tasks
            return {
                'running_workers': self._running_workers,
                'idle_workers': self._idle_workers,
                'submitted_tasks': self._submitted_tasks,
                'waiting_tasks': self._waiting_tasks,
                'successful_tasks': self._successful_tasks,
                'failed_tasks': self._failed_tasks,
                'completed_tasks': completed,
                'uptime': self.get_uptime()
            }
