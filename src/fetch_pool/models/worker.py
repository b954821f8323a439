"""
Модели воркеров для пула.
"""

import uuid
from enum import Enum
from typing import Optional
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock


class WorkerStatus(Enum):
    """Статусы воркеров."""
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class WorkerMetrics:
    """Метрики воркера."""

    tasks_succeeded: int = 0
    tasks_failed: int = 0
    total_execution_time: float = 0.0
    last_task_at: Optional[datetime] = None

    @property
    def tasks_completed(self) -> int:
        return self.tasks_succeeded + self.tasks_failed

    def record(self, execution_time: float, success: bool):
        """Учет завершенной задачи."""
        if success:
            self.tasks_succeeded += 1
        else:
            self.tasks_failed += 1
        self.total_execution_time += execution_time
        self.last_task_at = datetime.now()


@dataclass
class Worker:
    """Представление воркера."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    status: WorkerStatus = WorkerStatus.IDLE
    started_at: Optional[datetime] = None
    stopped_at: Optional[datetime] = None
    metrics: WorkerMetrics = field(default_factory=WorkerMetrics)
    _lock: Lock = field(default_factory=Lock, repr=False)

    def start(self):
        """Запуск воркера."""
        with self._lock:
            self.status = WorkerStatus.IDLE
            self.started_at = datetime.now()

    def stop(self):
        """Остановка воркера."""
        with self._lock:
            self.status = WorkerStatus.STOPPED
            self.stopped_at = datetime.now()

    def set_busy(self):
        with self._lock:
            if self.status == WorkerStatus.IDLE:
                self.status = WorkerStatus.BUSY

    def set_idle(self):
        with self._lock:
            if self.status == WorkerStatus.BUSY:
                self.status = WorkerStatus.IDLE

    def update_metrics(self, execution_time: float, success: bool = True):
        """Обновление метрик."""
        with self._lock:
            self.metrics.record(execution_time, success)
