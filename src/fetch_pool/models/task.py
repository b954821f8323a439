"""
Модели задач для пула загрузки.
"""

import uuid
from enum import Enum
from typing import Any, Callable, Optional, Dict
from dataclasses import dataclass, field
from datetime import datetime


class TaskStatus(Enum):
    """Статусы задач."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class Task:
    """Единица работы: вызываемый объект без возвращаемого значения."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    func: Callable = None
    args: tuple = field(default_factory=tuple)
    kwargs: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    status: TaskStatus = TaskStatus.PENDING

    def __post_init__(self):
        """Валидация после инициализации."""
        if self.func is None:
            raise ValueError("Task function is required")
        if not callable(self.func):
            raise ValueError("Task function must be callable")
        if not self.name:
            self.name = getattr(self.func, "__name__", "task")

    def run(self) -> Any:
        """Вызов тела задачи."""
        return self.func(*self.args, **self.kwargs)


@dataclass
class TaskResult:
    """Результат выполнения задачи: либо успех, либо ошибка."""

    task_id: str
    status: TaskStatus
    error: Optional[Exception] = None
    execution_time: float = 0.0
    completed_at: datetime = field(default_factory=datetime.now)

    def is_success(self) -> bool:
        """Проверка успешности выполнения."""
        return self.status == TaskStatus.COMPLETED

    def is_failure(self) -> bool:
        """Проверка неудачного выполнения."""
        return self.status == TaskStatus.FAILED
