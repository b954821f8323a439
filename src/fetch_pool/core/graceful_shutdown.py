"""
Механизм graceful shutdown для пула воркеров.
"""

import signal
import threading
from typing import Callable, List, Optional
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ..utils.logger import get_logger
from ..exceptions import ShutdownError


logger = get_logger(__name__)


class ShutdownPhase(Enum):
    """Фазы завершения работы."""
    INITIATED = "initiated"
    STOPPING_NEW_TASKS = "stopping_new_tasks"
    WAITING_FOR_COMPLETION = "waiting_for_completion"
    TERMINATING_WORKERS = "terminating_workers"
    COMPLETED = "completed"


@dataclass
class ShutdownConfig:
    """Конфигурация graceful shutdown."""
    task_completion_timeout: Optional[float] = 30.0  # Ожидание завершения задач, None - без ограничения
    wait_for_pending_tasks: bool = True  # Ждать выполнения задач из очереди
    signal_handling: bool = False  # Обработка SIGTERM/SIGINT


@dataclass
class ShutdownStatus:
    """Статус завершения работы."""
    phase: ShutdownPhase
    start_time: datetime
    tasks_drained: bool = False
    workers_terminated: bool = False
    cleanup_callbacks_executed: int = 0
    error_count: int = 0
    completed: bool = False


class GracefulShutdown:
    """Менеджер graceful shutdown для пула воркеров."""

    def __init__(self, config: Optional[ShutdownConfig] = None):
        self.config = config or ShutdownConfig()
        self._shutdown_event = threading.Event()
        self._status: Optional[ShutdownStatus] = None
        self._lock = threading.Lock()
        self._callbacks: List[Callable] = []

        if self.config.signal_handling:
            self._register_signal_handlers()

        logger.debug(f"GracefulShutdown initialized with config: {self.config}")

    def _register_signal_handlers(self):
        """Регистрация обработчиков системных сигналов."""
        def signal_handler(signum, frame):
            logger.info(f"Received signal {signum}, initiating graceful shutdown")
            self.initiate_shutdown()

        try:
            signal.signal(signal.SIGTERM, signal_handler)
            signal.signal(signal.SIGINT, signal_handler)
        except (OSError, ValueError) as e:
            # Обработчики можно ставить только из главного потока
            logger.warning(f"Could not register signal handlers: {e}")

    def initiate_shutdown(self) -> ShutdownStatus:
        """
        Инициация graceful shutdown.

        Returns:
            Статус завершения работы
        """
        with self._lock:
            if self._status is not None:
                return self._status

            self._status = ShutdownStatus(
                phase=ShutdownPhase.INITIATED,
                start_time=datetime.now()
            )
            self._shutdown_event.set()

            logger.info("Graceful shutdown initiated")
            return self._status

    def execute_shutdown(
        self,
        stop_new_tasks_callback: Optional[Callable[[], None]] = None,
        wait_for_tasks_callback: Optional[Callable[[Optional[float]], bool]] = None,
        terminate_workers_callback: Optional[Callable[[], bool]] = None
    ) -> ShutdownStatus:
        """
        Выполнение graceful shutdown.

        Args:
            stop_new_tasks_callback: Остановка приема новых задач
            wait_for_tasks_callback: Ожидание завершения задач, принимает таймаут
            terminate_workers_callback: Завершение воркеров

        Returns:
            Финальный статус завершения работы
        """
        if not self._status:
            raise ShutdownError("Shutdown not initiated")

        # Фаза 1: Остановка приема новых задач
        self._status.phase = ShutdownPhase.STOPPING_NEW_TASKS
        logger.info("Phase 1: Stopping new task acceptance")
        self._run_phase(stop_new_tasks_callback)

        # Фаза 2: Ожидание завершения текущих задач
        if self.config.wait_for_pending_tasks and wait_for_tasks_callback:
            self._status.phase = ShutdownPhase.WAITING_FOR_COMPLETION
            logger.info("Phase 2: Waiting for task completion")

            drained = self._run_phase(wait_for_tasks_callback, self.config.task_completion_timeout)
            self._status.tasks_drained = bool(drained)
            if not drained:
                logger.warning(f"Task completion timeout ({self.config.task_completion_timeout}s) exceeded")

        # Фаза 3: Завершение воркеров
        self._status.phase = ShutdownPhase.TERMINATING_WORKERS
        logger.info("Phase 3: Terminating workers")
        self._status.workers_terminated = bool(self._run_phase(terminate_workers_callback))

        # Фаза 4: Выполнение cleanup callback'ов
        for callback in self._callbacks:
            if self._run_phase(callback) is not False:
                self._status.cleanup_callbacks_executed += 1

        self._status.phase = ShutdownPhase.COMPLETED
        self._status.completed = True

        elapsed_time = (datetime.now() - self._status.start_time).total_seconds()
        logger.info(f"Graceful shutdown completed in {elapsed_time:.2f} seconds")
        return self._status

    def _run_phase(self, callback: Optional[Callable], *args):
        """Вызов callback'а фазы с учетом ошибок."""
        if callback is None:
            return True
        try:
            return callback(*args)
        except Exception as e:
            logger.error(f"Error in shutdown callback {callback}: {e}")
            self._status.error_count += 1
            return False

    def add_cleanup_callback(self, callback: Callable):
        """Добавление cleanup callback'а."""
        self._callbacks.append(callback)
        logger.debug(f"Added cleanup callback: {callback}")

    def wait_for_request(self, timeout: Optional[float] = None) -> bool:
        """Ожидание запроса на остановку (например, по сигналу)."""
        return self._shutdown_event.wait(timeout)

    def is_shutdown_initiated(self) -> bool:
        """Проверка инициации shutdown."""
        return self._shutdown_event.is_set()

    def is_shutdown_completed(self) -> bool:
        """Проверка завершения shutdown."""
        return bool(self._status and self._status.completed)

    def get_status(self) -> Optional[ShutdownStatus]:
        """Получение текущего статуса."""
        return self._status

    def __repr__(self) -> str:
        if self._status:
            return f"GracefulShutdown(phase={self._status.phase.value})"
        return "GracefulShutdown(not_initiated)"
