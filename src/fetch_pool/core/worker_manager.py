"""
Менеджер воркеров для пула.
"""

import threading
import time
from typing import List, Optional, Dict, Callable, Any
from dataclasses import dataclass

from ..models.worker import Worker, WorkerStatus
from ..models.task import Task, TaskResult
from ..models.pool_metrics import PoolCounters
from ..utils.logger import get_logger
from ..exceptions import ShutdownError


logger = get_logger(__name__)


@dataclass
class WorkerManagerConfig:
    """Конфигурация менеджера воркеров."""
    min_workers: int = 0
    max_workers: int = 10
    idle_timeout: Optional[float] = 5.0  # Время простоя перед завершением воркера, None - не завершать
    poll_interval: float = 0.1  # Период опроса канала
    join_timeout: float = 5.0  # Ожидание завершения потока при остановке
    thread_name_prefix: str = "fetch-pool-worker"


class WorkerManager:
    """Менеджер воркеров с запуском по требованию и завершением по простою.

    Воркеры создаются при поступлении задач, пока задач в ожидании больше,
    чем свободных воркеров, и общее число не достигло max_workers.
    """

    def __init__(self, config: Optional[WorkerManagerConfig] = None, counters: Optional[PoolCounters] = None):
        self.config = config or WorkerManagerConfig()
        self._counters = counters or PoolCounters()
        self._workers: Dict[str, Worker] = {}
        self._worker_threads: Dict[str, threading.Thread] = {}
        self._lock = threading.Lock()
        self._shutdown_event = threading.Event()
        self._accepting = True
        self._sequence = 0

        # Callback'и для взаимодействия с пулом
        self._task_executor: Optional[Callable[[Task, Worker], TaskResult]] = None
        self._get_task_callback: Optional[Callable[..., Optional[Task]]] = None

        logger.info(f"WorkerManager initialized with config: {self.config}")

    def set_task_executor(self, executor: Callable[[Task, Worker], TaskResult]):
        """Установка исполнителя задач."""
        self._task_executor = executor

    def set_get_task_callback(self, callback: Callable[..., Optional[Task]]):
        """Установка callback'а для получения задач."""
        self._get_task_callback = callback

    def start(self):
        """Запуск минимального количества воркеров."""
        with self._lock:
            for _ in range(self.config.min_workers):
                self._create_worker()

        logger.info(f"WorkerManager started with {len(self._workers)} workers")

    def admit_task(self):
        """
        Учет принятой задачи и запуск воркера, если свободных не хватает.

        Raises:
            ShutdownError: прием задач остановлен
        """
        with self._lock:
            if not self._accepting:
                raise ShutdownError("Pool is not accepting tasks")

            self._counters.task_submitted()
            self._ensure_capacity()

    def stop_accepting(self):
        """Остановка приема новых задач."""
        with self._lock:
            self._accepting = False
        logger.info("Stopped accepting new tasks")

    def stop(self) -> bool:
        """
        Остановка всех воркеров.

        Returns:
            True если все потоки воркеров завершились
        """
        logger.info("Stopping WorkerManager...")
        self._shutdown_event.set()

        with self._lock:
            threads = list(self._worker_threads.values())

        deadline = time.monotonic() + self.config.join_timeout
        for thread in threads:
            thread.join(timeout=max(0.0, deadline - time.monotonic()))

        alive = [t.name for t in threads if t.is_alive()]
        if alive:
            logger.warning(f"Workers still running after stop: {alive}")
            return False

        logger.info("WorkerManager stopped")
        return True

    def _ensure_capacity(self):
        """Запуск воркера при нехватке свободных (вызывается под блокировкой)."""
        if len(self._workers) >= self.config.max_workers:
            return
        if (len(self._workers) < self.config.min_workers
                or self._counters.waiting_tasks > self._counters.idle_workers):
            self._create_worker()

    def _create_worker(self) -> Worker:
        """Создание нового воркера (вызывается под блокировкой)."""
        self._sequence += 1
        worker = Worker(name=f"worker-{self._sequence}")
        worker.start()
        self._workers[worker.id] = worker
        self._counters.worker_started()

        thread = threading.Thread(
            target=self._worker_loop,
            args=(worker,),
            name=f"{self.config.thread_name_prefix}-{self._sequence}",
            daemon=True
        )
        self._worker_threads[worker.id] = thread
        thread.start()

        logger.debug(f"Created {worker.name} ({len(self._workers)}/{self.config.max_workers})")
        return worker

    def _remove_worker(self, worker: Worker):
        """Удаление свободного воркера из учета (вызывается под блокировкой)."""
        self._workers.pop(worker.id, None)
        self._worker_threads.pop(worker.id, None)
        self._counters.worker_retired()

    def _worker_loop(self, worker: Worker):
        """Основной цикл воркера."""
        logger.debug(f"{worker.name} started")
        idle_since = time.monotonic()

        try:
            while True:
                task = self._get_task_callback(timeout=self.config.poll_interval)
                if task is None:
                    if self._try_retire(worker, idle_since):
                        break
                    continue

                self._counters.task_started()
                self._run_task(task, worker)
                idle_since = time.monotonic()

        finally:
            with self._lock:
                if worker.id in self._workers:
                    # Аварийный выход из цикла: воркер еще числится свободным
                    logger.error(f"{worker.name} exited unexpectedly")
                    self._remove_worker(worker)
                    if not self._shutdown_event.is_set():
                        self._ensure_capacity()
            worker.stop()
            logger.debug(f"{worker.name} stopped")

    def _run_task(self, task: Task, worker: Worker):
        """Выполнение задачи с обязательным учетом результата."""
        success = False
        try:
            result = self._task_executor(task, worker)
            success = result.is_success()
        except BaseException as e:
            logger.exception(f"Unexpected error running task {task.id} on {worker.name}: {e!r}")
        finally:
            self._counters.task_finished(success)

    def _try_retire(self, worker: Worker, idle_since: float) -> bool:
        """Проверка необходимости завершения простаивающего воркера."""
        with self._lock:
            if self._counters.waiting_tasks > 0:
                return False

            if self._shutdown_event.is_set():
                self._remove_worker(worker)
                return True

            if self.config.idle_timeout is None:
                return False

            idle_time = time.monotonic() - idle_since
            if idle_time >= self.config.idle_timeout and len(self._workers) > self.config.min_workers:
                logger.debug(f"Retiring {worker.name} after {idle_time:.1f}s idle")
                self._remove_worker(worker)
                return True

            return False

    def get_workers(self) -> List[Worker]:
        """Получение списка воркеров."""
        with self._lock:
            return list(self._workers.values())

    def get_worker_stats(self) -> Dict[str, Any]:
        """Получение статистики воркеров."""
        with self._lock:
            workers = list(self._workers.values())

        total_workers = len(workers)
        busy_workers = sum(1 for w in workers if w.status == WorkerStatus.BUSY)

        return {
            'total_workers': total_workers,
            'busy_workers': busy_workers,
            'idle_workers': total_workers - busy_workers,
            'tasks_completed_by_live_workers': sum(w.metrics.tasks_completed for w in workers),
            'worker_utilization': (busy_workers / total_workers * 100) if total_workers > 0 else 0
        }

    def __len__(self) -> int:
        return len(self._workers)

    def __repr__(self) -> str:
        stats = self.get_worker_stats()
        return f"WorkerManager(workers={stats['total_workers']}, busy={stats['busy_workers']})"
