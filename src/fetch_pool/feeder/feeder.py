"""
Фидер нагрузки: отправляет в пул по одной задаче на идентификатор.
"""

import random
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

from .fetcher import FetchTask, build_url
from .loader import load_identifiers, shuffle_and_batch
from ..core.worker_pool import WorkerPool
from ..utils.logger import get_logger
from ..exceptions import ShutdownError


logger = get_logger(__name__)


@dataclass
class FeederConfig:
    """Конфигурация фидера."""
    file_path: str = "ids.txt"
    base_url: str = "http://localhost:8000/items/%s"  # Шаблон с одним %s
    batch_size: int = 100
    request_timeout: float = 10.0
    raise_on_error: bool = False  # Ошибки запроса учитываются пулом как неудачные задачи
    shuffle: bool = True
    seed: Optional[int] = None
    log_requests: bool = True  # Логировать каждый URL на уровне INFO


class WorkloadFeeder:
    """Фидер: перемешивает идентификаторы, режет на пачки и отправляет
    задачи в пул. Пропускную способность ограничивает пул через
    блокирующий submit.
    """

    def __init__(
        self,
        pool: WorkerPool,
        config: Optional[FeederConfig] = None,
        identifiers: Optional[List[str]] = None,
        task_factory: Optional[Callable[[str], Callable[[], None]]] = None
    ):
        self.pool = pool
        self.config = config or FeederConfig()
        self._identifiers = identifiers
        self._task_factory = task_factory or self._make_fetch_task
        self._rng = random.Random(self.config.seed)

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._submitted = 0
        self.error: Optional[BaseException] = None

    def _make_fetch_task(self, url: str) -> Callable[[], None]:
        return FetchTask(url, timeout=self.config.request_timeout, raise_on_error=self.config.raise_on_error)

    def load(self) -> List[str]:
        """Загрузка идентификаторов (один раз)."""
        if self._identifiers is None:
            self._identifiers = load_identifiers(self.config.file_path)
        return self._identifiers

    def run(self) -> int:
        """
        Отправка всех задач в текущем потоке.

        Returns:
            Количество отправленных задач
        """
        identifiers = self.load()

        if self.config.shuffle:
            batches = shuffle_and_batch(identifiers, self.config.batch_size, self._rng)
        else:
            batches = (identifiers[i:i + self.config.batch_size]
                       for i in range(0, len(identifiers), self.config.batch_size))

        for batch_number, batch in enumerate(batches, start=1):
            logger.debug(f"Submitting batch {batch_number} ({len(batch)} items)")
            for identifier in batch:
                if self._stop_event.is_set():
                    logger.info(f"Feeder stopped after {self._submitted} tasks")
                    return self._submitted

                url = build_url(self.config.base_url, identifier)
                if self.config.log_requests:
                    logger.info(f"fetching: {url}")

                try:
                    self.pool.submit(self._task_factory(url), name=f"fetch:{identifier}")
                except ShutdownError:
                    logger.warning(f"Pool is shutting down, feeder stopped after {self._submitted} tasks")
                    return self._submitted

                self._submitted += 1

        logger.info(f"Feeder submitted all {self._submitted} tasks")
        return self._submitted

    def _run_safely(self):
        try:
            self.run()
        except Exception as e:
            self.error = e
            logger.exception(f"Feeder failed: {e}")

    def start(self) -> threading.Thread:
        """Запуск фидера в отдельном потоке."""
        if self._thread and self._thread.is_alive():
            raise RuntimeError("Feeder already running")

        self._thread = threading.Thread(target=self._run_safely, name="workload-feeder", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self):
        """Остановка отправки между задачами."""
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Ожидание завершения потока фидера.

        Returns:
            True если фидер завершился
        """
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def is_alive(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    @property
    def submitted(self) -> int:
        """Количество отправленных в пул задач."""
        return self._submitted
