"""
Мониторинг пула: экспорт счетчиков в Prometheus и периодический отчет в лог.
"""

import threading
from dataclasses import dataclass
from typing import Optional

import psutil
from prometheus_client import CollectorRegistry, start_http_server
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily

from ..utils.logger import get_logger


logger = get_logger(__name__)


@dataclass
class MetricsConfig:
    """Конфигурация экспорта метрик."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 8080
    system_metrics: bool = True  # Метрики процесса через psutil
    report_interval: float = 30.0  # Период отчета в лог, 0 - отключен


class PoolCollector:
    """Prometheus-коллектор, читающий счетчики пула при каждом scrape."""

    def __init__(self, pool):
        self.pool = pool

    def collect(self):
        pool = self.pool

        # Метрики воркеров
        yield GaugeMetricFamily(
            'pool_workers_running', 'Number of workers executing a task',
            value=pool.running_workers()
        )
        yield GaugeMetricFamily(
            'pool_workers_idle', 'Number of started workers waiting for a task',
            value=pool.idle_workers()
        )

        # Метрики задач
        yield CounterMetricFamily(
            'pool_tasks_submitted_total', 'Number of tasks submitted',
            value=pool.submitted_tasks()
        )
        yield GaugeMetricFamily(
            'pool_tasks_waiting_total', 'Number of tasks waiting in the queue',
            value=pool.waiting_tasks()
        )
        yield CounterMetricFamily(
            'pool_tasks_successful_total', 'Number of tasks that completed successfully',
            value=pool.successful_tasks()
        )
        yield CounterMetricFamily(
            'pool_tasks_failed_total', 'Number of tasks that completed with an error',
            value=pool.failed_tasks()
        )
        yield CounterMetricFamily(
            'pool_tasks_completed_total', 'Number of tasks that completed either successfully or with an error',
            value=pool.completed_tasks()
        )


class SystemCollector:
    """Метрики текущего процесса через psutil."""

    def __init__(self, process: Optional[psutil.Process] = None):
        self._process = process or psutil.Process()
        # Первый вызов cpu_percent всегда возвращает 0, инициализируем базу
        self._process.cpu_percent(interval=None)

    def collect(self):
        try:
            with self._process.oneshot():
                cpu_percent = self._process.cpu_percent(interval=None)
                rss = self._process.memory_info().rss
                threads = self._process.num_threads()
        except psutil.Error as e:
            logger.error(f"Error collecting process metrics: {e}")
            return

        yield GaugeMetricFamily('fetch_pool_process_cpu_percent', 'Process CPU usage percent', value=cpu_percent)
        yield GaugeMetricFamily('fetch_pool_process_resident_memory_bytes', 'Process resident memory', value=rss)
        yield GaugeMetricFamily('fetch_pool_process_threads', 'Number of process threads', value=threads)


def create_registry(pool, system_metrics: bool = True) -> CollectorRegistry:
    """Отдельный реестр с коллекторами пула (и процесса)."""
    registry = CollectorRegistry()
    registry.register(PoolCollector(pool))
    if system_metrics:
        registry.register(SystemCollector())
    return registry


def start_metrics_server(pool, config: Optional[MetricsConfig] = None) -> CollectorRegistry:
    """
    Запуск HTTP-сервера метрик в фоновом потоке.

    Args:
        pool: Пул, счетчики которого экспортируются
        config: Конфигурация метрик

    Returns:
        Реестр с зарегистрированными коллекторами

    Raises:
        OSError: порт не удалось занять
    """
    config = config or MetricsConfig()
    registry = create_registry(pool, config.system_metrics)
    start_http_server(config.port, addr=config.host, registry=registry)
    logger.info(f"Serving metrics on http://{config.host}:{config.port}/metrics")
    return registry


class PerformanceMonitor:
    """Периодический отчет о счетчиках пула в лог."""

    def __init__(self, pool, interval: float = 30.0):
        self.pool = pool
        self.interval = interval
        self._monitoring_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

        # Пороги для предупреждений
        self.error_rate_threshold = 10.0

    def start(self):
        """Запуск мониторинга."""
        if self._monitoring_thread and self._monitoring_thread.is_alive():
            logger.warning("Performance monitoring already running")
            return

        self._stop_event.clear()
        self._monitoring_thread = threading.Thread(
            target=self._monitoring_loop,
            name="performance-monitor",
            daemon=True
        )
        self._monitoring_thread.start()
        logger.info(f"Performance monitoring started (every {self.interval}s)")

    def stop(self):
        """Остановка мониторинга."""
        if self._monitoring_thread and self._monitoring_thread.is_alive():
            self._stop_event.set()
            self._monitoring_thread.join(timeout=5.0)
            logger.info("Performance monitoring stopped")

    def _monitoring_loop(self):
        while not self._stop_event.wait(self.interval):
            try:
                self.report()
            except Exception as e:
                logger.error(f"Error in performance monitoring: {e}")

    def report(self) -> dict:
        """Запись снимка счетчиков в лог."""
        metrics = self.pool.get_metrics()
        logger.info(
            "pool: running=%(running_workers)d idle=%(idle_workers)d waiting=%(waiting_tasks)d "
            "submitted=%(submitted_tasks)d succeeded=%(successful_tasks)d "
            "failed=%(failed_tasks)d completed=%(completed_tasks)d", metrics
        )

        completed = metrics['completed_tasks']
        if completed:
            error_rate = metrics['failed_tasks'] / completed * 100
            if error_rate > self.error_rate_threshold:
                logger.warning(f"High task failure rate: {error_rate:.1f}%")

        if metrics['waiting_tasks'] > metrics['max_queue_size']:
            logger.warning(f"Submitters are blocked: {metrics['waiting_tasks']} tasks waiting "
                           f"for a queue of {metrics['max_queue_size']}")

        return metrics
