"""
Тесты экспорта метрик и мониторинга.
"""

import logging
import threading

from fetch_pool.utils.monitoring import (
    MetricsConfig,
    PerformanceMonitor,
    create_registry,
    start_metrics_server
)

from conftest import wait_until


def fail():
    raise RuntimeError("boom")


class TestPoolCollector:
    """Тесты коллектора счетчиков пула."""

    def test_initial_values(self, make_pool):
        registry = create_registry(make_pool(2, 2), system_metrics=False)

        for name in (
            'pool_workers_running',
            'pool_workers_idle',
            'pool_tasks_submitted_total',
            'pool_tasks_waiting_total',
            'pool_tasks_successful_total',
            'pool_tasks_failed_total',
            'pool_tasks_completed_total',
        ):
            assert registry.get_sample_value(name) == 0

    def test_values_follow_pool(self, make_pool):
        pool = make_pool(2, 4)
        registry = create_registry(pool, system_metrics=False)

        pool.submit(lambda: None)
        pool.submit(lambda: None)
        pool.submit(fail)
        assert pool.wait_for_completion(timeout=5.0)

        assert registry.get_sample_value('pool_tasks_submitted_total') == 3
        assert registry.get_sample_value('pool_tasks_successful_total') == 2
        assert registry.get_sample_value('pool_tasks_failed_total') == 1
        assert registry.get_sample_value('pool_tasks_completed_total') == 3
        assert registry.get_sample_value('pool_tasks_waiting_total') == 0
        assert registry.get_sample_value('pool_workers_running') == 0

    def test_running_gauge(self, make_pool):
        pool = make_pool(2, 2)
        registry = create_registry(pool, system_metrics=False)
        release = threading.Event()

        pool.submit(release.wait)
        pool.submit(release.wait)

        try:
            assert wait_until(lambda: registry.get_sample_value('pool_workers_running') == 2)
            assert registry.get_sample_value('pool_workers_idle') == 0
        finally:
            release.set()

    def test_system_metrics(self, make_pool):
        registry = create_registry(make_pool(1, 1))

        assert registry.get_sample_value('fetch_pool_process_threads') >= 1
        assert registry.get_sample_value('fetch_pool_process_resident_memory_bytes') > 0
        assert registry.get_sample_value('fetch_pool_process_cpu_percent') is not None


class TestMetricsServer:
    """Тесты запуска сервера метрик."""

    def test_server_uses_configured_address(self, make_pool, mocker):
        start = mocker.patch("fetch_pool.utils.monitoring.start_http_server")
        config = MetricsConfig(host="127.0.0.1", port=9123, system_metrics=False)

        registry = start_metrics_server(make_pool(1, 1), config)

        start.assert_called_once_with(9123, addr="127.0.0.1", registry=registry)
        assert registry.get_sample_value('pool_tasks_submitted_total') == 0


class TestPerformanceMonitor:
    """Тесты периодического отчета."""

    def test_report_returns_snapshot(self, make_pool):
        pool = make_pool(1, 3)
        pool.submit(lambda: None)
        assert pool.wait_for_completion(timeout=5.0)

        metrics = PerformanceMonitor(pool).report()

        assert metrics['submitted_tasks'] == 1
        assert metrics['successful_tasks'] == 1
        assert metrics['max_queue_size'] == 3

    def test_high_failure_rate_warning(self, make_pool, caplog):
        pool = make_pool(1, 2)
        pool.submit(fail)
        pool.submit(lambda: None)
        assert pool.wait_for_completion(timeout=5.0)

        with caplog.at_level(logging.WARNING, logger="fetch_pool.utils.monitoring"):
            PerformanceMonitor(pool).report()

        assert "High task failure rate" in caplog.text

    def test_start_and_stop(self, make_pool):
        pool = make_pool(1, 1)
        monitor = PerformanceMonitor(pool, interval=0.05)
        reports = []
        monitor.report = lambda: reports.append(1)

        monitor.start()
        try:
            assert wait_until(lambda: len(reports) >= 2)
        finally:
            monitor.stop()

        count = len(reports)
        assert not monitor._monitoring_thread.is_alive()
        assert len(reports) == count
