"""
Общие фикстуры тестов.
"""

import sys
import time
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from fetch_pool import WorkerPool  # noqa: E402


def wait_until(predicate, timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Ожидание выполнения условия с таймаутом."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


@pytest.fixture
def make_pool():
    """Фабрика пулов, которые гарантированно останавливаются после теста."""
    pools = []

    def factory(max_workers: int, max_queue_size: int, config=None) -> WorkerPool:
        pool = WorkerPool(max_workers, max_queue_size, config)
        pools.append(pool)
        return pool

    yield factory

    for pool in pools:
        pool.stop(timeout=1.0)
