"""
Тесты фидера нагрузки: чтение списка, пачки, HTTP-задача.
"""

import random
import threading

import pytest
import requests

from fetch_pool.feeder import (
    FeederConfig,
    FetchTask,
    WorkloadFeeder,
    build_url,
    load_identifiers,
    shuffle_and_batch
)
from fetch_pool.exceptions import FeederError

from conftest import wait_until


class TestLoadIdentifiers:
    """Тесты чтения списка идентификаторов."""

    def test_lines_are_stripped_and_blanks_skipped(self, tmp_path):
        path = tmp_path / "ids.txt"
        path.write_text("a1\n  b2  \n\n\tc3\n   \n", encoding="utf-8")

        assert load_identifiers(path) == ["a1", "b2", "c3"]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "ids.txt"
        path.write_text("", encoding="utf-8")

        assert load_identifiers(str(path)) == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(FeederError):
            load_identifiers(tmp_path / "missing.txt")


class TestShuffleAndBatch:
    """Тесты перемешивания и разбиения на пачки."""

    def test_batches_form_permutation(self):
        items = [str(i) for i in range(10)]

        batches = list(shuffle_and_batch(items, 3))

        assert [len(b) for b in batches] == [3, 3, 3, 1]
        assert sorted(i for b in batches for i in b) == sorted(items)

    def test_input_is_not_mutated(self):
        items = [str(i) for i in range(20)]
        original = list(items)

        list(shuffle_and_batch(items, 5, random.Random(1)))

        assert items == original

    def test_seeded_rng_is_deterministic(self):
        items = [str(i) for i in range(50)]

        first = list(shuffle_and_batch(items, 7, random.Random(42)))
        second = list(shuffle_and_batch(items, 7, random.Random(42)))

        assert first == second

    def test_empty_input(self):
        assert list(shuffle_and_batch([], 4)) == []

    def test_invalid_batch_size(self):
        with pytest.raises(ValueError):
            list(shuffle_and_batch(["a"], 0))


class TestFetchTask:
    """Тесты HTTP-задачи."""

    def test_build_url(self):
        assert build_url("https://example.com/items/%s", "42") == "https://example.com/items/42"

    def test_successful_request(self, mocker):
        response = mocker.Mock(status_code=200)
        get = mocker.patch("fetch_pool.feeder.fetcher.requests.get", return_value=response)

        FetchTask("http://host/1", timeout=3.0)()

        get.assert_called_once_with("http://host/1", timeout=3.0)
        response.raise_for_status.assert_not_called()
        response.close.assert_called_once()

    def test_transport_error_swallowed_by_default(self, mocker):
        mocker.patch(
            "fetch_pool.feeder.fetcher.requests.get",
            side_effect=requests.ConnectionError("refused")
        )

        FetchTask("http://host/1")()

    def test_transport_error_raised_when_requested(self, mocker):
        mocker.patch(
            "fetch_pool.feeder.fetcher.requests.get",
            side_effect=requests.ConnectionError("refused")
        )

        with pytest.raises(requests.ConnectionError):
            FetchTask("http://host/1", raise_on_error=True)()

    def test_http_error_raised_when_requested(self, mocker):
        response = mocker.Mock(status_code=503)
        response.raise_for_status.side_effect = requests.HTTPError("503 Server Error")
        mocker.patch("fetch_pool.feeder.fetcher.requests.get", return_value=response)

        with pytest.raises(requests.HTTPError):
            FetchTask("http://host/1", raise_on_error=True)()

        response.close.assert_called_once()


class TestWorkloadFeeder:
    """Тесты фидера."""

    def _recording_factory(self, calls, lock):
        def factory(url):
            def task():
                with lock:
                    calls.append(url)
            return task
        return factory

    def test_every_identifier_fetched_once(self, make_pool):
        pool = make_pool(3, 5)
        calls = []
        identifiers = [str(i) for i in range(25)]
        config = FeederConfig(base_url="http://host/items/%s", batch_size=4, seed=7, log_requests=False)

        feeder = WorkloadFeeder(
            pool,
            config,
            identifiers=identifiers,
            task_factory=self._recording_factory(calls, threading.Lock())
        )
        feeder.start()

        assert feeder.join(timeout=5.0)
        assert pool.wait_for_completion(timeout=5.0)
        assert feeder.error is None
        assert feeder.submitted == 25
        assert pool.submitted_tasks() == 25
        assert pool.successful_tasks() == 25
        assert sorted(calls) == sorted(f"http://host/items/{i}" for i in identifiers)

    def test_without_shuffle_order_is_kept(self, make_pool):
        pool = make_pool(1, 10)
        calls = []
        config = FeederConfig(base_url="%s", batch_size=2, shuffle=False, log_requests=False)

        feeder = WorkloadFeeder(
            pool,
            config,
            identifiers=["a", "b", "c"],
            task_factory=self._recording_factory(calls, threading.Lock())
        )

        assert feeder.run() == 3
        assert pool.wait_for_completion(timeout=5.0)
        assert calls == ["a", "b", "c"]

    def test_loads_identifiers_from_file(self, make_pool, tmp_path):
        path = tmp_path / "ids.txt"
        path.write_text("x\ny\n", encoding="utf-8")
        pool = make_pool(2, 2)
        calls = []

        feeder = WorkloadFeeder(
            pool,
            FeederConfig(file_path=str(path), base_url="%s", log_requests=False),
            task_factory=self._recording_factory(calls, threading.Lock())
        )

        assert feeder.load() == ["x", "y"]
        assert feeder.run() == 2

    def test_stops_when_pool_shuts_down(self, make_pool):
        pool = make_pool(1, 1)
        pool.stop(timeout=1.0)

        feeder = WorkloadFeeder(
            pool,
            FeederConfig(base_url="%s", log_requests=False),
            identifiers=["a", "b"],
            task_factory=lambda url: (lambda: None)
        )

        assert feeder.run() == 0

    def test_stop_interrupts_blocked_feeder(self, make_pool):
        """Фидер, заблокированный на полной очереди, завершается при остановке пула."""
        pool = make_pool(1, 1)
        release = threading.Event()

        feeder = WorkloadFeeder(
            pool,
            FeederConfig(base_url="%s", shuffle=False, log_requests=False),
            identifiers=[str(i) for i in range(10)],
            task_factory=lambda url: release.wait
        )
        feeder.start()

        assert wait_until(lambda: pool.waiting_tasks() >= 1 and pool.running_workers() == 1)
        assert feeder.is_alive()

        feeder.stop()
        release.set()
        pool.stop(timeout=1.0)

        assert feeder.join(timeout=5.0)
        assert feeder.submitted < 10
        assert pool.completed_tasks() == pool.submitted_tasks()

    def test_failed_requests_counted_when_raising(self, make_pool, mocker):
        mocker.patch(
            "fetch_pool.feeder.fetcher.requests.get",
            side_effect=requests.ConnectionError("refused")
        )
        pool = make_pool(2, 4)

        feeder = WorkloadFeeder(
            pool,
            FeederConfig(base_url="http://host/%s", raise_on_error=True, log_requests=False),
            identifiers=["1", "2", "3"]
        )

        assert feeder.run() == 3
        assert pool.wait_for_completion(timeout=5.0)
        assert pool.failed_tasks() == 3
        assert pool.successful_tasks() == 0

    def test_start_twice_rejected(self, make_pool):
        pool = make_pool(1, 1)
        release = threading.Event()

        feeder = WorkloadFeeder(
            pool,
            FeederConfig(base_url="%s", log_requests=False),
            identifiers=["a", "b", "c"],
            task_factory=lambda url: release.wait
        )
        feeder.start()

        try:
            with pytest.raises(RuntimeError):
                feeder.start()
        finally:
            feeder.stop()
            release.set()
            assert feeder.join(timeout=5.0)
