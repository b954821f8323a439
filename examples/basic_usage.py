"""
Базовый пример использования пула: ограниченная конкурентность,
обратное давление и счетчики задач.
"""

import random
import threading
import time

from fetch_pool import WorkerPool, setup_logging


def simple_task(x: int):
    """Простая задача для демонстрации."""
    time.sleep(random.uniform(0.1, 0.3))  # Имитация работы
    print(f"   задача {x} выполнена в потоке {threading.current_thread().name}")


def failing_task(x: int):
    """Задача, которая может завершиться с ошибкой."""
    if random.random() < 0.3:  # 30% вероятность ошибки
        raise ValueError(f"Ошибка в задаче {x}")
    time.sleep(random.uniform(0.05, 0.2))


def print_counters(pool: WorkerPool):
    print(f"   running={pool.running_workers()} idle={pool.idle_workers()} "
          f"waiting={pool.waiting_tasks()} submitted={pool.submitted_tasks()} "
          f"succeeded={pool.successful_tasks()} failed={pool.failed_tasks()} "
          f"completed={pool.completed_tasks()}")


def main():
    """Основная функция с примерами использования."""
    setup_logging(level="WARNING")
    print("=== Базовый пример использования пула воркеров ===\n")

    with WorkerPool(max_workers=3, max_queue_size=2) as pool:

        # Пример 1: submit блокируется, пока очередь заполнена
        print("1. Отправка 10 задач в пул 3 воркера / 2 места в очереди:")
        start = time.monotonic()
        for i in range(10):
            pool.submit(simple_task, i, name=f"simple_task_{i}")
        print(f"   отправка заняла {time.monotonic() - start:.2f}s")
        print_counters(pool)

        pool.wait_for_completion(timeout=10.0)
        print_counters(pool)

        # Пример 2: ошибки задач видны только в счетчиках
        print("\n2. Задачи с ошибками:")
        for i in range(10):
            pool.submit(failing_task, i, name=f"failing_task_{i}")

        if pool.wait_for_completion(timeout=10.0):
            print("   Все задачи завершены")
        print_counters(pool)

        # Метрики компонентов
        print("\n=== Метрики пула ===")
        metrics = pool.get_metrics()
        channel_metrics = metrics['channel_metrics']
        print(f"Блокировок отправителя: {channel_metrics['blocked_submits']}")
        print(f"Максимальное ожидание места: {channel_metrics['max_block_time']:.3f}s")
        print(f"Среднее время выполнения: {metrics['execution_metrics']['average_execution_time']:.3f}s")

    print("\nПул воркеров остановлен")


if __name__ == "__main__":
    main()
