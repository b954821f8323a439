"""
Командная строка: запуск загрузки списка через пул воркеров.
"""

from dataclasses import replace
from pathlib import Path

import click

from .core.worker_pool import WorkerPool
from .feeder.feeder import WorkloadFeeder
from .utils.config import Config, load_config, save_config
from .utils.logger import setup_logging, get_logger
from .utils.monitoring import PerformanceMonitor, start_metrics_server
from .exceptions import FetchPoolError, FeederError


logger = get_logger(__name__)


@click.group()
@click.version_option(package_name="fetch-pool")
def main():
    """Массовая загрузка идентификаторов через пул воркеров."""


@main.command()
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              default="config.yaml", show_default=True, help="Файл конфигурации (YAML или JSON)")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              default=None, help="Переопределяет log_level из конфигурации")
@click.option("--port", type=int, default=None, help="Порт сервера метрик")
@click.option("--exit-when-done", is_flag=True, help="Завершиться после выполнения всех задач")
def run(config_path, log_level, port, exit_when_done):
    """Загрузка всех идентификаторов и экспорт метрик пула."""
    try:
        config = load_config(config_path)
    except FetchPoolError as e:
        raise click.ClickException(str(e))

    if port is not None:
        config.metrics = replace(config.metrics, port=port)
    config.shutdown = replace(config.shutdown, signal_handling=True)

    setup_logging(level=log_level or config.log_level, log_file=config.log_file)

    pool = WorkerPool(config.max_workers, config.queue_size, config.to_pool_config())
    monitor = None
    try:
        feeder = WorkloadFeeder(pool, config.feeder)
        feeder.load()

        if config.metrics.enabled:
            start_metrics_server(pool, config.metrics)

        if config.metrics.report_interval > 0:
            monitor = PerformanceMonitor(pool, config.metrics.report_interval)
            monitor.start()

        feeder.start()
        _serve(pool, feeder, exit_when_done)
        feeder.stop()

        if feeder.error is not None:
            raise FeederError(f"Feeder failed: {feeder.error}") from feeder.error

    except (FetchPoolError, OSError) as e:
        logger.error(f"Run failed: {e}")
        pool.stop(timeout=0)
        raise click.ClickException(str(e))

    finally:
        if monitor:
            monitor.stop()

    pool.stop()
    metrics = pool.get_metrics()
    click.echo(
        f"submitted={metrics['submitted_tasks']} succeeded={metrics['successful_tasks']} "
        f"failed={metrics['failed_tasks']} completed={metrics['completed_tasks']}"
    )


def _serve(pool: WorkerPool, feeder: WorkloadFeeder, exit_when_done: bool):
    """Ожидание сигнала остановки (или окончания работы при exit_when_done)."""
    while not pool.wait_for_shutdown_request(timeout=1.0):
        if feeder.error is not None:
            return
        if exit_when_done and not feeder.is_alive() and pool.wait_for_completion(timeout=0):
            logger.info("All tasks completed")
            return


@main.command("init-config")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path), default="config.yaml")
@click.option("--force", is_flag=True, help="Перезаписать существующий файл")
def init_config(path, force):
    """Запись конфигурации по умолчанию."""
    if path.exists() and not force:
        raise click.ClickException(f"{path} already exists, use --force to overwrite")

    fmt = "json" if path.suffix.lower() == ".json" else "yaml"
    save_config(Config(), path, format=fmt)
    click.echo(f"Wrote default configuration to {path}")


if __name__ == "__main__":
    main()
