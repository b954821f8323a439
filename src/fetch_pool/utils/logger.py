"""
Система логирования для пула загрузки.
"""

import logging
import sys
from typing import Optional
from pathlib import Path


class FetchPoolFormatter(logging.Formatter):
    """Форматтер логов с именем потока: по нему видно, какой воркер пишет."""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)-28s | %(threadName)-22s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    enable_console: bool = True,
    log_format: Optional[str] = None
):
    """
    Настройка системы логирования.

    Args:
        level: Уровень логирования
        log_file: Путь к файлу логов
        enable_console: Включить вывод в консоль
        log_format: Кастомный формат логов
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    if log_format:
        formatter = logging.Formatter(log_format)
    else:
        formatter = FetchPoolFormatter()

    # Консольный обработчик
    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # Файловый обработчик
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Библиотеки HTTP-клиента слишком разговорчивы на DEBUG
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('requests').setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Получение логгера для модуля.

    Args:
        name: Имя модуля

    Returns:
        Объект логгера
    """
    return logging.getLogger(name)
