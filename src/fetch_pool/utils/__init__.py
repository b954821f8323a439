"""
Утилиты для пула загрузки.

Конфигурация и мониторинг импортируются из своих модулей напрямую:
utils.config зависит от конфигураций компонентов core.
"""

from .logger import get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging"
]
