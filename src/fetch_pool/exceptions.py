"""
Исключения для пула загрузки.
"""


class FetchPoolError(Exception):
    """Базовое исключение для пула загрузки."""
    pass


class ConfigurationError(FetchPoolError):
    """Ошибка конфигурации (в том числе неверные границы пула)."""
    pass


class ShutdownError(FetchPoolError):
    """Пул остановлен или находится в процессе остановки."""
    pass


class TaskExecutionError(FetchPoolError):
    """Ошибка выполнения тела задачи."""
    pass


class TaskTimeoutError(TaskExecutionError):
    """Задача превысила таймаут выполнения."""
    pass


class TaskChannelError(FetchPoolError):
    """Ошибка канала задач."""
    pass


class FeederError(FetchPoolError):
    """Ошибка чтения входного списка идентификаторов."""
    pass
