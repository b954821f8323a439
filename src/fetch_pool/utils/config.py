"""
Система конфигурации для пула загрузки.

Конфигурация читается один раз при старте (YAML или JSON плюс переменные
окружения) и передается конструкторам пула и фидера явно.
"""

import json
import os
from typing import Any, Dict, Mapping, Optional, Union
from dataclasses import dataclass, asdict, field
from pathlib import Path

import yaml

from ..core.task_channel import ChannelConfig
from ..core.graceful_shutdown import ShutdownConfig
from ..core.task_executor import ExecutionConfig
from ..core.worker_manager import WorkerManagerConfig
from ..core.worker_pool import WorkerPoolConfig
from ..feeder.feeder import FeederConfig
from ..utils.monitoring import MetricsConfig
from ..exceptions import ConfigurationError


# Короткие ключи исходного config.yaml: c, n, filePath, baseUrl
_TOP_LEVEL_ALIASES = {
    'c': 'max_workers',
}
_FEEDER_ALIASES = {
    'n': 'batch_size',
    'filePath': 'file_path',
    'baseUrl': 'base_url',
}

_SECTIONS = {
    'feeder': FeederConfig,
    'metrics': MetricsConfig,
    'channel': ChannelConfig,
    'shutdown': ShutdownConfig,
    'execution': ExecutionConfig,
    'worker_manager': WorkerManagerConfig,
}


@dataclass
class Config:
    """Основная конфигурация приложения."""

    # Основные параметры пула
    max_workers: int = 10
    max_queue_size: Optional[int] = None  # По умолчанию равен feeder.batch_size
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Конфигурации компонентов
    feeder: FeederConfig = field(default_factory=FeederConfig)
    metrics: MetricsConfig = field(default_factory=MetricsConfig)
    channel: ChannelConfig = field(default_factory=ChannelConfig)
    shutdown: ShutdownConfig = field(default_factory=ShutdownConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    worker_manager: WorkerManagerConfig = field(default_factory=WorkerManagerConfig)

    @property
    def queue_size(self) -> int:
        """Фактическая вместимость очереди пула."""
        if self.max_queue_size is None:
            return self.feeder.batch_size
        return self.max_queue_size

    def to_dict(self) -> Dict[str, Any]:
        """Преобразование в словарь."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Config':
        """Создание из словаря (принимает и короткие ключи исходного формата)."""
        data = dict(data)
        sections = {name: dict(data.pop(name, None) or {}) for name in _SECTIONS}

        for alias, key in _TOP_LEVEL_ALIASES.items():
            if alias in data:
                data.setdefault(key, data.pop(alias))
        for alias, key in _FEEDER_ALIASES.items():
            if alias in data:
                sections['feeder'].setdefault(key, data.pop(alias))

        try:
            config = cls(**data)
            for name, section_cls in _SECTIONS.items():
                if sections[name]:
                    setattr(config, name, section_cls(**sections[name]))
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration key: {e}") from e

        return config

    def to_pool_config(self) -> WorkerPoolConfig:
        """Конфигурация компонентов для WorkerPool."""
        return WorkerPoolConfig(
            channel_config=self.channel,
            shutdown_config=self.shutdown,
            execution_config=self.execution,
            worker_config=self.worker_manager
        )

    def validate(self) -> bool:
        """Валидация конфигурации."""
        errors = []

        # Проверка основных параметров
        if not isinstance(self.max_workers, int) or self.max_workers < 1:
            errors.append("max_workers must be an integer >= 1")

        if not isinstance(self.queue_size, int) or self.queue_size < 1:
            errors.append("max_queue_size must be an integer >= 1")

        if isinstance(self.max_workers, int) and not 0 <= self.worker_manager.min_workers <= self.max_workers:
            errors.append("worker_manager.min_workers must be between 0 and max_workers")

        if self.worker_manager.idle_timeout is not None and self.worker_manager.idle_timeout <= 0:
            errors.append("worker_manager.idle_timeout must be > 0 or null")

        if self.execution.timeout is not None and self.execution.timeout <= 0:
            errors.append("execution.timeout must be > 0 or null")

        # Проверка конфигурации фидера
        if not self.feeder.file_path:
            errors.append("feeder.file_path is required")

        # Литеральный '%' в шаблоне должен быть записан как '%%'
        try:
            self.feeder.base_url % "id"
        except (TypeError, ValueError) as e:
            errors.append(f"feeder.base_url must contain exactly one '%s' placeholder ({e})")

        if not isinstance(self.feeder.batch_size, int) or self.feeder.batch_size < 1:
            errors.append("feeder.batch_size must be an integer >= 1")

        if self.feeder.request_timeout <= 0:
            errors.append("feeder.request_timeout must be > 0")

        # Проверка конфигурации метрик
        if not 0 <= self.metrics.port <= 65535:
            errors.append("metrics.port must be between 0 and 65535")

        if errors:
            raise ConfigurationError(f"Configuration validation failed: {'; '.join(errors)}")

        return True


def load_config(file_path: Union[str, Path], environ: Optional[Mapping[str, str]] = None) -> Config:
    """
    Загрузка конфигурации из файла с переопределениями из окружения.

    Args:
        file_path: Путь к файлу конфигурации (.yaml, .yml или .json)
        environ: Переменные окружения (по умолчанию os.environ)

    Returns:
        Проверенный объект конфигурации
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise ConfigurationError(f"Configuration file not found: {file_path}")

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            if file_path.suffix.lower() in ['.yaml', '.yml']:
                data = yaml.safe_load(f)
            elif file_path.suffix.lower() == '.json':
                data = json.load(f)
            else:
                raise ConfigurationError(f"Unsupported configuration file format: {file_path.suffix}")
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Malformed configuration file {file_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {file_path} must contain a mapping")

    config = Config.from_dict(apply_env_overrides(data, environ))
    config.validate()

    return config


def apply_env_overrides(data: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Переопределение параметров переменными окружения FETCH_POOL_*.

    Args:
        data: Словарь конфигурации
        environ: Переменные окружения (по умолчанию os.environ)

    Returns:
        Новый словарь конфигурации
    """
    environ = os.environ if environ is None else environ
    result = dict(data)

    def section(name: str) -> Dict[str, Any]:
        result[name] = dict(result.get(name) or {})
        return result[name]

    try:
        if environ.get('FETCH_POOL_MAX_WORKERS'):
            result.pop('c', None)
            result['max_workers'] = int(environ['FETCH_POOL_MAX_WORKERS'])

        if environ.get('FETCH_POOL_MAX_QUEUE_SIZE'):
            result['max_queue_size'] = int(environ['FETCH_POOL_MAX_QUEUE_SIZE'])

        if environ.get('FETCH_POOL_LOG_LEVEL'):
            result['log_level'] = environ['FETCH_POOL_LOG_LEVEL']

        if environ.get('FETCH_POOL_FILE_PATH'):
            result.pop('filePath', None)
            section('feeder')['file_path'] = environ['FETCH_POOL_FILE_PATH']

        if environ.get('FETCH_POOL_BASE_URL'):
            result.pop('baseUrl', None)
            section('feeder')['base_url'] = environ['FETCH_POOL_BASE_URL']

        if environ.get('FETCH_POOL_BATCH_SIZE'):
            result.pop('n', None)
            section('feeder')['batch_size'] = int(environ['FETCH_POOL_BATCH_SIZE'])

        if environ.get('FETCH_POOL_RAISE_ON_ERROR'):
            section('feeder')['raise_on_error'] = environ['FETCH_POOL_RAISE_ON_ERROR'].lower() == 'true'

        if environ.get('FETCH_POOL_METRICS_PORT'):
            section('metrics')['port'] = int(environ['FETCH_POOL_METRICS_PORT'])

    except ValueError as e:
        raise ConfigurationError(f"Invalid environment override: {e}") from e

    return result


def save_config(config: Config, file_path: Union[str, Path], format: str = 'yaml'):
    """
    Сохранение конфигурации в файл.

    Args:
        config: Объект конфигурации
        file_path: Путь к файлу
        format: Формат файла ('yaml' или 'json')
    """
    file_path = Path(file_path)
    data = config.to_dict()

    file_path.parent.mkdir(parents=True, exist_ok=True)

    with open(file_path, 'w', encoding='utf-8') as f:
        if format.lower() == 'yaml':
            yaml.safe_dump(data, f, default_flow_style=False, indent=2, sort_keys=False)
        elif format.lower() == 'json':
            json.dump(data, f, indent=2, ensure_ascii=False)
        else:
            raise ValueError(f"Unsupported format: {format}")
