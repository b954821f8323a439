"""
Фидер нагрузки: чтение списка, перемешивание, пачки и HTTP-задачи.
"""

from .loader import load_identifiers, shuffle_and_batch
from .fetcher import FetchTask, build_url
from .feeder import WorkloadFeeder, FeederConfig

__all__ = [
    "load_identifiers",
    "shuffle_and_batch",
    "FetchTask",
    "build_url",
    "WorkloadFeeder",
    "FeederConfig"
]
