"""
Чтение списка идентификаторов и разбиение на пачки.
"""

import random
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from ..utils.logger import get_logger
from ..exceptions import FeederError


logger = get_logger(__name__)


def load_identifiers(file_path: Union[str, Path]) -> List[str]:
    """
    Чтение идентификаторов из файла, по одному на строку.

    Пробелы по краям строк отбрасываются, пустые строки пропускаются.

    Args:
        file_path: Путь к файлу со списком

    Returns:
        Идентификаторы в порядке файла

    Raises:
        FeederError: файл не найден или не читается
    """
    file_path = Path(file_path)

    try:
        text = file_path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise FeederError(f"Cannot read identifiers file {file_path}: {e}") from e

    identifiers = [line.strip() for line in text.splitlines()]
    identifiers = [identifier for identifier in identifiers if identifier]

    logger.info(f"Loaded {len(identifiers)} identifiers from {file_path}")
    return identifiers


def shuffle_and_batch(
    items: Sequence[str],
    batch_size: int,
    rng: Optional[random.Random] = None
) -> Iterator[List[str]]:
    """
    Случайная перестановка и разбиение на пачки фиксированного размера.

    Последняя пачка может быть короче. Исходная последовательность
    не изменяется.

    Args:
        items: Элементы
        batch_size: Размер пачки
        rng: Генератор случайных чисел (для воспроизводимости)
    """
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")

    shuffled = list(items)
    (rng or random).shuffle(shuffled)

    for start in range(0, len(shuffled), batch_size):
        yield shuffled[start:start + batch_size]
