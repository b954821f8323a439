"""
Тело задачи: один исходящий HTTP-запрос на идентификатор.
"""

import requests

from ..utils.logger import get_logger


logger = get_logger(__name__)


def build_url(template: str, identifier: str) -> str:
    """Подстановка идентификатора в шаблон вида 'https://host/items/%s'."""
    return template % identifier


class FetchTask:
    """Задача загрузки одного URL.

    По умолчанию ошибки запроса только логируются: задача считается
    успешной, и счетчик неудачных задач пула их не видит. При
    raise_on_error=True ошибки транспорта и HTTP-статусы >= 400
    пробрасываются и учитываются пулом как неудачные задачи.
    """

    def __init__(self, url: str, timeout: float = 10.0, raise_on_error: bool = False):
        self.url = url
        self.timeout = timeout
        self.raise_on_error = raise_on_error

    def __call__(self):
        try:
            response = requests.get(self.url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Error making request to {self.url}: {e}")
            if self.raise_on_error:
                raise
            return

        try:
            logger.debug(f"{self.url} -> {response.status_code}")
            if self.raise_on_error:
                response.raise_for_status()
        finally:
            response.close()

    def __repr__(self) -> str:
        return f"FetchTask(url={self.url!r})"
