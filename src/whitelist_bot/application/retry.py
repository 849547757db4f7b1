"""Политика повторов с экспоненциальной задержкой."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from whitelist_bot.application.errors import RetryExhausted

logger = logging.getLogger(__name__)

T = TypeVar("T")

BackoffFn = Callable[[int], float]
Sleep = Callable[[float], Awaitable[None]]


def quadratic_backoff(base_seconds: float) -> BackoffFn:
    """Задержка base * (n + 1)^2 после n-й неудачной попытки (n с нуля)."""

    def backoff(attempt: int) -> float:
        return base_seconds * (attempt + 1) ** 2

    return backoff


def retry_on(*error_types: Type[BaseException]) -> Callable[[BaseException], bool]:
    types: Tuple[Type[BaseException], ...] = tuple(error_types)

    def is_retryable(error: BaseException) -> bool:
        return isinstance(error, types)

    return is_retryable


@dataclass(frozen=True)
class RetryPolicy:
    """Общая политика повторов для записи журнала и удаления сообщений.

    Args:
        max_attempts: Максимальное число попыток, включая первую
        backoff: Задержка в секундах после неудачной попытки с данным номером
        is_retryable: Можно ли повторить операцию после этой ошибки
        sleep: Функция ожидания (подменяется в тестах)
    """

    max_attempts: int
    backoff: BackoffFn
    is_retryable: Callable[[BaseException], bool]
    sleep: Sleep = field(default=asyncio.sleep, compare=False)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Выполнить операцию с повторами.

        Неповторяемые ошибки пробрасываются сразу. После последней неудачной
        попытки поднимается RetryExhausted.
        """
        attempts = max(1, self.max_attempts)
        for attempt in range(attempts):
            try:
                return await operation()
            except Exception as error:
                if not self.is_retryable(error):
                    raise
                if attempt + 1 >= attempts:
                    raise RetryExhausted(attempts, error) from error
                delay = self.backoff(attempt)
                logger.debug(
                    f"Попытка {attempt + 1}/{attempts} не удалась ({error}), повтор через {delay:.2f}с"
                )
                await self.sleep(delay)
        raise AssertionError("unreachable")
