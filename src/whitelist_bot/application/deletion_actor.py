"""Удаление заблокированных сообщений с повторами."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Tuple

from whitelist_bot.application.contracts import MessagingTransport
from whitelist_bot.application.errors import (
    PermanentTransportError,
    RetryExhausted,
    TransientRateLimited,
)
from whitelist_bot.application.models import DeleteOutcome
from whitelist_bot.application.retry import RetryPolicy, quadratic_backoff, retry_on
from whitelist_bot.utils.monitoring import track_deletion, update_deletion_queue

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4
DEFAULT_QUEUE_SIZE = 1000


def rate_limit_retry_policy() -> RetryPolicy:
    """5 попыток, задержка 500мс * (n + 1)^2, только при ограничении частоты."""
    return RetryPolicy(
        max_attempts=5,
        backoff=quadratic_backoff(0.5),
        is_retryable=retry_on(TransientRateLimited),
    )


class DeletionActor:
    """Очередь удаления с фиксированным числом воркеров.

    Результат удаления не влияет на уже принятое решение модерации.
    """

    def __init__(
        self,
        transport: MessagingTransport,
        workers: int = DEFAULT_WORKERS,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        self._transport = transport
        self._workers = max(1, workers)
        self._retry = retry_policy or rate_limit_retry_policy()
        self._queue: asyncio.Queue[Tuple[int, int]] = asyncio.Queue(maxsize=max(1, queue_size))
        self._tasks: List[asyncio.Task] = []
        self._closed = False

    def size(self) -> int:
        return self._queue.qsize()

    def submit(self, chat_id: int, message_id: int) -> bool:
        """Поставить сообщение в очередь, не дожидаясь удаления."""
        if self._closed:
            logger.warning(f"Очередь удаления остановлена, сообщение {message_id} в {chat_id} пропущено")
            track_deletion("dropped")
            return False
        try:
            self._queue.put_nowait((chat_id, message_id))
        except asyncio.QueueFull:
            logger.warning(f"Очередь удаления переполнена, сообщение {message_id} в {chat_id} пропущено")
            track_deletion("dropped")
            return False
        update_deletion_queue(self._queue.qsize())
        return True

    async def delete_with_retry(self, chat_id: int, message_id: int) -> DeleteOutcome:
        async def attempt() -> DeleteOutcome:
            outcome = await self._transport.delete(chat_id, message_id)
            if outcome is DeleteOutcome.TRANSIENT:
                raise TransientRateLimited(f"удаление {message_id} в {chat_id}")
            if outcome is DeleteOutcome.PERMANENT:
                raise PermanentTransportError(f"удаление {message_id} в {chat_id}")
            return outcome

        try:
            outcome = await self._retry.run(attempt)
        except PermanentTransportError:
            logger.info(f"Сообщение {message_id} в {chat_id} уже удалено или нет прав, повтор не нужен")
            outcome = DeleteOutcome.PERMANENT
        except RetryExhausted as e:
            logger.warning(f"Не удалось удалить сообщение {message_id} в {chat_id}: {e}")
            outcome = DeleteOutcome.TRANSIENT
        track_deletion(outcome.value)
        return outcome

    async def _worker(self, number: int) -> None:
        while True:
            chat_id, message_id = await self._queue.get()
            try:
                await self.delete_with_retry(chat_id, message_id)
            except Exception:
                logger.exception(f"Воркер удаления {number}: ошибка при удалении {message_id}")
            finally:
                self._queue.task_done()
                update_deletion_queue(self._queue.qsize())

    def start(self) -> None:
        if self._tasks:
            return
        self._closed = False
        self._tasks = [
            asyncio.create_task(self._worker(number), name=f"deletion-worker-{number}")
            for number in range(self._workers)
        ]
        logger.info(f"Очередь удаления запущена (воркеров: {self._workers})")

    async def stop(self) -> None:
        """Дождаться удаления всего, что уже в очереди, и остановить воркеров."""
        self._closed = True
        if self._tasks:
            await self._queue.join()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Очередь удаления остановлена")
