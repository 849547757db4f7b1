"""Буферизованная запись журнала заблокированных сообщений."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import List, Optional

from whitelist_bot.application.contracts import BlockedMessagesRepositoryContract
from whitelist_bot.application.errors import RetryExhausted, TransientStorageBusy
from whitelist_bot.application.models import BlockedMessage
from whitelist_bot.application.retry import RetryPolicy, quadratic_backoff, retry_on
from whitelist_bot.database.db import is_storage_busy
from whitelist_bot.utils.monitoring import track_blocked_records, update_recorder_buffer

logger = logging.getLogger(__name__)

DEFAULT_FLUSH_INTERVAL = 2.0


def storage_retry_policy() -> RetryPolicy:
    """5 попыток, задержка 100мс * (n + 1)^2, только при занятой БД."""
    return RetryPolicy(
        max_attempts=5,
        backoff=quadratic_backoff(0.1),
        is_retryable=retry_on(TransientStorageBusy),
    )


class BlockedMessageRecorder:
    """Журнал заблокированных сообщений.

    ``enqueue`` только добавляет запись в буфер под замком. Периодический
    сброс забирает буфер целиком и пишет его одной транзакцией; при ошибке
    записи идут по одной, каждая со своими повторами.
    """

    def __init__(
        self,
        repository: BlockedMessagesRepositoryContract,
        interval: float = DEFAULT_FLUSH_INTERVAL,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        self._repository = repository
        self._interval = interval
        self._retry = retry_policy or storage_retry_policy()
        self._lock = threading.Lock()
        self._buffer: List[BlockedMessage] = []
        self._task: Optional[asyncio.Task] = None
        self._stopping = asyncio.Event()
        self._closed = False

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._buffer)

    def enqueue(self, record: BlockedMessage) -> bool:
        """Добавить запись в буфер. После остановки записи не принимаются."""
        with self._lock:
            accepted = not self._closed
            if accepted:
                self._buffer.append(record)
            size = len(self._buffer)
        if not accepted:
            logger.warning(
                f"Журнал остановлен, запись о сообщении {record.message_id} в {record.chat_id} отброшена"
            )
            track_blocked_records("dropped", 1)
            return False
        update_recorder_buffer(size)
        return True

    def _swap(self) -> List[BlockedMessage]:
        with self._lock:
            batch, self._buffer = self._buffer, []
        update_recorder_buffer(0)
        return batch

    async def flush(self) -> int:
        """Записать накопленный буфер. Возвращает число сохраненных записей."""
        batch = self._swap()
        if not batch:
            return 0

        try:
            await self._repository.insert_batch(batch)
            track_blocked_records("batch", len(batch))
            logger.debug(f"Записано заблокированных сообщений: {len(batch)}")
            return len(batch)
        except Exception as e:
            logger.warning(f"Пакетная запись журнала не удалась ({e}), запись по одной")

        saved = 0
        for record in batch:
            if await self._insert_with_retry(record):
                saved += 1
        track_blocked_records("single", saved)
        track_blocked_records("dropped", len(batch) - saved)
        return saved

    async def _insert_with_retry(self, record: BlockedMessage) -> bool:
        async def insert() -> None:
            try:
                await self._repository.insert_one(record)
            except Exception as e:
                if is_storage_busy(e):
                    raise TransientStorageBusy(str(e)) from e
                raise

        try:
            await self._retry.run(insert)
            return True
        except RetryExhausted as e:
            logger.error(
                f"БД занята, запись о сообщении {record.message_id} в {record.chat_id} пропущена: {e}"
            )
        except Exception as e:
            logger.error(
                f"Не удалось записать сообщение {record.message_id} в {record.chat_id}: {e}"
            )
        return False

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass
            try:
                await self.flush()
            except Exception as e:
                logger.error(f"Ошибка при сбросе журнала: {e}")

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        with self._lock:
            self._closed = False
        self._stopping.clear()
        self._task = asyncio.create_task(self._run())
        logger.info(f"Журнал заблокированных сообщений запущен (интервал {self._interval}с)")

    async def stop(self) -> None:
        """Остановить периодический сброс и записать остаток буфера.

        Записи, пришедшие после остановки, отбрасываются с предупреждением.
        """
        with self._lock:
            self._closed = True
        self._stopping.set()
        if self._task is not None:
            await self._task
            self._task = None
        await self.flush()
        logger.info("Журнал заблокированных сообщений остановлен")
