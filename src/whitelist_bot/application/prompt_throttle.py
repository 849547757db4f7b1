"""Ограничение уведомлений: одно уведомление каждого вида в сутки."""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional

from whitelist_bot.application.contracts import PromptsRepositoryContract
from whitelist_bot.application.models import PromptKind, today

logger = logging.getLogger(__name__)


class PromptThrottle:
    """Учет уведомлений по ключу (группа, канал, вид, день).

    ``try_record`` сначала пишет отметку и только потом разрешает отправку,
    поэтому при гонке двух постов уведомление уйдет один раз. Если отправка
    не удалась, отметка снимается через ``release``.
    """

    def __init__(
        self,
        prompts: PromptsRepositoryContract,
        clock: Callable[[], date] = today,
    ) -> None:
        self._prompts = prompts
        self._clock = clock

    def day(self) -> str:
        return self._clock().isoformat()

    async def has_fired(self, chat_id: int, channel_id: int, kind: PromptKind) -> bool:
        return await self._prompts.exists(chat_id, channel_id, kind.value, self.day())

    async def record(self, chat_id: int, channel_id: int, kind: PromptKind) -> None:
        await self._prompts.insert_ignore(chat_id, channel_id, kind.value, self.day())

    async def try_record(
        self,
        chat_id: int,
        channel_id: int,
        kind: PromptKind,
        day: Optional[str] = None,
    ) -> bool:
        """Записать отметку. True, если за этот день ее еще не было."""
        return await self._prompts.insert_ignore(chat_id, channel_id, kind.value, day or self.day())

    async def release(
        self,
        chat_id: int,
        channel_id: int,
        kind: PromptKind,
        day: Optional[str] = None,
    ) -> None:
        """Снять отметку, чтобы следующий пост снова получил уведомление."""
        await self._prompts.delete(chat_id, channel_id, kind.value, day or self.day())

    async def reset_all(self) -> int:
        removed = await self._prompts.delete_except(self.day())
        logger.info(f"Сброшены отметки уведомлений: {removed}")
        return removed
