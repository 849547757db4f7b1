"""Проверка прав администратора."""

from __future__ import annotations

import logging
from typing import FrozenSet, Iterable, List

from whitelist_bot.application.contracts import MessagingTransport

logger = logging.getLogger(__name__)


class AdminPolicy:
    """Администратор группы на платформе или пользователь из ADMIN_USERS."""

    def __init__(self, transport: MessagingTransport, privileged: Iterable[int] = ()) -> None:
        self._transport = transport
        self._privileged: FrozenSet[int] = frozenset(privileged)

    def is_privileged(self, user_id: int) -> bool:
        return user_id in self._privileged

    async def is_admin(self, chat_id: int, user_id: int) -> bool:
        if self.is_privileged(user_id):
            return True
        return await self._transport.is_administrator(chat_id, user_id)

    async def reviewers(self, chat_id: int) -> List[int]:
        """Кому отправлять заявку на рассмотрение: администраторы группы и ADMIN_USERS.

        Если список администраторов получить не удалось, остаются только ADMIN_USERS.
        """
        try:
            admins = list(await self._transport.administrators(chat_id))
        except Exception as e:
            logger.warning(f"Не удалось получить администраторов группы {chat_id}: {e}")
            admins = []

        result: List[int] = []
        for user_id in admins + sorted(self._privileged):
            if user_id not in result:
                result.append(user_id)
        return result
