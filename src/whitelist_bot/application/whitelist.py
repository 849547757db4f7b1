"""Управление белым списком и настройками группы."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import List

from whitelist_bot.application.contracts import (
    BlockedMessagesRepositoryContract,
    GroupSettingsRepositoryContract,
    WhitelistRepositoryContract,
)
from whitelist_bot.application.errors import (
    AlreadyWhitelisted,
    NotWhitelisted,
    PermissionDenied,
)
from whitelist_bot.application.models import GroupSettings, WhitelistEntry
from whitelist_bot.application.permissions import AdminPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WhitelistStats:
    whitelisted: int
    blocked: int


class WhitelistService:
    """Команды администраторов: белый список, включение и настройки."""

    def __init__(
        self,
        whitelist: WhitelistRepositoryContract,
        settings: GroupSettingsRepositoryContract,
        blocked: BlockedMessagesRepositoryContract,
        policy: AdminPolicy,
    ) -> None:
        self._whitelist = whitelist
        self._settings = settings
        self._blocked = blocked
        self._policy = policy

    async def _check_manage(self, chat_id: int, user_id: int) -> None:
        settings = await self._settings.get_or_create(chat_id)
        if settings.admin_only and not await self._policy.is_admin(chat_id, user_id):
            raise PermissionDenied("Только администраторы могут управлять белым списком")

    async def _check_admin(self, chat_id: int, user_id: int) -> None:
        if not await self._policy.is_admin(chat_id, user_id):
            raise PermissionDenied("Только администраторы могут использовать эту команду")

    async def add(
        self,
        chat_id: int,
        channel_id: int,
        acting_user: int,
        description: str = "",
    ) -> None:
        await self._check_manage(chat_id, acting_user)
        if not await self._whitelist.add(chat_id, channel_id, acting_user, description):
            raise AlreadyWhitelisted()
        logger.info(f"Канал {channel_id} добавлен в белый список {chat_id} пользователем {acting_user}")

    async def remove(self, chat_id: int, channel_id: int, acting_user: int) -> None:
        await self._check_manage(chat_id, acting_user)
        if not await self._whitelist.remove(chat_id, channel_id):
            raise NotWhitelisted()
        logger.info(f"Канал {channel_id} удален из белого списка {chat_id} пользователем {acting_user}")

    async def list(self, chat_id: int) -> List[WhitelistEntry]:
        return await self._whitelist.list_for_chat(chat_id)

    async def stats(self, chat_id: int) -> WhitelistStats:
        return WhitelistStats(
            whitelisted=await self._whitelist.count_for_chat(chat_id),
            blocked=await self._blocked.count_for_chat(chat_id),
        )

    async def settings(self, chat_id: int) -> GroupSettings:
        return await self._settings.get_or_create(chat_id)

    async def set_enabled(self, chat_id: int, acting_user: int, enabled: bool) -> GroupSettings:
        await self._check_admin(chat_id, acting_user)
        current = await self._settings.get_or_create(chat_id)
        updated = dataclasses.replace(current, enabled=enabled)
        await self._settings.update(updated)
        logger.info(f"Модерация в {chat_id} {'включена' if enabled else 'выключена'} пользователем {acting_user}")
        return updated
