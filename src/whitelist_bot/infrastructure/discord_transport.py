"""Отправка и удаление сообщений через Discord."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

import discord

from whitelist_bot.application.contracts import MessagingTransport
from whitelist_bot.application.errors import PermanentTransportError
from whitelist_bot.application.models import ActionButton, DeleteOutcome

logger = logging.getLogger(__name__)


def build_view(buttons: Sequence[ActionButton]) -> discord.ui.View:
    """Постоянное представление: кнопки обрабатываются по custom_id."""
    view = discord.ui.View(timeout=None)
    for button in buttons:
        view.add_item(
            discord.ui.Button(
                label=button.label,
                custom_id=button.custom_id,
                style=discord.ButtonStyle.danger if button.danger else discord.ButtonStyle.primary,
            )
        )
    return view


def classify_http_error(error: discord.HTTPException) -> DeleteOutcome:
    if isinstance(error, (discord.NotFound, discord.Forbidden)):
        return DeleteOutcome.PERMANENT
    if error.status == 429 or error.status >= 500:
        return DeleteOutcome.TRANSIENT
    return DeleteOutcome.PERMANENT


class DiscordTransport(MessagingTransport):
    """Адаптер бота discord.py к интерфейсу отправки сообщений.

    ``target_id`` может быть каналом сервера или пользователем (личные сообщения).
    """

    def __init__(self, bot: discord.Client) -> None:
        self._bot = bot

    async def _resolve(self, target_id: int) -> Optional[discord.abc.Messageable]:
        channel = self._bot.get_channel(target_id)
        if channel is not None:
            return channel
        user = self._bot.get_user(target_id)
        if user is not None:
            return user
        try:
            return await self._bot.fetch_channel(target_id)
        except (discord.NotFound, discord.Forbidden):
            pass
        try:
            return await self._bot.fetch_user(target_id)
        except discord.NotFound:
            return None

    async def _guild_channel(self, chat_id: int) -> Optional[discord.abc.GuildChannel]:
        channel = self._bot.get_channel(chat_id)
        if channel is None:
            try:
                channel = await self._bot.fetch_channel(chat_id)
            except (discord.NotFound, discord.Forbidden):
                return None
        return channel if getattr(channel, "guild", None) is not None else None

    async def send(
        self,
        target_id: int,
        text: str,
        buttons: Optional[Sequence[ActionButton]] = None,
    ) -> None:
        target = await self._resolve(target_id)
        if target is None:
            raise PermanentTransportError(f"Получатель {target_id} не найден")
        if buttons:
            await target.send(text, view=build_view(buttons))
        else:
            await target.send(text)

    async def delete(self, chat_id: int, message_id: int) -> DeleteOutcome:
        channel = await self._guild_channel(chat_id)
        if channel is None or not hasattr(channel, "get_partial_message"):
            logger.warning(f"Канал {chat_id} недоступен для удаления сообщений")
            return DeleteOutcome.PERMANENT
        try:
            await channel.get_partial_message(message_id).delete()
            return DeleteOutcome.DELETED
        except discord.RateLimited as e:
            logger.debug(f"Ограничение частоты при удалении {message_id}: {e.retry_after:.2f}с")
            return DeleteOutcome.TRANSIENT
        except discord.HTTPException as e:
            outcome = classify_http_error(e)
            logger.debug(f"Ошибка удаления {message_id} ({e.status}): {outcome.value}")
            return outcome
        except (OSError, asyncio.TimeoutError) as e:
            logger.debug(f"Сетевая ошибка при удалении {message_id}: {e}")
            return DeleteOutcome.TRANSIENT

    async def is_administrator(self, chat_id: int, user_id: int) -> bool:
        channel = await self._guild_channel(chat_id)
        if channel is None:
            return False
        guild = channel.guild
        if guild.owner_id == user_id:
            return True
        member = guild.get_member(user_id)
        if member is None:
            try:
                member = await guild.fetch_member(user_id)
            except (discord.NotFound, discord.Forbidden):
                return False
        permissions = member.guild_permissions
        return permissions.administrator or permissions.manage_guild

    async def administrators(self, chat_id: int) -> List[int]:
        channel = await self._guild_channel(chat_id)
        if channel is None:
            return []
        guild = channel.guild
        result: List[int] = []
        if guild.owner_id:
            result.append(guild.owner_id)
        for member in guild.members:
            if member.bot or member.id in result:
                continue
            permissions = member.guild_permissions
            if permissions.administrator or permissions.manage_guild:
                result.append(member.id)
        return result
