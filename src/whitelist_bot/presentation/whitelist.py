"""Ког управления белым списком."""

from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from whitelist_bot.presentation.responses import (
    BAD_CHANNEL_ID,
    GUILD_ONLY,
    parse_snowflake,
    reply,
    reply_error,
)

logger = logging.getLogger(__name__)

HELP_SECTIONS = (
    (
        "Основные команды",
        "• `/help` - Список команд\n"
        "• `/list_channels` - Каналы из белого списка\n"
        "• `/stats` - Статистика модерации чата",
    ),
    (
        "Заявка (пост от имени канала)",
        "• `/apply <причина>` - Попросить право писать в чате",
    ),
    (
        "Владелец канала",
        "• `/claim <ID канала> [ID чата]` - Подтвердить, что заявка ваша",
    ),
    (
        "Администраторы",
        "• `/whitelist` - Добавить канал в белый список\n"
        "• `/unwhitelist` - Убрать канал из белого списка\n"
        "• `/approve <ID канала>` - Одобрить заявку\n"
        "• `/reject <ID канала>` - Отклонить заявку\n"
        "• `/enable` - Включить модерацию\n"
        "• `/disable` - Выключить модерацию\n"
        "• `/settings` - Настройки чата",
    ),
)


def help_embed() -> discord.Embed:
    embed = discord.Embed(
        title="Помощь по командам",
        description="Посты каналов не из белого списка удаляются.",
        color=discord.Color.blue(),
    )
    for name, value in HELP_SECTIONS:
        embed.add_field(name=name, value=value, inline=False)
    return embed


class WhitelistCog(commands.Cog):
    def __init__(self, bot):
        self.bot = bot

    @property
    def service(self):
        return self.bot.services.whitelist

    async def _guild_chat(self, interaction: discord.Interaction):
        if interaction.guild is None:
            await reply(interaction, GUILD_ONLY)
            return None
        return interaction.channel_id

    @app_commands.command(name="whitelist", description="Разрешить каналу писать в этом чате")
    @app_commands.describe(channel_id="ID канала", description="Описание")
    async def whitelist(
        self,
        interaction: discord.Interaction,
        channel_id: str,
        description: str = "",
    ):
        chat_id = await self._guild_chat(interaction)
        if chat_id is None:
            return
        channel = parse_snowflake(channel_id)
        if channel is None:
            await reply(interaction, BAD_CHANNEL_ID)
            return
        try:
            await self.service.add(chat_id, channel, interaction.user.id, description)
            await reply(interaction, f"Канал `{channel}` добавлен в белый список")
        except Exception as e:
            await reply_error(interaction, e, {'command': 'whitelist', 'chat': chat_id})

    @app_commands.command(name="unwhitelist", description="Убрать канал из белого списка")
    @app_commands.describe(channel_id="ID канала")
    async def unwhitelist(self, interaction: discord.Interaction, channel_id: str):
        chat_id = await self._guild_chat(interaction)
        if chat_id is None:
            return
        channel = parse_snowflake(channel_id)
        if channel is None:
            await reply(interaction, BAD_CHANNEL_ID)
            return
        try:
            await self.service.remove(chat_id, channel, interaction.user.id)
            await reply(interaction, f"Канал `{channel}` удален из белого списка")
        except Exception as e:
            await reply_error(interaction, e, {'command': 'unwhitelist', 'chat': chat_id})

    @app_commands.command(name="list_channels", description="Каналы из белого списка")
    async def list_channels(self, interaction: discord.Interaction):
        chat_id = await self._guild_chat(interaction)
        if chat_id is None:
            return
        try:
            entries = await self.service.list(chat_id)
            if not entries:
                await reply(interaction, "Белый список пуст")
                return
            embed = discord.Embed(title="Белый список", color=discord.Color.green())
            for entry in entries[:25]:
                embed.add_field(
                    name=f"`{entry.channel_id}`",
                    value=f"{entry.description or 'Без описания'}\nДобавил: <@{entry.added_by}>, {entry.added_at}",
                    inline=False,
                )
            await interaction.response.send_message(embed=embed, ephemeral=True)
        except Exception as e:
            await reply_error(interaction, e, {'command': 'list_channels', 'chat': chat_id})

    @app_commands.command(name="stats", description="Статистика модерации чата")
    async def stats(self, interaction: discord.Interaction):
        chat_id = await self._guild_chat(interaction)
        if chat_id is None:
            return
        try:
            stats = await self.service.stats(chat_id)
            await reply(
                interaction,
                f"Каналов в белом списке: {stats.whitelisted}\nЗаблокировано сообщений: {stats.blocked}",
            )
        except Exception as e:
            await reply_error(interaction, e, {'command': 'stats', 'chat': chat_id})

    async def _set_enabled(self, interaction: discord.Interaction, enabled: bool) -> None:
        chat_id = await self._guild_chat(interaction)
        if chat_id is None:
            return
        try:
            await self.service.set_enabled(chat_id, interaction.user.id, enabled)
            await reply(interaction, "Модерация включена" if enabled else "Модерация выключена")
        except Exception as e:
            await reply_error(interaction, e, {'command': 'enable' if enabled else 'disable', 'chat': chat_id})

    @app_commands.command(name="enable", description="Включить модерацию в этом чате")
    async def enable(self, interaction: discord.Interaction):
        await self._set_enabled(interaction, True)

    @app_commands.command(name="disable", description="Выключить модерацию в этом чате")
    async def disable(self, interaction: discord.Interaction):
        await self._set_enabled(interaction, False)

    @app_commands.command(name="settings", description="Настройки модерации чата")
    async def settings(self, interaction: discord.Interaction):
        chat_id = await self._guild_chat(interaction)
        if chat_id is None:
            return
        try:
            settings = await self.service.settings(chat_id)
            await reply(
                interaction,
                f"Модерация: {'включена' if settings.enabled else 'выключена'}\n"
                f"Белым списком управляют: {'только администраторы' if settings.admin_only else 'все участники'}",
            )
        except Exception as e:
            await reply_error(interaction, e, {'command': 'settings', 'chat': chat_id})

    @app_commands.command(name="help", description="Показывает список доступных команд")
    async def help(self, interaction: discord.Interaction):
        await interaction.response.send_message(embed=help_embed(), ephemeral=True)


async def setup(bot):
    await bot.add_cog(WhitelistCog(bot))
