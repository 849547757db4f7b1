"""Ког заявок каналов: кнопки и команды /claim, /approve, /reject."""

from __future__ import annotations

import logging
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from whitelist_bot.application import notices
from whitelist_bot.application.errors import ApplicationNotFound
from whitelist_bot.application.models import ClaimOutcome
from whitelist_bot.presentation.responses import (
    BAD_CHANNEL_ID,
    parse_snowflake,
    reply,
    reply_error,
)

logger = logging.getLogger(__name__)

CLAIM_REPLIES = {
    ClaimOutcome.AWAITING_REASON: "Пришлите причину заявки боту в личные сообщения.",
    ClaimOutcome.CLAIMED: "Подтвердите владение каналом в личных сообщениях.",
    ClaimOutcome.VERIFIED: notices.awaiting_verification(),
}
CHOOSE_CHAT = "Канал подал заявки в нескольких чатах. Укажите chat_id."


class ApplicationsCog(commands.Cog):
    def __init__(self, bot):
        self.bot = bot

    @property
    def registry(self):
        return self.bot.services.registry

    @commands.Cog.listener()
    async def on_interaction(self, interaction: discord.Interaction):
        if interaction.type != discord.InteractionType.component:
            return
        custom_id = (interaction.data or {}).get("custom_id", "")

        try:
            if custom_id == notices.CANCEL_CLAIM:
                await reply(interaction, notices.claim_cancelled())
                return

            parsed = notices.parse_custom_id(custom_id)
            if parsed is None:
                return
            action, chat_id, channel_id = parsed
            await self.handle_button(interaction, action, chat_id, channel_id)
        except Exception as e:
            await reply_error(
                interaction,
                e,
                {'event': 'on_interaction', 'custom_id': custom_id, 'user': interaction.user.id},
            )

    async def handle_button(
        self,
        interaction: discord.Interaction,
        action: str,
        chat_id: int,
        channel_id: int,
    ) -> None:
        user_id = interaction.user.id
        if action == notices.CLAIM:
            outcome = await self.registry.claim(chat_id, channel_id, user_id)
            await reply(interaction, CLAIM_REPLIES[outcome])
        elif action == notices.VERIFY:
            await self.registry.verify(chat_id, channel_id, user_id)
            await reply(interaction, notices.awaiting_verification())
        elif action in (notices.APPROVE, notices.REJECT):
            approve = action == notices.APPROVE
            await self.registry.decide(chat_id, channel_id, approve, user_id)
            await reply(interaction, "Заявка одобрена." if approve else "Заявка отклонена.")

    @app_commands.command(name="claim", description="Подтвердить заявку своего канала")
    @app_commands.describe(channel_id="ID канала", chat_id="ID чата, где подана заявка")
    async def claim(
        self,
        interaction: discord.Interaction,
        channel_id: str,
        chat_id: Optional[str] = None,
    ):
        """Заявка ищется в указанном чате, в текущем чате или, из личных сообщений, среди всех чатов."""
        channel = parse_snowflake(channel_id)
        chat = parse_snowflake(chat_id) if chat_id else None
        if channel is None or (chat_id and chat is None):
            await reply(interaction, BAD_CHANNEL_ID)
            return
        try:
            applications = await self.registry.find_pending_by_channel(channel)
            if chat is not None:
                candidates = [app for app in applications if app.chat_id == chat]
            elif interaction.guild is not None:
                candidates = [app for app in applications if app.chat_id == interaction.channel_id]
            else:
                candidates = applications
            if not candidates:
                raise ApplicationNotFound()
            if len(candidates) > 1:
                await reply(interaction, CHOOSE_CHAT)
                return
            target = candidates[0]
            outcome = await self.registry.claim(target.chat_id, target.channel_id, interaction.user.id)
            await reply(interaction, CLAIM_REPLIES[outcome])
        except Exception as e:
            await reply_error(interaction, e, {'command': 'claim', 'user': interaction.user.id})

    async def _decide(
        self,
        interaction: discord.Interaction,
        channel_id: str,
        chat_id: Optional[str],
        approve: bool,
    ) -> None:
        channel = parse_snowflake(channel_id)
        chat = parse_snowflake(chat_id) if chat_id else interaction.channel_id
        if channel is None or chat is None:
            await reply(interaction, BAD_CHANNEL_ID)
            return
        try:
            application = await self.registry.decide(chat, channel, approve, interaction.user.id)
            await reply(
                interaction,
                notices.decision_for_group(application, approve),
            )
        except Exception as e:
            await reply_error(
                interaction,
                e,
                {'command': 'approve' if approve else 'reject', 'user': interaction.user.id},
            )

    @app_commands.command(name="approve", description="Одобрить заявку канала")
    @app_commands.describe(channel_id="ID канала", chat_id="ID чата (по умолчанию текущий)")
    async def approve(
        self,
        interaction: discord.Interaction,
        channel_id: str,
        chat_id: Optional[str] = None,
    ):
        await self._decide(interaction, channel_id, chat_id, approve=True)

    @app_commands.command(name="reject", description="Отклонить заявку канала")
    @app_commands.describe(channel_id="ID канала", chat_id="ID чата (по умолчанию текущий)")
    async def reject(
        self,
        interaction: discord.Interaction,
        channel_id: str,
        chat_id: Optional[str] = None,
    ):
        await self._decide(interaction, channel_id, chat_id, approve=False)


async def setup(bot):
    await bot.add_cog(ApplicationsCog(bot))
