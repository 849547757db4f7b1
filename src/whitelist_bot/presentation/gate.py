"""Ког модерации постов каналов."""

from __future__ import annotations

import logging
from typing import Optional

import discord
from discord.ext import commands

from whitelist_bot.application import notices
from whitelist_bot.application.errors import WhitelistBotError
from whitelist_bot.application.models import ClaimOutcome, InboundPost
from whitelist_bot.utils.monitoring import capture_error

logger = logging.getLogger(__name__)


def source_channel_id(message: discord.Message) -> Optional[int]:
    """ID канала-отправителя или None, если пост не от канала.

    Пост подписки (Channel Following) относится к исходному каналу объявлений,
    любой другой пост вебхука к самому вебхуку.
    """
    if message.webhook_id is None:
        return None
    if getattr(message, "interaction_metadata", None) is not None:
        return None
    if message.flags.is_crossposted and message.reference is not None:
        return message.reference.channel_id
    return message.webhook_id


def post_from_message(message: discord.Message) -> InboundPost:
    return InboundPost(
        chat_id=message.channel.id,
        message_id=message.id,
        channel_id=source_channel_id(message),
        text=message.content or "",
        channel_title=message.author.display_name if message.webhook_id else "",
        author_id=message.author.id,
    )


class GateCog(commands.Cog):
    def __init__(self, bot):
        self.bot = bot

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        if not self.bot.accepting_posts:
            return
        if self.bot.user is not None and message.author.id == self.bot.user.id:
            return

        try:
            if message.guild is None:
                if not message.author.bot:
                    await self.handle_direct_message(message)
                return

            post = post_from_message(message)
            if not post.is_channel_post:
                return
            verdict = await self.bot.services.gate.evaluate(post)
            logger.debug(
                f"Пост {post.message_id} канала {post.channel_id} в {post.chat_id}: {verdict.decision.value}"
            )
        except Exception as e:
            logger.error(f"Ошибка в on_message: {str(e)}", exc_info=True)
            capture_error(
                e,
                {'event': 'on_message', 'channel': message.channel.id, 'author': message.author.id},
            )

    async def handle_direct_message(self, message: discord.Message) -> None:
        """Причина заявки, присланная в личные сообщения."""
        registry = self.bot.services.registry
        awaiting = await registry.awaiting_reason(message.author.id)
        if awaiting is None:
            return

        try:
            outcome = await registry.supply_reason(
                awaiting.chat_id,
                awaiting.channel_id,
                message.author.id,
                message.content,
            )
        except WhitelistBotError as e:
            await message.channel.send(str(e))
            return

        if outcome is ClaimOutcome.VERIFIED:
            await message.channel.send(notices.awaiting_verification())
        else:
            await message.channel.send(notices.reason_saved())


async def setup(bot):
    await bot.add_cog(GateCog(bot))
