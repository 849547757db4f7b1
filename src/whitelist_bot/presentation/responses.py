"""Общие ответы на взаимодействия."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import discord

from whitelist_bot.application.errors import WhitelistBotError
from whitelist_bot.utils.monitoring import capture_error

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Произошла ошибка. Попробуйте позже."
GUILD_ONLY = "Эта команда работает только на сервере"
BAD_CHANNEL_ID = "Некорректный ID канала"


def parse_snowflake(raw: str) -> Optional[int]:
    raw = (raw or "").strip().strip("<#>")
    if not raw.isdigit():
        return None
    return int(raw)


async def reply(interaction: discord.Interaction, text: str) -> None:
    """Эфемерный ответ, даже если на взаимодействие уже ответили."""
    if interaction.response.is_done():
        await interaction.followup.send(text, ephemeral=True)
    else:
        await interaction.response.send_message(text, ephemeral=True)


async def reply_error(
    interaction: discord.Interaction,
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """Ответить на ошибку одним сообщением. Неизвестные ошибки уходят в мониторинг."""
    if isinstance(error, WhitelistBotError):
        logger.info(f"Отказ пользователю {interaction.user.id}: {error}")
        text = str(error)
    else:
        capture_error(error, context)
        text = GENERIC_FAILURE
    try:
        await reply(interaction, text)
    except discord.HTTPException as e:
        logger.warning(f"Не удалось ответить на взаимодействие: {e}")
