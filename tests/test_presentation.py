from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from whitelist_bot.application import notices
from whitelist_bot.application.errors import AlreadyClaimed, ApplicationNotFound
from whitelist_bot.application.models import (
    AwaitingReason,
    ClaimOutcome,
    Decision,
    InboundPost,
    Verdict,
)
from whitelist_bot.presentation.applications import CHOOSE_CHAT, CLAIM_REPLIES, ApplicationsCog
from whitelist_bot.presentation.gate import GateCog
from whitelist_bot.presentation.responses import GENERIC_FAILURE
from whitelist_bot.presentation.whitelist import WhitelistCog

from conftest import CHANNEL, GROUP, OWNER


@pytest.fixture()
def bot():
    bot = MagicMock()
    bot.user.id = 999
    bot.accepting_posts = True
    bot.services.gate.evaluate = AsyncMock(return_value=Verdict(Decision.SUPPRESSED))
    bot.services.registry = AsyncMock()
    bot.services.whitelist = AsyncMock()
    return bot


@pytest.fixture()
def interaction():
    interaction = AsyncMock()
    interaction.user = MagicMock(id=OWNER)
    interaction.channel_id = GROUP
    interaction.response = AsyncMock()
    interaction.response.is_done = MagicMock(return_value=False)
    return interaction


def webhook_message(crossposted=False):
    message = MagicMock()
    message.id = 42
    message.channel.id = GROUP
    message.webhook_id = CHANNEL
    message.interaction_metadata = None
    message.flags.is_crossposted = crossposted
    message.reference.channel_id = 777
    message.content = "Реклама"
    message.author.id = CHANNEL
    message.author.display_name = "Новости"
    return message


@pytest.mark.asyncio
async def test_webhook_post_goes_through_gate(bot):
    cog = GateCog(bot)

    await cog.on_message(webhook_message())

    bot.services.gate.evaluate.assert_awaited_once_with(
        InboundPost(
            chat_id=GROUP,
            message_id=42,
            channel_id=CHANNEL,
            text="Реклама",
            channel_title="Новости",
            author_id=CHANNEL,
        )
    )


@pytest.mark.asyncio
async def test_crossposted_message_uses_source_channel(bot):
    cog = GateCog(bot)

    await cog.on_message(webhook_message(crossposted=True))

    post = bot.services.gate.evaluate.await_args.args[0]
    assert post.channel_id == 777


@pytest.mark.asyncio
async def test_user_message_is_not_evaluated(bot):
    cog = GateCog(bot)
    message = webhook_message()
    message.webhook_id = None

    await cog.on_message(message)

    bot.services.gate.evaluate.assert_not_awaited()


@pytest.mark.asyncio
async def test_posts_are_ignored_while_shutting_down(bot):
    cog = GateCog(bot)
    bot.accepting_posts = False

    await cog.on_message(webhook_message())

    bot.services.gate.evaluate.assert_not_awaited()


@pytest.mark.asyncio
async def test_gate_errors_do_not_escape(bot):
    cog = GateCog(bot)
    bot.services.gate.evaluate.side_effect = RuntimeError("db")

    await cog.on_message(webhook_message())


@pytest.mark.asyncio
async def test_direct_message_supplies_reason(bot):
    cog = GateCog(bot)
    bot.services.registry.awaiting_reason.return_value = AwaitingReason(GROUP, CHANNEL)
    bot.services.registry.supply_reason.return_value = ClaimOutcome.CLAIMED
    message = MagicMock()
    message.guild = None
    message.author.id = OWNER
    message.author.bot = False
    message.content = "фан-страница"
    message.channel.send = AsyncMock()

    await cog.on_message(message)

    bot.services.registry.supply_reason.assert_awaited_once_with(GROUP, CHANNEL, OWNER, "фан-страница")
    message.channel.send.assert_awaited_once_with(notices.reason_saved())


@pytest.mark.asyncio
async def test_claim_button(bot, interaction):
    cog = ApplicationsCog(bot)
    interaction.type = discord.InteractionType.component
    interaction.data = {"custom_id": f"claim:{GROUP}:{CHANNEL}"}
    bot.services.registry.claim.return_value = ClaimOutcome.AWAITING_REASON

    await cog.on_interaction(interaction)

    bot.services.registry.claim.assert_awaited_once_with(GROUP, CHANNEL, OWNER)
    interaction.response.send_message.assert_awaited_once_with(
        CLAIM_REPLIES[ClaimOutcome.AWAITING_REASON], ephemeral=True
    )


@pytest.mark.asyncio
async def test_conflict_is_answered_once(bot, interaction):
    cog = ApplicationsCog(bot)
    interaction.type = discord.InteractionType.component
    interaction.data = {"custom_id": f"claim:{GROUP}:{CHANNEL}"}
    bot.services.registry.claim.side_effect = AlreadyClaimed()

    await cog.on_interaction(interaction)

    interaction.response.send_message.assert_awaited_once_with(
        AlreadyClaimed.user_message, ephemeral=True
    )


@pytest.mark.asyncio
async def test_unexpected_error_gets_generic_reply(bot, interaction):
    cog = ApplicationsCog(bot)
    interaction.type = discord.InteractionType.component
    interaction.data = {"custom_id": f"approve:{GROUP}:{CHANNEL}"}
    bot.services.registry.decide.side_effect = RuntimeError("db")

    await cog.on_interaction(interaction)

    interaction.response.send_message.assert_awaited_once_with(GENERIC_FAILURE, ephemeral=True)


@pytest.mark.asyncio
async def test_approve_command_defaults_to_current_chat(bot, interaction):
    cog = ApplicationsCog(bot)
    bot.services.registry.decide.return_value = MagicMock(channel_id=CHANNEL, channel_title="Новости")

    await cog.approve.callback(cog, interaction, str(CHANNEL))

    bot.services.registry.decide.assert_awaited_once_with(GROUP, CHANNEL, True, OWNER)


@pytest.mark.asyncio
async def test_whitelist_command_rejects_bad_id(bot, interaction):
    cog = WhitelistCog(bot)

    await cog.whitelist.callback(cog, interaction, "не число")

    bot.services.whitelist.add.assert_not_awaited()
    interaction.response.send_message.assert_awaited_once()


@pytest.mark.asyncio
async def test_help_lists_user_and_admin_commands(bot, interaction):
    cog = WhitelistCog(bot)

    await cog.help.callback(cog, interaction)

    interaction.response.send_message.assert_awaited_once()
    kwargs = interaction.response.send_message.await_args.kwargs
    assert kwargs["ephemeral"] is True
    text = "\n".join(field.value for field in kwargs["embed"].fields)
    for command in ("/apply", "/claim", "/list_channels", "/stats", "/whitelist", "/approve", "/reject", "/settings"):
        assert command in text


def pending_in(*chat_ids):
    return [MagicMock(chat_id=chat_id, channel_id=CHANNEL) for chat_id in chat_ids]


@pytest.mark.asyncio
async def test_claim_command_ignores_other_chats(bot, interaction):
    cog = ApplicationsCog(bot)
    bot.services.registry.find_pending_by_channel.return_value = pending_in(GROUP + 1)

    await cog.claim.callback(cog, interaction, str(CHANNEL))

    bot.services.registry.claim.assert_not_awaited()
    interaction.response.send_message.assert_awaited_once_with(
        ApplicationNotFound.user_message, ephemeral=True
    )


@pytest.mark.asyncio
async def test_claim_command_in_private_asks_for_chat(bot, interaction):
    cog = ApplicationsCog(bot)
    interaction.guild = None
    bot.services.registry.find_pending_by_channel.return_value = pending_in(GROUP, GROUP + 1)

    await cog.claim.callback(cog, interaction, str(CHANNEL))

    bot.services.registry.claim.assert_not_awaited()
    interaction.response.send_message.assert_awaited_once_with(CHOOSE_CHAT, ephemeral=True)


@pytest.mark.asyncio
async def test_claim_command_with_explicit_chat(bot, interaction):
    cog = ApplicationsCog(bot)
    interaction.guild = None
    bot.services.registry.find_pending_by_channel.return_value = pending_in(GROUP, GROUP + 1)
    bot.services.registry.claim.return_value = ClaimOutcome.CLAIMED

    await cog.claim.callback(cog, interaction, str(CHANNEL), str(GROUP + 1))

    bot.services.registry.claim.assert_awaited_once_with(GROUP + 1, CHANNEL, OWNER)
