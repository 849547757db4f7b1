from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from whitelist_bot.application import notices
from whitelist_bot.application.blocked_recorder import BlockedMessageRecorder
from whitelist_bot.application.deletion_actor import DeletionActor
from whitelist_bot.application.gate import ModerationGate
from whitelist_bot.application.models import (
    Decision,
    GroupSettings,
    InboundPost,
    PromptKind,
)
from whitelist_bot.application.permissions import AdminPolicy
from whitelist_bot.application.prompt_throttle import PromptThrottle
from whitelist_bot.application.registry import ApplicationRegistry
from whitelist_bot.infrastructure.db import (
    ApplicationsRepository,
    BlockedMessagesRepository,
    GroupSettingsRepository,
    PromptsRepository,
    UserStateRepository,
    WhitelistRepository,
)

from conftest import ADMIN, CHANNEL, GROUP


@pytest.fixture
def gate_ctx(db, transport, clock):
    registry = ApplicationRegistry(
        ApplicationsRepository(db),
        UserStateRepository(db),
        transport,
        AdminPolicy(transport),
    )
    recorder = BlockedMessageRecorder(BlockedMessagesRepository(db))
    deletions = DeletionActor(transport)
    settings = GroupSettingsRepository(db)
    gate = ModerationGate(
        WhitelistRepository(db),
        settings,
        registry,
        PromptThrottle(PromptsRepository(db), clock=clock),
        recorder,
        deletions,
        transport,
    )
    return gate, recorder, deletions, settings


def post(message_id, text="Реклама", channel_id=CHANNEL):
    return InboundPost(
        chat_id=GROUP,
        message_id=message_id,
        channel_id=channel_id,
        text=text,
        channel_title="Новости",
    )


@pytest.mark.asyncio
async def test_unlisted_channel_is_suppressed_with_one_notice(gate_ctx, transport):
    gate, recorder, deletions, _ = gate_ctx

    first = await gate.evaluate(post(1))
    second = await gate.evaluate(post(2))

    assert first.decision is Decision.SUPPRESSED
    assert first.notice_kind is PromptKind.NEEDS_APPLICATION
    assert first.notice_sent
    assert second.decision is Decision.SUPPRESSED
    assert not second.notice_sent
    assert transport.texts_to(GROUP) == [notices.needs_application(CHANNEL, "Новости")]
    assert recorder.pending == 2
    assert deletions.size() == 2


@pytest.mark.asyncio
async def test_whitelisted_channel_is_allowed(gate_ctx, db, transport):
    gate, recorder, deletions, _ = gate_ctx
    await WhitelistRepository(db).add(GROUP, CHANNEL, ADMIN)

    verdict = await gate.evaluate(post(1))

    assert verdict.decision is Decision.ALLOW
    assert recorder.pending == 0
    assert deletions.size() == 0
    assert transport.sent == []


@pytest.mark.asyncio
async def test_non_channel_post_passes(gate_ctx):
    gate, recorder, _, _ = gate_ctx

    verdict = await gate.evaluate(post(1, channel_id=None))

    assert verdict.decision is Decision.PASS
    assert recorder.pending == 0


@pytest.mark.asyncio
async def test_disabled_group_passes(gate_ctx):
    gate, recorder, _, settings = gate_ctx
    await settings.update(GroupSettings(chat_id=GROUP, enabled=False))

    verdict = await gate.evaluate(post(1))

    assert verdict.decision is Decision.PASS
    assert recorder.pending == 0


@pytest.mark.asyncio
async def test_apply_command_submits_application(gate_ctx, transport):
    gate, recorder, deletions, _ = gate_ctx

    verdict = await gate.evaluate(post(1, text="/apply новости города"))

    assert verdict.decision is Decision.SUBMITTED
    assert recorder.pending == 0
    assert deletions.size() == 0
    _, text, buttons = transport.sent[-1]
    assert "новости города" in text
    assert buttons[0].custom_id == f"claim:{GROUP}:{CHANNEL}"


@pytest.mark.asyncio
async def test_pending_application_gets_its_own_notice(gate_ctx, transport):
    gate, _, _, _ = gate_ctx
    await gate.evaluate(post(1))
    await gate.evaluate(post(2, text="/apply новости"))

    verdict = await gate.evaluate(post(3))
    repeated = await gate.evaluate(post(4, text="/apply еще раз"))

    assert verdict.notice_kind is PromptKind.HAS_PENDING_APPLICATION
    assert verdict.notice_sent
    assert repeated.decision is Decision.SUPPRESSED
    assert not repeated.notice_sent
    assert transport.texts_to(GROUP).count(
        notices.has_pending_application(CHANNEL, "Новости")
    ) == 1


@pytest.mark.asyncio
async def test_side_effect_failures_do_not_change_decision(gate_ctx):
    gate, _, _, _ = gate_ctx
    gate._recorder = MagicMock()
    gate._recorder.enqueue.side_effect = RuntimeError("buffer")
    gate._deletions = MagicMock()
    gate._deletions.submit.side_effect = RuntimeError("queue")

    verdict = await gate.evaluate(post(1))

    assert verdict.decision is Decision.SUPPRESSED


@pytest.mark.asyncio
async def test_notice_failure_keeps_suppression(gate_ctx, transport):
    gate, _, deletions, _ = gate_ctx
    transport.send = AsyncMock(side_effect=RuntimeError("discord"))

    verdict = await gate.evaluate(post(1))

    assert verdict.decision is Decision.SUPPRESSED
    assert not verdict.notice_sent
    assert deletions.size() == 1


@pytest.mark.asyncio
async def test_failed_notice_is_retried_on_next_post(gate_ctx, transport):
    gate, _, _, _ = gate_ctx
    working_send = transport.send
    transport.send = AsyncMock(side_effect=RuntimeError("discord"))

    first = await gate.evaluate(post(1))
    transport.send = working_send
    second = await gate.evaluate(post(2))
    third = await gate.evaluate(post(3))

    assert not first.notice_sent
    assert second.notice_sent
    assert not third.notice_sent
    assert transport.texts_to(GROUP) == [notices.needs_application(CHANNEL, "Новости")]
