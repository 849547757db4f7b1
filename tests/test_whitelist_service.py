from __future__ import annotations

import pytest

from whitelist_bot.application.errors import (
    AlreadyWhitelisted,
    NotWhitelisted,
    PermissionDenied,
)
from whitelist_bot.application.models import BlockedMessage, GroupSettings
from whitelist_bot.application.permissions import AdminPolicy
from whitelist_bot.application.whitelist import WhitelistService
from whitelist_bot.infrastructure.db import (
    BlockedMessagesRepository,
    GroupSettingsRepository,
    WhitelistRepository,
)

from conftest import ADMIN, CHANNEL, GROUP, OWNER


@pytest.fixture
def service_ctx(db, transport):
    settings = GroupSettingsRepository(db, default_admin_only=True)
    blocked = BlockedMessagesRepository(db)
    service = WhitelistService(
        WhitelistRepository(db),
        settings,
        blocked,
        AdminPolicy(transport),
    )
    return service, settings, blocked


@pytest.mark.asyncio
async def test_admin_adds_and_removes_channel(service_ctx):
    service, _, _ = service_ctx

    await service.add(GROUP, CHANNEL, ADMIN, "партнеры")
    with pytest.raises(AlreadyWhitelisted):
        await service.add(GROUP, CHANNEL, ADMIN)

    entries = await service.list(GROUP)
    assert [(e.channel_id, e.description) for e in entries] == [(CHANNEL, "партнеры")]

    await service.remove(GROUP, CHANNEL, ADMIN)
    with pytest.raises(NotWhitelisted):
        await service.remove(GROUP, CHANNEL, ADMIN)


@pytest.mark.asyncio
async def test_admin_only_group_rejects_members(service_ctx):
    service, settings, _ = service_ctx

    with pytest.raises(PermissionDenied):
        await service.add(GROUP, CHANNEL, OWNER)

    await settings.update(GroupSettings(chat_id=GROUP, enabled=True, admin_only=False))
    await service.add(GROUP, CHANNEL, OWNER)
    assert len(await service.list(GROUP)) == 1


@pytest.mark.asyncio
async def test_enable_disable_requires_admin(service_ctx):
    service, _, _ = service_ctx

    with pytest.raises(PermissionDenied):
        await service.set_enabled(GROUP, OWNER, False)

    updated = await service.set_enabled(GROUP, ADMIN, False)
    assert not updated.enabled
    assert not (await service.settings(GROUP)).enabled


@pytest.mark.asyncio
async def test_stats_counts_channels_and_blocked_messages(service_ctx):
    service, _, blocked = service_ctx
    await service.add(GROUP, CHANNEL, ADMIN)
    await blocked.insert_batch(
        [BlockedMessage(GROUP, CHANNEL + 1, 1), BlockedMessage(GROUP, CHANNEL + 1, 2)]
    )

    stats = await service.stats(GROUP)

    assert stats.whitelisted == 1
    assert stats.blocked == 2
