from __future__ import annotations

from unittest.mock import patch

import pytest

from whitelist_bot.application.models import GroupSettings
from whitelist_bot.infrastructure.db import GroupSettingsRepository

from conftest import GROUP


@pytest.mark.asyncio
async def test_existing_settings_are_read_without_writing(db):
    repository = GroupSettingsRepository(db, default_admin_only=False)

    created = await repository.get_or_create(GROUP)
    with patch.object(db, "execute", wraps=db.execute) as execute:
        again = await repository.get_or_create(GROUP)

    assert created == GroupSettings(chat_id=GROUP, enabled=True, admin_only=False)
    assert again == created
    execute.assert_not_called()


@pytest.mark.asyncio
async def test_update_is_visible_on_next_read(db):
    repository = GroupSettingsRepository(db)
    await repository.get_or_create(GROUP)

    await repository.update(GroupSettings(chat_id=GROUP, enabled=False, admin_only=True))

    assert (await repository.get_or_create(GROUP)).enabled is False
