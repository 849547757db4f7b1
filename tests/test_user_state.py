from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from whitelist_bot.application.models import AwaitingReason, Idle
from whitelist_bot.infrastructure.db import UserStateRepository
from whitelist_bot.infrastructure.db.user_state_repository import (
    STATE_TTL_SECONDS,
    decode_state,
)

from conftest import CHANNEL, GROUP, OWNER


@pytest.mark.asyncio
async def test_sqlite_state_roundtrip(db):
    states = UserStateRepository(db)

    assert await states.get(OWNER) == Idle()
    await states.set(OWNER, AwaitingReason(GROUP, CHANNEL))
    await states.set(OWNER, AwaitingReason(GROUP, CHANNEL + 1))
    assert await states.get(OWNER) == AwaitingReason(GROUP, CHANNEL + 1)

    await states.clear(OWNER)
    assert await states.get(OWNER) == Idle()


@pytest.mark.asyncio
async def test_redis_is_used_when_available(db):
    db.redis = MagicMock()
    db.redis.get.return_value = json.dumps(
        {"kind": "awaiting_reason", "chat_id": GROUP, "channel_id": CHANNEL}
    )
    states = UserStateRepository(db)

    await states.set(OWNER, AwaitingReason(GROUP, CHANNEL))
    state = await states.get(OWNER)
    await states.clear(OWNER)

    assert state == AwaitingReason(GROUP, CHANNEL)
    db.redis.set.assert_called_once()
    args, kwargs = db.redis.set.call_args
    assert args[0] == f"user_state:{OWNER}"
    assert kwargs["ex"] == STATE_TTL_SECONDS
    db.redis.delete.assert_called_once_with(f"user_state:{OWNER}")
    db.redis = None


def test_garbage_state_decodes_to_idle():
    assert decode_state("waiting_reason:1:2") == Idle()
    assert decode_state(None) == Idle()
