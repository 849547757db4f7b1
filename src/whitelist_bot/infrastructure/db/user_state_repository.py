"""Временное состояние пользователя: Redis, если доступен, иначе SQLite."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from typing import Optional

from whitelist_bot.application.contracts import UserStateRepositoryContract
from whitelist_bot.application.models import AwaitingReason, Idle, UserState
from whitelist_bot.database.db import Database

logger = logging.getLogger(__name__)

STATE_TTL_SECONDS = 24 * 60 * 60


def encode_state(state: UserState) -> Optional[str]:
    if isinstance(state, AwaitingReason):
        return json.dumps(
            {"kind": "awaiting_reason", "chat_id": state.chat_id, "channel_id": state.channel_id}
        )
    return None


def decode_state(raw: Optional[str]) -> UserState:
    if not raw:
        return Idle()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Некорректное состояние пользователя: {raw!r}")
        return Idle()
    if data.get("kind") == "awaiting_reason":
        return AwaitingReason(chat_id=int(data["chat_id"]), channel_id=int(data["channel_id"]))
    return Idle()


class UserStateRepository(UserStateRepositoryContract):
    """Курсор многошагового диалога в личных сообщениях."""

    def __init__(self, db: Database) -> None:
        self._db = db

    @staticmethod
    def _key(user_id: int) -> str:
        return f"user_state:{user_id}"

    async def get(self, user_id: int) -> UserState:
        if self._db.redis is not None:
            raw = await asyncio.to_thread(self._db.redis.get, self._key(user_id))
            return decode_state(raw)

        row = await self._db.fetch_one(
            "SELECT state FROM user_states WHERE user_id = ?",
            (user_id,),
        )
        return decode_state(row["state"] if row else None)

    async def set(self, user_id: int, state: UserState) -> None:
        raw = encode_state(state)
        if raw is None:
            await self.clear(user_id)
            return

        if self._db.redis is not None:
            await asyncio.to_thread(
                self._db.redis.set, self._key(user_id), raw, ex=STATE_TTL_SECONDS
            )
            return

        await self._db.execute(
            "INSERT INTO user_states (user_id, state, updated_at) VALUES (?, ?, ?) "
            "ON CONFLICT(user_id) DO UPDATE SET state = excluded.state, updated_at = excluded.updated_at",
            (user_id, raw, datetime.now().isoformat(sep=" ", timespec="seconds")),
        )

    async def clear(self, user_id: int) -> None:
        if self._db.redis is not None:
            await asyncio.to_thread(self._db.redis.delete, self._key(user_id))
            return
        await self._db.execute("DELETE FROM user_states WHERE user_id = ?", (user_id,))
