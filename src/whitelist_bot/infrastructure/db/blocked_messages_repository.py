"""Журнал заблокированных сообщений (SQLite)."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence, Tuple

from whitelist_bot.application.contracts import BlockedMessagesRepositoryContract
from whitelist_bot.application.models import BlockedMessage
from whitelist_bot.database.db import Database

_INSERT = (
    "INSERT INTO blocked_messages (chat_id, channel_id, message_id, blocked_at, message_text) "
    "VALUES (?, ?, ?, ?, ?)"
)


def _params(record: BlockedMessage) -> Tuple:
    blocked_at = record.blocked_at or datetime.now()
    return (
        record.chat_id,
        record.channel_id,
        record.message_id,
        blocked_at.isoformat(sep=" ", timespec="seconds"),
        record.text,
    )


class BlockedMessagesRepository(BlockedMessagesRepositoryContract):
    """Запись журнала только добавляется, строки не изменяются."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def insert_batch(self, records: Sequence[BlockedMessage]) -> None:
        # Вся пачка в одной транзакции: либо все строки, либо ни одной
        async with self._db.transaction() as conn:
            await conn.executemany(_INSERT, [_params(record) for record in records])

    async def insert_one(self, record: BlockedMessage) -> None:
        await self._db.execute(_INSERT, _params(record))

    async def count_for_chat(self, chat_id: int) -> int:
        row = await self._db.fetch_one(
            "SELECT COUNT(*) AS total FROM blocked_messages WHERE chat_id = ?",
            (chat_id,),
        )
        return int(row["total"]) if row else 0
