"""Репозиторий белого списка (SQLite)."""

from __future__ import annotations

from datetime import datetime
from typing import List

from whitelist_bot.application.contracts import WhitelistRepositoryContract
from whitelist_bot.application.models import WhitelistEntry
from whitelist_bot.database.db import Database


class WhitelistRepository(WhitelistRepositoryContract):
    """Доступ к белому списку каналов в БД."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def is_whitelisted(self, chat_id: int, channel_id: int) -> bool:
        row = await self._db.fetch_one(
            "SELECT 1 FROM whitelisted_channels WHERE chat_id = ? AND channel_id = ?",
            (chat_id, channel_id),
        )
        return row is not None

    async def add(
        self,
        chat_id: int,
        channel_id: int,
        added_by: int,
        description: str = "",
    ) -> bool:
        inserted = await self._db.execute(
            "INSERT OR IGNORE INTO whitelisted_channels (chat_id, channel_id, added_by, added_at, description) VALUES (?, ?, ?, ?, ?)",
            (
                chat_id,
                channel_id,
                added_by,
                datetime.now().isoformat(sep=" ", timespec="seconds"),
                description,
            ),
        )
        return inserted > 0

    async def remove(self, chat_id: int, channel_id: int) -> bool:
        deleted = await self._db.execute(
            "DELETE FROM whitelisted_channels WHERE chat_id = ? AND channel_id = ?",
            (chat_id, channel_id),
        )
        return deleted > 0

    async def list_for_chat(self, chat_id: int) -> List[WhitelistEntry]:
        rows = await self._db.fetch_all(
            "SELECT chat_id, channel_id, added_by, added_at, description FROM whitelisted_channels WHERE chat_id = ? ORDER BY added_at DESC, id DESC",
            (chat_id,),
        )
        return [
            WhitelistEntry(
                chat_id=row["chat_id"],
                channel_id=row["channel_id"],
                added_by=row["added_by"],
                added_at=str(row["added_at"]),
                description=row["description"] or "",
            )
            for row in rows
        ]

    async def count_for_chat(self, chat_id: int) -> int:
        row = await self._db.fetch_one(
            "SELECT COUNT(*) AS total FROM whitelisted_channels WHERE chat_id = ?",
            (chat_id,),
        )
        return int(row["total"]) if row else 0
