"""Репозиторий ежедневных уведомлений (SQLite)."""

from __future__ import annotations

from whitelist_bot.application.contracts import PromptsRepositoryContract
from whitelist_bot.database.db import Database


class PromptsRepository(PromptsRepositoryContract):
    """Отметки об отправленных уведомлениях, по одной на (группа, канал, вид, день)."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def exists(self, chat_id: int, channel_id: int, kind: str, day: str) -> bool:
        row = await self._db.fetch_one(
            "SELECT 1 FROM channel_daily_prompts WHERE chat_id = ? AND channel_id = ? AND prompt_type = ? AND prompt_date = ?",
            (chat_id, channel_id, kind, day),
        )
        return row is not None

    async def insert_ignore(self, chat_id: int, channel_id: int, kind: str, day: str) -> bool:
        inserted = await self._db.execute(
            "INSERT OR IGNORE INTO channel_daily_prompts (chat_id, channel_id, prompt_type, prompt_date) VALUES (?, ?, ?, ?)",
            (chat_id, channel_id, kind, day),
        )
        return inserted > 0

    async def delete(self, chat_id: int, channel_id: int, kind: str, day: str) -> bool:
        removed = await self._db.execute(
            "DELETE FROM channel_daily_prompts WHERE chat_id = ? AND channel_id = ? AND prompt_type = ? AND prompt_date = ?",
            (chat_id, channel_id, kind, day),
        )
        return removed > 0

    async def delete_except(self, day: str) -> int:
        return await self._db.execute(
            "DELETE FROM channel_daily_prompts WHERE prompt_date != ?",
            (day,),
        )
