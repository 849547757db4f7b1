"""Настройки групп (SQLite)."""

from __future__ import annotations

from whitelist_bot.application.contracts import GroupSettingsRepositoryContract
from whitelist_bot.application.models import GroupSettings
from whitelist_bot.database.db import Database


class GroupSettingsRepository(GroupSettingsRepositoryContract):
    """Строка настроек создается при первом чтении.

    Args:
        db: База данных
        default_admin_only: Значение admin_only для новых групп
    """

    def __init__(self, db: Database, default_admin_only: bool = True) -> None:
        self._db = db
        self._default_admin_only = default_admin_only

    async def _fetch(self, chat_id: int):
        return await self._db.fetch_one(
            "SELECT chat_id, admin_only, enabled FROM group_settings WHERE chat_id = ?",
            (chat_id,),
        )

    async def get_or_create(self, chat_id: int) -> GroupSettings:
        row = await self._fetch(chat_id)
        if row is None:
            # Запись только для новой группы
            await self._db.execute(
                "INSERT OR IGNORE INTO group_settings (chat_id, admin_only, enabled) VALUES (?, ?, 1)",
                (chat_id, 1 if self._default_admin_only else 0),
            )
            row = await self._fetch(chat_id)
        return GroupSettings(
            chat_id=row["chat_id"],
            enabled=bool(row["enabled"]),
            admin_only=bool(row["admin_only"]),
        )

    async def update(self, settings: GroupSettings) -> None:
        await self._db.execute(
            "INSERT INTO group_settings (chat_id, admin_only, enabled) VALUES (?, ?, ?) "
            "ON CONFLICT(chat_id) DO UPDATE SET admin_only = excluded.admin_only, enabled = excluded.enabled",
            (settings.chat_id, 1 if settings.admin_only else 0, 1 if settings.enabled else 0),
        )
