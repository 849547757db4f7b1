"""Репозиторий заявок каналов (SQLite)."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional

from whitelist_bot.application.contracts import ApplicationsRepositoryContract
from whitelist_bot.application.models import Application, ApplicationStatus
from whitelist_bot.database.db import Database

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, chat_id, channel_id, user_id, reason, channel_title, applied_at, status, "
    "verified_channel, last_prompt_date"
)


def _now() -> str:
    return datetime.now().isoformat(sep=" ", timespec="microseconds")


def _from_row(row: Dict[str, Any]) -> Application:
    return Application(
        id=row["id"],
        chat_id=row["chat_id"],
        channel_id=row["channel_id"],
        user_id=row["user_id"] or 0,
        reason=row["reason"] or "",
        applied_at=str(row["applied_at"]),
        status=ApplicationStatus(row["status"]),
        verified=bool(row["verified_channel"]),
        channel_title=row["channel_title"] or "",
        last_prompt_date=row["last_prompt_date"],
    )


class ApplicationsRepository(ApplicationsRepositoryContract):
    """Доступ к заявкам каналов в БД.

    Все изменения выполняются одним условным UPDATE, поэтому конкурентные
    вызовы не могут одновременно пройти проверку состояния.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    async def get_pending(self, chat_id: int, channel_id: int) -> Optional[Application]:
        row = await self._db.fetch_one(
            f"SELECT {_COLUMNS} FROM channel_applications WHERE chat_id = ? AND channel_id = ? AND status = 'pending' ORDER BY applied_at DESC, id DESC LIMIT 1",
            (chat_id, channel_id),
        )
        return _from_row(row) if row else None

    async def get_latest(self, chat_id: int, channel_id: int) -> Optional[Application]:
        row = await self._db.fetch_one(
            f"SELECT {_COLUMNS} FROM channel_applications WHERE chat_id = ? AND channel_id = ? ORDER BY applied_at DESC, id DESC LIMIT 1",
            (chat_id, channel_id),
        )
        return _from_row(row) if row else None

    async def list_pending_for_channel(self, channel_id: int) -> List[Application]:
        rows = await self._db.fetch_all(
            f"SELECT {_COLUMNS} FROM channel_applications WHERE channel_id = ? AND status = 'pending' ORDER BY applied_at ASC",
            (channel_id,),
        )
        return [_from_row(row) for row in rows]

    async def open(
        self,
        chat_id: int,
        channel_id: int,
        reason: str,
        channel_title: str = "",
    ) -> Optional[Application]:
        """Открыть заявку. Возвращает None, если заявка уже на рассмотрении.

        Последняя завершенная заявка пары переиспользуется вместо новой строки.
        """
        latest = await self.get_latest(chat_id, channel_id)
        if latest is not None and latest.status is ApplicationStatus.PENDING:
            return None

        try:
            if latest is not None:
                reopened = await self._db.execute(
                    "UPDATE channel_applications SET user_id = 0, reason = ?, channel_title = ?, applied_at = ?, status = 'pending', verified_channel = 0, decided_by = NULL, last_prompt_date = NULL WHERE id = ? AND status != 'pending'",
                    (reason, channel_title, _now(), latest.id),
                )
                if not reopened:
                    return None
            else:
                await self._db.execute(
                    "INSERT INTO channel_applications (chat_id, channel_id, user_id, reason, channel_title, applied_at, status, verified_channel) VALUES (?, ?, 0, ?, ?, ?, 'pending', 0)",
                    (chat_id, channel_id, reason, channel_title, _now()),
                )
        except sqlite3.IntegrityError:
            # Параллельная подача уже создала заявку на рассмотрении
            return None

        return await self.get_pending(chat_id, channel_id)

    async def assign_claimant(
        self,
        chat_id: int,
        channel_id: int,
        user_id: int,
        verify: bool,
        reason: Optional[str] = None,
    ) -> bool:
        updated = await self._db.execute(
            """
            UPDATE channel_applications
            SET user_id = ?,
                reason = COALESCE(?, reason),
                verified_channel = CASE WHEN ? THEN 1 ELSE verified_channel END
            WHERE chat_id = ? AND channel_id = ? AND status = 'pending'
              AND (user_id = 0 OR user_id = ?)
            """,
            (user_id, reason, 1 if verify else 0, chat_id, channel_id, user_id),
        )
        return updated > 0

    async def mark_verified(self, chat_id: int, channel_id: int, user_id: int) -> bool:
        updated = await self._db.execute(
            "UPDATE channel_applications SET verified_channel = 1 WHERE chat_id = ? AND channel_id = ? AND status = 'pending' AND user_id = ? AND user_id != 0 AND verified_channel = 0",
            (chat_id, channel_id, user_id),
        )
        return updated > 0

    async def decide(
        self,
        chat_id: int,
        channel_id: int,
        status: ApplicationStatus,
        acting_admin: int,
    ) -> Optional[Application]:
        """Завершить проверенную заявку. При одобрении канал попадает в белый список.

        Возвращает заявку до изменения или None, если завершать нечего.
        """
        async with self._db.transaction() as conn:
            async with conn.execute(
                f"SELECT {_COLUMNS} FROM channel_applications WHERE chat_id = ? AND channel_id = ? AND status = 'pending' AND verified_channel = 1 LIMIT 1",
                (chat_id, channel_id),
            ) as cursor:
                row = await cursor.fetchone()
            if row is None:
                return None
            application = _from_row(dict(row))

            await conn.execute(
                "UPDATE channel_applications SET status = ?, decided_by = ? WHERE id = ? AND status = 'pending'",
                (status.value, acting_admin, application.id),
            )
            if status is ApplicationStatus.APPROVED:
                await conn.execute(
                    "INSERT OR IGNORE INTO whitelisted_channels (chat_id, channel_id, added_by, added_at, description) VALUES (?, ?, ?, ?, ?)",
                    (
                        chat_id,
                        channel_id,
                        application.user_id,
                        datetime.now().isoformat(sep=" ", timespec="seconds"),
                        application.reason,
                    ),
                )
        logger.info(
            f"Заявка канала {channel_id} в группе {chat_id}: {status.value} (администратор {acting_admin})"
        )
        return application

    async def touch_prompt_date(self, chat_id: int, channel_id: int, day: str) -> None:
        await self._db.execute(
            "UPDATE channel_applications SET last_prompt_date = ? WHERE chat_id = ? AND channel_id = ? AND status = 'pending'",
            (day, chat_id, channel_id),
        )
