from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

import pytest
import pytest_asyncio

from whitelist_bot.application.models import ActionButton, DeleteOutcome
from whitelist_bot.database.db import Database

GROUP = 1001
CHANNEL = 2002
OWNER = 3003
OTHER_USER = 3004
ADMIN = 4004


class FakeTransport:
    """Транспорт в памяти: запоминает отправленные и удаленные сообщения."""

    def __init__(self, admins: Optional[Dict[int, List[int]]] = None) -> None:
        self.admins = admins or {}
        self.sent: List[Tuple[int, str, Optional[Sequence[ActionButton]]]] = []
        self.deleted: List[Tuple[int, int]] = []
        self.delete_outcomes: List[DeleteOutcome] = []

    async def send(self, target_id, text, buttons=None):
        self.sent.append((target_id, text, buttons))

    async def delete(self, chat_id, message_id):
        self.deleted.append((chat_id, message_id))
        if self.delete_outcomes:
            return self.delete_outcomes.pop(0)
        return DeleteOutcome.DELETED

    async def is_administrator(self, chat_id, user_id):
        return user_id in self.admins.get(chat_id, [])

    async def administrators(self, chat_id):
        return list(self.admins.get(chat_id, []))

    def texts_to(self, target_id: int) -> List[str]:
        return [text for target, text, _ in self.sent if target == target_id]


class FixedDay:
    def __init__(self, day: date) -> None:
        self.day = day

    def __call__(self) -> date:
        return self.day


@pytest_asyncio.fixture
async def db(tmp_path):
    database = Database(db_path=str(tmp_path / "whitelist.db"), redis_url="", pool_size=2)
    await database.setup()
    yield database
    await database.close()


@pytest.fixture
def transport():
    return FakeTransport(admins={GROUP: [ADMIN]})


@pytest.fixture
def clock():
    return FixedDay(date(2024, 3, 1))
