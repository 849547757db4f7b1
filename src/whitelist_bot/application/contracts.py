"""Контракты (Protocols) для application слоя."""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence, runtime_checkable

from whitelist_bot.application.models import (
    ActionButton,
    Application,
    ApplicationStatus,
    BlockedMessage,
    DeleteOutcome,
    GroupSettings,
    UserState,
    WhitelistEntry,
)


@runtime_checkable
class WhitelistRepositoryContract(Protocol):
    async def is_whitelisted(self, chat_id: int, channel_id: int) -> bool:
        ...

    async def add(
        self,
        chat_id: int,
        channel_id: int,
        added_by: int,
        description: str = "",
    ) -> bool:
        ...

    async def remove(self, chat_id: int, channel_id: int) -> bool:
        ...

    async def list_for_chat(self, chat_id: int) -> List[WhitelistEntry]:
        ...

    async def count_for_chat(self, chat_id: int) -> int:
        ...


@runtime_checkable
class ApplicationsRepositoryContract(Protocol):
    async def get_pending(self, chat_id: int, channel_id: int) -> Optional[Application]:
        ...

    async def get_latest(self, chat_id: int, channel_id: int) -> Optional[Application]:
        ...

    async def list_pending_for_channel(self, channel_id: int) -> List[Application]:
        ...

    async def open(
        self,
        chat_id: int,
        channel_id: int,
        reason: str,
        channel_title: str = "",
    ) -> Optional[Application]:
        ...

    async def assign_claimant(
        self,
        chat_id: int,
        channel_id: int,
        user_id: int,
        verify: bool,
        reason: Optional[str] = None,
    ) -> bool:
        ...

    async def mark_verified(self, chat_id: int, channel_id: int, user_id: int) -> bool:
        ...

    async def decide(
        self,
        chat_id: int,
        channel_id: int,
        status: ApplicationStatus,
        acting_admin: int,
    ) -> Optional[Application]:
        ...

    async def touch_prompt_date(self, chat_id: int, channel_id: int, day: str) -> None:
        ...


@runtime_checkable
class PromptsRepositoryContract(Protocol):
    async def exists(self, chat_id: int, channel_id: int, kind: str, day: str) -> bool:
        ...

    async def insert_ignore(self, chat_id: int, channel_id: int, kind: str, day: str) -> bool:
        ...

    async def delete(self, chat_id: int, channel_id: int, kind: str, day: str) -> bool:
        ...

    async def delete_except(self, day: str) -> int:
        ...


@runtime_checkable
class BlockedMessagesRepositoryContract(Protocol):
    async def insert_batch(self, records: Sequence[BlockedMessage]) -> None:
        ...

    async def insert_one(self, record: BlockedMessage) -> None:
        ...

    async def count_for_chat(self, chat_id: int) -> int:
        ...


@runtime_checkable
class UserStateRepositoryContract(Protocol):
    async def get(self, user_id: int) -> UserState:
        ...

    async def set(self, user_id: int, state: UserState) -> None:
        ...

    async def clear(self, user_id: int) -> None:
        ...


@runtime_checkable
class GroupSettingsRepositoryContract(Protocol):
    async def get_or_create(self, chat_id: int) -> GroupSettings:
        ...

    async def update(self, settings: GroupSettings) -> None:
        ...


@runtime_checkable
class MessagingTransport(Protocol):
    """Граница с платформой сообщений."""

    async def send(
        self,
        target_id: int,
        text: str,
        buttons: Optional[Sequence[ActionButton]] = None,
    ) -> None:
        ...

    async def delete(self, chat_id: int, message_id: int) -> DeleteOutcome:
        ...

    async def is_administrator(self, chat_id: int, user_id: int) -> bool:
        ...

    async def administrators(self, chat_id: int) -> List[int]:
        ...
