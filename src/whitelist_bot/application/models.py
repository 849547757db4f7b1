"""Доменные модели application слоя."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApplicationStage(str, enum.Enum):
    """Состояние заявки.

    Все состояния, кроме ожидания причины, вычисляются по строке в БД.
    PENDING_AWAITING_REASON хранится не в заявке, а в курсоре пользователя
    (AwaitingReason), см. ApplicationRegistry.stage_for.
    """

    PENDING_UNCLAIMED = "pending-unclaimed"
    PENDING_AWAITING_REASON = "pending-awaiting-reason"
    PENDING_CLAIMED = "pending-claimed"
    PENDING_VERIFIED = "pending-verified"
    APPROVED = "approved"
    REJECTED = "rejected"


class PromptKind(str, enum.Enum):
    """Вид ежедневного уведомления. У каждого вида свой лимит в сутки."""

    NEEDS_APPLICATION = "whitelist_warning"
    HAS_PENDING_APPLICATION = "pending_notice"


class Decision(str, enum.Enum):
    PASS = "pass"
    ALLOW = "allow"
    SUPPRESSED = "suppressed"
    SUBMITTED = "submitted"


class ClaimOutcome(str, enum.Enum):
    AWAITING_REASON = "awaiting-reason"
    CLAIMED = "claimed"
    VERIFIED = "verified"


class DeleteOutcome(str, enum.Enum):
    DELETED = "deleted"
    TRANSIENT = "transient"
    PERMANENT = "permanent"


@dataclass(frozen=True)
class InboundPost:
    """Входящий пост в группе.

    ``channel_id`` равен ``None``, если отправитель не канал.
    """

    chat_id: int
    message_id: int
    channel_id: Optional[int]
    text: str = ""
    channel_title: str = ""
    author_id: int = 0

    @property
    def is_channel_post(self) -> bool:
        return self.channel_id is not None


@dataclass(frozen=True)
class Verdict:
    decision: Decision
    notice_kind: Optional[PromptKind] = None
    notice_sent: bool = False


@dataclass(frozen=True)
class WhitelistEntry:
    chat_id: int
    channel_id: int
    added_by: int
    added_at: str
    description: str = ""


@dataclass(frozen=True)
class Application:
    id: int
    chat_id: int
    channel_id: int
    user_id: int
    reason: str
    applied_at: str
    status: ApplicationStatus
    verified: bool
    channel_title: str = ""
    last_prompt_date: Optional[str] = None

    @property
    def claimed(self) -> bool:
        return self.user_id != 0

    @property
    def stage(self) -> ApplicationStage:
        if self.status is ApplicationStatus.APPROVED:
            return ApplicationStage.APPROVED
        if self.status is ApplicationStatus.REJECTED:
            return ApplicationStage.REJECTED
        if self.verified:
            return ApplicationStage.PENDING_VERIFIED
        if self.claimed:
            return ApplicationStage.PENDING_CLAIMED
        return ApplicationStage.PENDING_UNCLAIMED

    @property
    def display_name(self) -> str:
        return self.channel_title or f"ID: {self.channel_id}"


@dataclass(frozen=True)
class BlockedMessage:
    chat_id: int
    channel_id: int
    message_id: int
    text: str = ""
    blocked_at: Optional[datetime] = None


@dataclass(frozen=True)
class GroupSettings:
    chat_id: int
    enabled: bool = True
    admin_only: bool = True


@dataclass(frozen=True)
class ActionButton:
    label: str
    custom_id: str
    danger: bool = False


@dataclass(frozen=True)
class Idle:
    """Пользователь ничего не вводит."""


@dataclass(frozen=True)
class AwaitingReason:
    """Пользователь должен прислать в личные сообщения причину заявки."""

    chat_id: int
    channel_id: int


UserState = Union[Idle, AwaitingReason]


def today() -> date:
    return date.today()
