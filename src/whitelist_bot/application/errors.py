"""Исключения application слоя."""

from __future__ import annotations

from typing import Optional


class WhitelistBotError(Exception):
    """Базовое исключение бота.

    Текст исключения можно показывать пользователю как есть.
    """

    user_message = "Не удалось выполнить действие"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.user_message)


class ConflictError(WhitelistBotError):
    """Конфликт состояния заявки или белого списка. Никогда не повторяется."""


class AlreadyPending(ConflictError):
    user_message = "У этого канала уже есть заявка на рассмотрении"


class AlreadyClaimed(ConflictError):
    user_message = "Эта заявка уже подтверждена другим пользователем"


class AlreadyDecided(ConflictError):
    user_message = "По этой заявке уже принято решение"


class AlreadyWhitelisted(ConflictError):
    user_message = "Этот канал уже в белом списке"


class ApplicationNotFound(WhitelistBotError):
    user_message = "Заявка этого канала на рассмотрении не найдена"


class NotWhitelisted(WhitelistBotError):
    user_message = "Этого канала нет в белом списке"


class InvalidApplicationState(WhitelistBotError):
    user_message = "Заявка находится в другом состоянии"


class PermissionDenied(WhitelistBotError):
    user_message = "Недостаточно прав для этого действия"


class TransientStorageBusy(WhitelistBotError):
    """База данных занята (database is locked), операцию можно повторить."""

    user_message = "База данных занята"


class TransientRateLimited(WhitelistBotError):
    """Платформа ограничила частоту запросов, операцию можно повторить."""

    user_message = "Слишком много запросов"


class PermanentTransportError(WhitelistBotError):
    """Сообщение уже удалено или у бота нет прав. Повторять бессмысленно."""

    user_message = "Действие на платформе невозможно"


class RetryExhausted(WhitelistBotError):
    """Исчерпаны попытки повтора."""

    user_message = "Исчерпаны попытки повтора"

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"{self.user_message} ({attempts}): {last_error}")
        self.attempts = attempts
        self.last_error = last_error
