"""Тексты уведомлений и идентификаторы кнопок."""

from __future__ import annotations

from typing import List, Optional, Tuple

from whitelist_bot.application.models import ActionButton, Application

APPLY_PREFIXES = ("/apply", "!apply")

CLAIM = "claim"
VERIFY = "verify"
CANCEL_CLAIM = "cancel_claim"
APPROVE = "approve"
REJECT = "reject"


def parse_apply_command(text: str) -> Optional[str]:
    """Причина из команды подачи заявки или None, если это не команда.

    ``/apply новости города`` -> ``"новости города"``, ``/apply`` -> ``""``.
    """
    stripped = (text or "").strip()
    for prefix in APPLY_PREFIXES:
        if stripped == prefix:
            return ""
        if stripped.startswith(prefix) and stripped[len(prefix)].isspace():
            return stripped[len(prefix):].strip()
    return None


def build_custom_id(action: str, chat_id: int, channel_id: int) -> str:
    return f"{action}:{chat_id}:{channel_id}"


def parse_custom_id(custom_id: str) -> Optional[Tuple[str, int, int]]:
    parts = (custom_id or "").split(":")
    if len(parts) != 3:
        return None
    action, chat_raw, channel_raw = parts
    try:
        return action, int(chat_raw), int(channel_raw)
    except ValueError:
        return None


def channel_mention(channel_id: int, title: str = "") -> str:
    return f"«{title}»" if title else f"`{channel_id}`"


def needs_application(channel_id: int, title: str = "") -> str:
    return (
        f"Канал {channel_mention(channel_id, title)} не может писать в этом чате.\n"
        "Чтобы получить разрешение, отправьте от имени канала `/apply <причина>`."
    )


def has_pending_application(channel_id: int, title: str = "") -> str:
    return (
        f"Заявка канала {channel_mention(channel_id, title)} уже на рассмотрении. "
        "Сообщения канала удаляются до решения администратора."
    )


def application_submitted(application: Application) -> str:
    lines = [f"Канал {channel_mention(application.channel_id, application.channel_title)} подал заявку на право писать в чате."]
    if application.reason:
        lines.append(f"Причина: {application.reason}")
    lines.append("Владелец канала, нажмите «Подтвердить заявку».")
    return "\n".join(lines)


def submitted_buttons(chat_id: int, channel_id: int) -> List[ActionButton]:
    return [ActionButton("Подтвердить заявку", build_custom_id(CLAIM, chat_id, channel_id))]


def ask_reason(application: Application) -> str:
    return (
        f"Напишите в ответ причину заявки канала "
        f"{channel_mention(application.channel_id, application.channel_title)} в <#{application.chat_id}>."
    )


def confirm_claim(application: Application) -> str:
    return (
        f"Подтвердите, что вы владелец канала "
        f"{channel_mention(application.channel_id, application.channel_title)}."
    )


def confirm_buttons(chat_id: int, channel_id: int) -> List[ActionButton]:
    return [
        ActionButton("Подтвердить", build_custom_id(VERIFY, chat_id, channel_id)),
        ActionButton("Отмена", CANCEL_CLAIM, danger=True),
    ]


def claim_cancelled() -> str:
    return "Подтверждение отменено."


def admin_review(application: Application) -> str:
    return (
        f"Новая заявка в <#{application.chat_id}>\n"
        f"Канал: {channel_mention(application.channel_id, application.channel_title)} (`{application.channel_id}`)\n"
        f"Владелец: <@{application.user_id}>\n"
        f"Причина: {application.reason or 'не указана'}"
    )


def review_buttons(chat_id: int, channel_id: int) -> List[ActionButton]:
    return [
        ActionButton("Одобрить", build_custom_id(APPROVE, chat_id, channel_id)),
        ActionButton("Отклонить", build_custom_id(REJECT, chat_id, channel_id), danger=True),
    ]


def claimed_in_group(application: Application) -> str:
    return (
        f"Заявку канала {channel_mention(application.channel_id, application.channel_title)} "
        f"подтвердил <@{application.user_id}>. Администраторы скоро ее рассмотрят."
    )


def reason_saved() -> str:
    return "Причина сохранена."


def awaiting_verification() -> str:
    return "Заявка подтверждена и передана администраторам."


def decision_for_claimant(application: Application, approved: bool) -> str:
    name = channel_mention(application.channel_id, application.channel_title)
    if approved:
        return f"Заявка канала {name} в <#{application.chat_id}> одобрена."
    return f"Заявка канала {name} в <#{application.chat_id}> отклонена."


def decision_for_group(application: Application, approved: bool) -> str:
    name = channel_mention(application.channel_id, application.channel_title)
    if approved:
        return f"Канал {name} добавлен в белый список."
    return f"Заявка канала {name} отклонена."
