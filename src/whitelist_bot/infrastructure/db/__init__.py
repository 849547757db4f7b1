"""Инфраструктурные адаптеры БД."""

from whitelist_bot.infrastructure.db.applications_repository import ApplicationsRepository
from whitelist_bot.infrastructure.db.blocked_messages_repository import BlockedMessagesRepository
from whitelist_bot.infrastructure.db.group_settings_repository import GroupSettingsRepository
from whitelist_bot.infrastructure.db.prompts_repository import PromptsRepository
from whitelist_bot.infrastructure.db.user_state_repository import UserStateRepository
from whitelist_bot.infrastructure.db.whitelist_repository import WhitelistRepository

__all__ = [
    "ApplicationsRepository",
    "BlockedMessagesRepository",
    "GroupSettingsRepository",
    "PromptsRepository",
    "UserStateRepository",
    "WhitelistRepository",
]
