"""Application слой: решения модерации и заявки каналов."""

from whitelist_bot.application.blocked_recorder import BlockedMessageRecorder
from whitelist_bot.application.daily_reset import DailyResetScheduler
from whitelist_bot.application.deletion_actor import DeletionActor
from whitelist_bot.application.gate import ModerationGate
from whitelist_bot.application.permissions import AdminPolicy
from whitelist_bot.application.prompt_throttle import PromptThrottle
from whitelist_bot.application.registry import ApplicationRegistry
from whitelist_bot.application.retry import RetryPolicy
from whitelist_bot.application.whitelist import WhitelistService, WhitelistStats

__all__ = [
    "AdminPolicy",
    "ApplicationRegistry",
    "BlockedMessageRecorder",
    "DailyResetScheduler",
    "DeletionActor",
    "ModerationGate",
    "PromptThrottle",
    "RetryPolicy",
    "WhitelistService",
    "WhitelistStats",
]
