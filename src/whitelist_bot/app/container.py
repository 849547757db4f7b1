"""DI-контейнер приложения."""

from __future__ import annotations

from dataclasses import dataclass

from whitelist_bot.app.config import BotConfig
from whitelist_bot.application import (
    AdminPolicy,
    ApplicationRegistry,
    BlockedMessageRecorder,
    DailyResetScheduler,
    DeletionActor,
    ModerationGate,
    PromptThrottle,
    WhitelistService,
)
from whitelist_bot.application.contracts import MessagingTransport
from whitelist_bot.database.db import Database
from whitelist_bot.infrastructure.db import (
    ApplicationsRepository,
    BlockedMessagesRepository,
    GroupSettingsRepository,
    PromptsRepository,
    UserStateRepository,
    WhitelistRepository,
)
from whitelist_bot.infrastructure.monitoring import init_monitoring


@dataclass(frozen=True)
class BotServices:
    """Контейнер зависимостей, требующих транспорт (экземпляр бота)."""

    gate: ModerationGate
    registry: ApplicationRegistry
    whitelist: WhitelistService
    policy: AdminPolicy
    throttle: PromptThrottle
    recorder: BlockedMessageRecorder
    deletions: DeletionActor
    scheduler: DailyResetScheduler


class Container:
    """Простой DI-контейнер с фабриками."""

    def __init__(self, config: BotConfig) -> None:
        self.config = config
        init_monitoring(config.use_metrics, config.metrics_port)
        self.db = Database(
            db_path=config.db_path,
            redis_url=config.redis_url,
            pool_size=config.db_pool_size,
        )
        self.initial_extensions = [
            "whitelist_bot.presentation.gate",
            "whitelist_bot.presentation.applications",
            "whitelist_bot.presentation.whitelist",
        ]

    def build_services(self, transport: MessagingTransport) -> BotServices:
        """Создать сервисы, которым нужен транспорт сообщений."""

        whitelist_repository = WhitelistRepository(self.db)
        settings_repository = GroupSettingsRepository(
            self.db, default_admin_only=self.config.admin_only_whitelist
        )
        blocked_repository = BlockedMessagesRepository(self.db)

        policy = AdminPolicy(transport, self.config.admin_users)
        throttle = PromptThrottle(PromptsRepository(self.db))
        recorder = BlockedMessageRecorder(blocked_repository, interval=self.config.flush_interval)
        deletions = DeletionActor(
            transport,
            workers=self.config.delete_workers,
            queue_size=self.config.delete_queue_size,
        )
        registry = ApplicationRegistry(
            ApplicationsRepository(self.db),
            UserStateRepository(self.db),
            transport,
            policy,
            require_verification=self.config.require_ownership_verification,
        )

        return BotServices(
            gate=ModerationGate(
                whitelist_repository,
                settings_repository,
                registry,
                throttle,
                recorder,
                deletions,
                transport,
            ),
            registry=registry,
            whitelist=WhitelistService(
                whitelist_repository,
                settings_repository,
                blocked_repository,
                policy,
            ),
            policy=policy,
            throttle=throttle,
            recorder=recorder,
            deletions=deletions,
            scheduler=DailyResetScheduler(throttle),
        )
