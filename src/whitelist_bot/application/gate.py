"""Решение модерации для входящего поста."""

from __future__ import annotations

import logging

from whitelist_bot.application import notices
from whitelist_bot.application.blocked_recorder import BlockedMessageRecorder
from whitelist_bot.application.contracts import (
    GroupSettingsRepositoryContract,
    MessagingTransport,
    WhitelistRepositoryContract,
)
from whitelist_bot.application.deletion_actor import DeletionActor
from whitelist_bot.application.errors import AlreadyPending
from whitelist_bot.application.models import (
    BlockedMessage,
    Decision,
    InboundPost,
    PromptKind,
    Verdict,
)
from whitelist_bot.application.prompt_throttle import PromptThrottle
from whitelist_bot.application.registry import ApplicationRegistry
from whitelist_bot.utils.monitoring import track_decision, track_notice

logger = logging.getLogger(__name__)


class ModerationGate:
    """Пропускает посты каналов из белого списка, остальные скрывает.

    Удаление и запись в журнал только ставятся в очередь: решение не ждет
    их и не зависит от их результата.
    """

    def __init__(
        self,
        whitelist: WhitelistRepositoryContract,
        settings: GroupSettingsRepositoryContract,
        registry: ApplicationRegistry,
        throttle: PromptThrottle,
        recorder: BlockedMessageRecorder,
        deletions: DeletionActor,
        transport: MessagingTransport,
    ) -> None:
        self._whitelist = whitelist
        self._settings = settings
        self._registry = registry
        self._throttle = throttle
        self._recorder = recorder
        self._deletions = deletions
        self._transport = transport

    async def evaluate(self, post: InboundPost) -> Verdict:
        verdict = await self._evaluate(post)
        track_decision(verdict.decision.value)
        return verdict

    async def _evaluate(self, post: InboundPost) -> Verdict:
        if not post.is_channel_post:
            return Verdict(Decision.PASS)

        settings = await self._settings.get_or_create(post.chat_id)
        if not settings.enabled:
            return Verdict(Decision.PASS)

        if await self._whitelist.is_whitelisted(post.chat_id, post.channel_id):
            return Verdict(Decision.ALLOW)

        reason = notices.parse_apply_command(post.text)
        if reason is not None:
            try:
                await self._registry.submit(
                    post.chat_id, post.channel_id, reason, post.channel_title
                )
                return Verdict(Decision.SUBMITTED)
            except AlreadyPending:
                logger.debug(f"Повторная заявка канала {post.channel_id} в {post.chat_id}")

        pending = await self._registry.get_pending(post.chat_id, post.channel_id)
        kind = PromptKind.HAS_PENDING_APPLICATION if pending else PromptKind.NEEDS_APPLICATION

        self._dispatch(post)

        notice_sent = False
        day = self._throttle.day()
        if await self._throttle.try_record(post.chat_id, post.channel_id, kind, day):
            notice_sent = await self._notify(post, kind)
            if not notice_sent:
                await self._throttle.release(post.chat_id, post.channel_id, kind, day)
            elif pending is not None:
                await self._registry.record_prompt(post.chat_id, post.channel_id, day)
        return Verdict(Decision.SUPPRESSED, kind, notice_sent)

    def _dispatch(self, post: InboundPost) -> None:
        try:
            self._deletions.submit(post.chat_id, post.message_id)
        except Exception as e:
            logger.error(f"Не удалось поставить сообщение {post.message_id} в очередь удаления: {e}")
        try:
            self._recorder.enqueue(
                BlockedMessage(
                    chat_id=post.chat_id,
                    channel_id=post.channel_id,
                    message_id=post.message_id,
                    text=post.text,
                )
            )
        except Exception as e:
            logger.error(f"Не удалось записать сообщение {post.message_id} в журнал: {e}")

    async def _notify(self, post: InboundPost, kind: PromptKind) -> bool:
        if kind is PromptKind.HAS_PENDING_APPLICATION:
            text = notices.has_pending_application(post.channel_id, post.channel_title)
        else:
            text = notices.needs_application(post.channel_id, post.channel_title)
        try:
            await self._transport.send(post.chat_id, text)
        except Exception as e:
            logger.warning(f"Не удалось отправить уведомление в {post.chat_id}: {e}")
            return False
        track_notice(kind.value)
        return True
