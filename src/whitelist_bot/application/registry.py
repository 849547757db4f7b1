"""Заявки каналов на право писать в группе."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from whitelist_bot.application import notices
from whitelist_bot.application.contracts import (
    ApplicationsRepositoryContract,
    MessagingTransport,
    UserStateRepositoryContract,
)
from whitelist_bot.application.errors import (
    AlreadyClaimed,
    AlreadyDecided,
    AlreadyPending,
    ApplicationNotFound,
    InvalidApplicationState,
    PermissionDenied,
)
from whitelist_bot.application.models import (
    ActionButton,
    Application,
    ApplicationStage,
    ApplicationStatus,
    AwaitingReason,
    ClaimOutcome,
)
from whitelist_bot.application.permissions import AdminPolicy
from whitelist_bot.utils.monitoring import track_transition

logger = logging.getLogger(__name__)


class ApplicationRegistry:
    """Жизненный цикл заявки для пары (группа, канал).

    pending (без владельца) -> ожидание причины -> владелец назначен ->
    подтверждено -> одобрено или отклонено. После решения пара может подать
    заявку заново.

    Каждый переход выполняется условной записью в БД. Если запись не прошла,
    состояние перечитывается только для выбора исключения.

    Args:
        applications: Репозиторий заявок
        user_states: Состояния диалогов в личных сообщениях
        transport: Отправка уведомлений
        policy: Проверка прав администратора
        require_verification: Нужно ли отдельное подтверждение владения каналом
    """

    def __init__(
        self,
        applications: ApplicationsRepositoryContract,
        user_states: UserStateRepositoryContract,
        transport: MessagingTransport,
        policy: AdminPolicy,
        require_verification: bool = True,
    ) -> None:
        self._applications = applications
        self._user_states = user_states
        self._transport = transport
        self._policy = policy
        self._require_verification = require_verification

    async def submit(
        self,
        chat_id: int,
        channel_id: int,
        reason: str = "",
        channel_title: str = "",
    ) -> Application:
        application = await self._applications.open(
            chat_id, channel_id, (reason or "").strip(), channel_title
        )
        if application is None:
            raise AlreadyPending()

        track_transition("submitted")
        logger.info(f"Канал {channel_id} подал заявку в {chat_id}")
        await self._send(
            chat_id,
            notices.application_submitted(application),
            notices.submitted_buttons(chat_id, channel_id),
        )
        return application

    async def claim(self, chat_id: int, channel_id: int, user_id: int) -> ClaimOutcome:
        application = await self._applications.get_pending(chat_id, channel_id)
        if application is None:
            raise ApplicationNotFound()
        if application.claimed and application.user_id != user_id:
            raise AlreadyClaimed()
        if application.verified:
            return ClaimOutcome.VERIFIED

        if not application.reason:
            # Владелец назначается только вместе с причиной
            await self._user_states.set(user_id, AwaitingReason(chat_id, channel_id))
            track_transition("awaiting_reason")
            await self._send(user_id, notices.ask_reason(application))
            return ClaimOutcome.AWAITING_REASON

        return await self._assign(chat_id, channel_id, user_id, reason=None)

    async def supply_reason(
        self,
        chat_id: int,
        channel_id: int,
        user_id: int,
        reason: str,
    ) -> ClaimOutcome:
        state = await self._user_states.get(user_id)
        if state != AwaitingReason(chat_id, channel_id):
            raise InvalidApplicationState("Бот не ожидает от вас причину для этой заявки")
        reason = (reason or "").strip()
        if not reason:
            raise InvalidApplicationState("Причина не может быть пустой")

        try:
            outcome = await self._assign(chat_id, channel_id, user_id, reason=reason)
        except (AlreadyClaimed, ApplicationNotFound, InvalidApplicationState):
            await self._user_states.clear(user_id)
            raise
        await self._user_states.clear(user_id)
        return outcome

    async def _assign(
        self,
        chat_id: int,
        channel_id: int,
        user_id: int,
        reason: Optional[str],
    ) -> ClaimOutcome:
        verify_now = not self._require_verification
        assigned = await self._applications.assign_claimant(
            chat_id, channel_id, user_id, verify_now, reason
        )
        if not assigned:
            await self._raise_claim_conflict(chat_id, channel_id, user_id)

        track_transition("claimed")
        logger.info(f"Пользователь {user_id} подтвердил заявку канала {channel_id} в {chat_id}")
        application = await self._applications.get_pending(chat_id, channel_id)
        if application is None:
            raise ApplicationNotFound()

        if verify_now:
            await self._announce_verified(application)
            return ClaimOutcome.VERIFIED

        await self._send(
            user_id,
            notices.confirm_claim(application),
            notices.confirm_buttons(chat_id, channel_id),
        )
        return ClaimOutcome.CLAIMED

    async def _raise_claim_conflict(self, chat_id: int, channel_id: int, user_id: int) -> None:
        current = await self._applications.get_pending(chat_id, channel_id)
        if current is None:
            raise ApplicationNotFound()
        if current.claimed and current.user_id != user_id:
            raise AlreadyClaimed()
        raise InvalidApplicationState()

    async def verify(self, chat_id: int, channel_id: int, user_id: int) -> Application:
        verified = await self._applications.mark_verified(chat_id, channel_id, user_id)
        if not verified:
            current = await self._applications.get_pending(chat_id, channel_id)
            if current is None:
                raise ApplicationNotFound()
            if current.user_id != user_id:
                raise InvalidApplicationState("Подтвердить заявку может только ее владелец")
            raise InvalidApplicationState("Заявка уже подтверждена")

        application = await self._applications.get_pending(chat_id, channel_id)
        if application is None:
            raise ApplicationNotFound()
        await self._announce_verified(application)
        return application

    async def _announce_verified(self, application: Application) -> None:
        track_transition("verified")
        for admin_id in await self._policy.reviewers(application.chat_id):
            await self._send(
                admin_id,
                notices.admin_review(application),
                notices.review_buttons(application.chat_id, application.channel_id),
            )
        await self._send(application.chat_id, notices.claimed_in_group(application))

    async def decide(
        self,
        chat_id: int,
        channel_id: int,
        approve: bool,
        acting_admin: int,
    ) -> Application:
        if not await self._policy.is_admin(chat_id, acting_admin):
            raise PermissionDenied()

        status = ApplicationStatus.APPROVED if approve else ApplicationStatus.REJECTED
        application = await self._applications.decide(chat_id, channel_id, status, acting_admin)
        if application is None:
            pending = await self._applications.get_pending(chat_id, channel_id)
            if pending is not None:
                raise InvalidApplicationState("Заявка еще не подтверждена владельцем канала")
            latest = await self._applications.get_latest(chat_id, channel_id)
            if latest is not None:
                raise AlreadyDecided()
            raise ApplicationNotFound()

        track_transition(status.value)
        if application.claimed:
            await self._send(application.user_id, notices.decision_for_claimant(application, approve))
        await self._send(chat_id, notices.decision_for_group(application, approve))
        return application

    async def get_pending(self, chat_id: int, channel_id: int) -> Optional[Application]:
        return await self._applications.get_pending(chat_id, channel_id)

    async def find_pending_by_channel(self, channel_id: int) -> List[Application]:
        return await self._applications.list_pending_for_channel(channel_id)

    async def record_prompt(self, chat_id: int, channel_id: int, day: str) -> None:
        await self._applications.touch_prompt_date(chat_id, channel_id, day)

    async def awaiting_reason(self, user_id: int) -> Optional[AwaitingReason]:
        state = await self._user_states.get(user_id)
        return state if isinstance(state, AwaitingReason) else None

    async def stage_for(
        self,
        chat_id: int,
        channel_id: int,
        user_id: int,
    ) -> Optional[ApplicationStage]:
        """Состояние заявки с точки зрения пользователя.

        Для заявки без владельца учитывается курсор пользователя: если он ждет
        причину для этой пары, состояние PENDING_AWAITING_REASON.
        """
        application = await self._applications.get_latest(chat_id, channel_id)
        if application is None:
            return None
        stage = application.stage
        if stage is ApplicationStage.PENDING_UNCLAIMED:
            cursor = await self.awaiting_reason(user_id)
            if cursor == AwaitingReason(chat_id, channel_id):
                return ApplicationStage.PENDING_AWAITING_REASON
        return stage

    async def cancel_awaiting(self, user_id: int) -> None:
        await self._user_states.clear(user_id)

    async def _send(
        self,
        target_id: int,
        text: str,
        buttons: Optional[Sequence[ActionButton]] = None,
    ) -> None:
        try:
            await self._transport.send(target_id, text, buttons)
        except Exception as e:
            logger.warning(f"Не удалось отправить уведомление {target_id}: {e}")
