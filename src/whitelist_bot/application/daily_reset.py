"""Ежедневный сброс отметок уведомлений в полночь по местному времени."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Awaitable, Callable, Optional

from whitelist_bot.application.prompt_throttle import PromptThrottle

logger = logging.getLogger(__name__)


def seconds_until_midnight(now: datetime) -> float:
    next_midnight = datetime.combine(now.date() + timedelta(days=1), datetime.min.time())
    return max(0.0, (next_midnight - now).total_seconds())


class DailyResetScheduler:
    """Спит до следующей полуночи, затем вызывает ``reset_all``.

    Цель пересчитывается на каждом круге. Если после пробуждения день не
    сменился (перевод часов назад), сброс не выполняется.
    """

    def __init__(
        self,
        throttle: PromptThrottle,
        clock: Callable[[], datetime] = datetime.now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._throttle = throttle
        self._clock = clock
        self._sleep = sleep
        self._last_reset_day: Optional[date] = None
        self._task: Optional[asyncio.Task] = None

    async def run_once(self) -> bool:
        """Один круг: ожидание полуночи и сброс. True, если сброс выполнен."""
        delay = seconds_until_midnight(self._clock())
        logger.debug(f"Следующий сброс уведомлений через {delay:.0f}с")
        await self._sleep(delay)

        current_day = self._clock().date()
        if current_day == self._last_reset_day:
            return False
        try:
            await self._throttle.reset_all()
        except Exception as e:
            logger.error(f"Ошибка ежедневного сброса уведомлений: {e}")
            return False
        self._last_reset_day = current_day
        return True

    async def _run(self) -> None:
        while True:
            await self.run_once()

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._last_reset_day = self._clock().date()
        self._task = asyncio.create_task(self._run(), name="daily-prompt-reset")
        logger.info("Планировщик ежедневного сброса запущен")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Планировщик ежедневного сброса остановлен")
