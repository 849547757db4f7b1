from __future__ import annotations

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from whitelist_bot.application.daily_reset import DailyResetScheduler, seconds_until_midnight


class ScriptedClock:
    def __init__(self, *moments: datetime) -> None:
        self._moments = list(moments)

    def __call__(self) -> datetime:
        if len(self._moments) > 1:
            return self._moments.pop(0)
        return self._moments[0]


def test_seconds_until_midnight():
    assert seconds_until_midnight(datetime(2024, 3, 1, 23, 0, 0)) == 3600
    assert seconds_until_midnight(datetime(2024, 3, 1, 0, 0, 0)) == 24 * 3600


@pytest.mark.asyncio
async def test_resets_after_midnight():
    throttle = MagicMock()
    throttle.reset_all = AsyncMock(return_value=3)
    sleep = AsyncMock()
    clock = ScriptedClock(datetime(2024, 3, 1, 23, 0, 0), datetime(2024, 3, 2, 0, 0, 1))
    scheduler = DailyResetScheduler(throttle, clock=clock, sleep=sleep)

    assert await scheduler.run_once()

    sleep.assert_awaited_once_with(3600)
    throttle.reset_all.assert_awaited_once()


@pytest.mark.asyncio
async def test_no_second_reset_on_same_day():
    throttle = MagicMock()
    throttle.reset_all = AsyncMock(return_value=0)
    sleep = AsyncMock()
    clock = ScriptedClock(
        datetime(2024, 3, 1, 23, 0, 0),
        datetime(2024, 3, 2, 0, 0, 1),
        # Проснулись раньше полуночи: все еще 2 марта
        datetime(2024, 3, 2, 23, 30, 0),
        datetime(2024, 3, 2, 23, 59, 59),
    )
    scheduler = DailyResetScheduler(throttle, clock=clock, sleep=sleep)

    assert await scheduler.run_once()
    assert not await scheduler.run_once()

    throttle.reset_all.assert_awaited_once()
    assert sleep.await_args_list[1].args[0] == 1800


@pytest.mark.asyncio
async def test_failed_reset_is_retried_next_cycle():
    throttle = MagicMock()
    throttle.reset_all = AsyncMock(side_effect=[RuntimeError("db"), 1])
    clock = ScriptedClock(
        datetime(2024, 3, 1, 23, 0, 0),
        datetime(2024, 3, 2, 0, 0, 1),
        datetime(2024, 3, 2, 0, 0, 2),
        datetime(2024, 3, 3, 0, 0, 1),
    )
    scheduler = DailyResetScheduler(throttle, clock=clock, sleep=AsyncMock())

    assert not await scheduler.run_once()
    assert await scheduler.run_once()
    assert throttle.reset_all.await_count == 2
