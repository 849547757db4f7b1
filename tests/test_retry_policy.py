from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from whitelist_bot.application.errors import (
    RetryExhausted,
    TransientRateLimited,
    TransientStorageBusy,
)
from whitelist_bot.application.retry import RetryPolicy, quadratic_backoff, retry_on


def make_policy(sleep):
    return RetryPolicy(
        max_attempts=5,
        backoff=quadratic_backoff(0.1),
        is_retryable=retry_on(TransientStorageBusy),
        sleep=sleep,
    )


def test_quadratic_backoff_grows_with_attempt():
    backoff = quadratic_backoff(0.5)

    assert [backoff(n) for n in range(4)] == pytest.approx([0.5, 2.0, 4.5, 8.0])


@pytest.mark.asyncio
async def test_retries_until_success():
    sleep = AsyncMock()
    operation = AsyncMock(side_effect=[TransientStorageBusy(), TransientStorageBusy(), "ok"])

    result = await make_policy(sleep).run(operation)

    assert result == "ok"
    assert operation.await_count == 3
    delays = [call.args[0] for call in sleep.await_args_list]
    assert delays == pytest.approx([0.1, 0.4])


@pytest.mark.asyncio
async def test_non_retryable_error_is_raised_immediately():
    sleep = AsyncMock()
    operation = AsyncMock(side_effect=TransientRateLimited())

    with pytest.raises(TransientRateLimited):
        await make_policy(sleep).run(operation)

    assert operation.await_count == 1
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_exhaustion_raises_retry_exhausted():
    sleep = AsyncMock()
    operation = AsyncMock(side_effect=TransientStorageBusy("locked"))

    with pytest.raises(RetryExhausted) as exc_info:
        await make_policy(sleep).run(operation)

    assert exc_info.value.attempts == 5
    assert isinstance(exc_info.value.last_error, TransientStorageBusy)
    assert operation.await_count == 5
    assert sleep.await_count == 4
