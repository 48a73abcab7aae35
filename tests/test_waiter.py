from unittest.mock import Mock

import pytest

from autoirrigation.core.patterns import wait_for


@pytest.mark.asyncio
async def test_first_satisfying_tick_wins(clock):
    predicate = Mock(side_effect=[False, False, True])

    ok = await wait_for(predicate, timeout=60, interval=2, clock=clock, sleep=clock.sleep)

    assert ok is True
    assert clock.sleeps == [2, 2, 2]
    assert predicate.call_count == 3


@pytest.mark.asyncio
async def test_times_out_at_the_deadline_without_backoff(clock):
    predicate = Mock(return_value=False)

    ok = await wait_for(predicate, timeout=5, interval=2, clock=clock, sleep=clock.sleep)

    assert ok is False
    assert clock.sleeps == [2, 2, 1]


@pytest.mark.asyncio
async def test_no_check_before_the_first_interval(clock):
    predicate = Mock(return_value=True)

    await wait_for(predicate, timeout=10, interval=2, clock=clock, sleep=clock.sleep)

    assert clock.sleeps == [2]


@pytest.mark.asyncio
async def test_a_late_tick_does_not_count(clock):
    predicate = Mock(return_value=True)

    async def slow_sleep(seconds):
        clock.advance(seconds + 5)

    ok = await wait_for(predicate, timeout=1, interval=2, clock=clock, sleep=slow_sleep)

    assert ok is False
    predicate.assert_not_called()


@pytest.mark.asyncio
async def test_zero_timeout_never_polls(clock):
    predicate = Mock(return_value=True)

    assert await wait_for(predicate, timeout=0, clock=clock, sleep=clock.sleep) is False
    predicate.assert_not_called()
