from datetime import datetime, time, timedelta, timezone

import pytest

from autoirrigation.models import DeviceConfig, DeviceType
from autoirrigation.triggers import DailyTimeTrigger, TriggerStrategyFactory

BANGKOK = timezone(timedelta(hours=7))


def at(hour, minute=0, day=1):
    return datetime(2024, 5, day, hour, minute, tzinfo=BANGKOK)


@pytest.mark.asyncio
async def test_fires_once_when_the_time_passes():
    trigger = DailyTimeTrigger("dev", time(6, 0))

    assert await trigger.should_trigger(at(5, 0)) is False   # arms
    assert await trigger.should_trigger(at(5, 59)) is False
    assert await trigger.should_trigger(at(6, 0)) is True
    assert await trigger.should_trigger(at(6, 1)) is False
    assert await trigger.should_trigger(at(6, 0, day=2)) is True
    assert trigger.execution_count == 2


@pytest.mark.asyncio
async def test_window_already_passed_is_not_replayed():
    trigger = DailyTimeTrigger("dev", time(6, 0))

    assert await trigger.should_trigger(at(9, 0)) is False
    assert await trigger.should_trigger(at(9, 1)) is False
    assert trigger.next_fire == at(6, 0, day=2)


@pytest.mark.asyncio
async def test_missed_days_are_skipped():
    trigger = DailyTimeTrigger("dev", time(6, 0))
    await trigger.should_trigger(at(5, 0))

    assert await trigger.should_trigger(at(7, 0, day=4)) is True
    assert trigger.next_fire == at(6, 0, day=5)


@pytest.mark.asyncio
async def test_next_check_interval():
    trigger = DailyTimeTrigger("dev", time(6, 0))
    assert trigger.get_next_check_interval(at(5, 0)) == 0.0

    await trigger.should_trigger(at(5, 0))

    assert trigger.get_next_check_interval(at(5, 30)) == 1800.0


@pytest.mark.asyncio
async def test_reset_state_rearms():
    trigger = DailyTimeTrigger("dev", time(6, 0))
    await trigger.should_trigger(at(5, 0))
    await trigger.should_trigger(at(6, 0))

    trigger.reset_state()

    assert trigger.next_fire is None
    assert trigger.execution_count == 0


def test_factory_builds_one_trigger_per_schedule_time():
    device = DeviceConfig(id="dev", type=DeviceType.SPRINKLER, schedule_times=["06:00", "18:30"])

    triggers = TriggerStrategyFactory.create_for_device(device)

    assert [t.at for t in triggers] == [time(6, 0), time(18, 30)]


def test_factory_rejects_unknown_strategies():
    device = DeviceConfig(id="dev", type=DeviceType.SPRINKLER)

    with pytest.raises(ValueError):
        TriggerStrategyFactory.create_for_device(device, "hourly")
