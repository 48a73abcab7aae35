import threading

import pytest

from autoirrigation.mapping import DeviceStatusStore
from autoirrigation.models import DeviceStatus


def test_unseen_device_is_zero_valued():
    store = DeviceStatusStore()

    status = store.get("never-seen")

    assert status == DeviceStatus()
    assert status.is_zero()
    assert "never-seen" in store.device_ids()


def test_get_returns_a_snapshot():
    store = DeviceStatusStore()
    store.update("dev", "health_check", True)

    snapshot = store.get("dev")
    snapshot.health_check = False

    assert store.get("dev").health_check is True


def test_reset_overrides_every_field():
    store = DeviceStatusStore()
    store.update("dev", "task_all_complete", True)
    store.update("dev", "sprinkler_position", 42.5)
    store.update("dev", "task_array", "[1,2]")

    store.reset("dev")

    assert store.get("dev").is_zero()


def test_update_rejects_unknown_fields():
    store = DeviceStatusStore()

    with pytest.raises(ValueError):
        store.update("dev", "battery", 3.3)


def test_devices_are_isolated():
    store = DeviceStatusStore()
    store.update("a", "health_check", True)

    assert store.get("b").health_check is False


def test_concurrent_writers_and_readers():
    store = DeviceStatusStore()

    def writer(n):
        for i in range(200):
            store.update(f"dev{n}", "task_current_index", i)

    def reader():
        for _ in range(200):
            store.get("dev0")

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    threads += [threading.Thread(target=reader) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert all(store.get(f"dev{n}").task_current_index == 199 for n in range(4))
