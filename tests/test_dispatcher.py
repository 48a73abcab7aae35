import pytest

from autoirrigation.mapping import StatusField
from autoirrigation.models import DeviceStatus


@pytest.mark.parametrize("topic, payload, field, expected", [
    ("dev1/status/sprinkler/position", b"12.5", "sprinkler_position", 12.5),
    ("dev1/status/valve/position", b"-3", "valve_position", -3.0),
    ("dev1/status/sprinkler/calib_complete", b"1", "sprinkler_calib_complete", True),
    ("dev1/status/valve/calib_complete", b"True", "valve_calib_complete", True),
    ("dev1/status/valve/is_at_target", b"t", "valve_is_at_target", True),
    ("dev1/status/task/current_index", b"4", "task_current_index", 4),
    ("dev1/status/task/current_count", b"9", "task_current_count", 9),
    ("dev1/status/task/array", b"[10,20]", "task_array", "[10,20]"),
    ("dev1/status/task/all_complete", b"TRUE", "task_all_complete", True),
    ("dev1/status/health_check", "true", "health_check", True),
])
def test_known_topics_update_the_store(dispatcher, store, topic, payload, field, expected):
    assert dispatcher.dispatch(topic, payload) is True
    assert getattr(store.get("dev1"), field) == expected


def test_false_values_are_stored(dispatcher, store):
    dispatcher.dispatch("dev1/status/health_check", b"1")

    assert dispatcher.dispatch("dev1/status/health_check", b"F") is True
    assert store.get("dev1").health_check is False


@pytest.mark.parametrize("topic", [
    "dev1/status",
    "dev1/cmd/sprinkler/home",
    "/status/health_check",
    "dev1/status/battery/voltage",
])
def test_unexpected_topics_are_dropped(dispatcher, store, topic):
    assert dispatcher.dispatch(topic, b"1") is False
    assert store.device_ids() == []


@pytest.mark.parametrize("topic, payload", [
    ("dev1/status/health_check", b"yes"),
    ("dev1/status/task/current_index", b"1.5"),
    ("dev1/status/valve/position", b"abc"),
    ("dev1/status/health_check", b"\xff"),
])
def test_unparseable_values_are_discarded(dispatcher, store, topic, payload):
    assert dispatcher.dispatch(topic, payload) is False
    assert store.get("dev1").is_zero()


def test_every_status_field_feeds_a_device_attribute():
    attributes = {f.attribute for f in StatusField}
    assert attributes == set(DeviceStatus.field_names())
