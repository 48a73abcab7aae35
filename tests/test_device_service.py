import json

import pytest

from autoirrigation.core.exceptions import ConfigurationError
from autoirrigation.models import DeviceType
from autoirrigation.services import load_device_configs, parse_device_configs


def test_parses_devices_object(tmp_path):
    path = tmp_path / "devices.json"
    path.write_text(json.dumps({"devices": [
        {"id": "sprinkler-01", "type": "iot_sprinkler", "scheduleTimes": ["06:00", " 18:30 ", ""],
         "taskIds": ["zone-a", "zone-b"]},
        {"id": "pot-01", "type": "Plant-Pot", "scheduleTimes": ["07:00"], "scheduleDuration": 30},
    ]}))

    sprinkler, pot = load_device_configs(path)

    assert sprinkler.type is DeviceType.SPRINKLER
    assert sprinkler.schedule_times == ["06:00", "18:30"]
    assert sprinkler.task_ids == ["zone-a", "zone-b"]
    assert pot.type is DeviceType.PLANT_POT
    assert pot.schedule_duration == 30


def test_accepts_a_bare_list():
    devices = parse_device_configs([{"id": "a", "type": "sprinkler"}])

    assert [d.id for d in devices] == ["a"]


def test_unrecognized_type_is_kept_with_raw_value():
    device, = parse_device_configs([{"id": "m", "type": "lawnmower"}])

    assert device.type is DeviceType.UNRECOGNIZED
    assert device.raw_type == "lawnmower"


def test_all_violations_are_reported_together():
    with pytest.raises(ConfigurationError) as excinfo:
        parse_device_configs({"devices": [
            {"id": "", "type": "sprinkler"},
            {"id": "a", "type": "sprinkler", "scheduleTimes": ["25:00"]},
            {"id": "b", "type": "plant-pot", "scheduleDuration": -1},
            {"id": "c", "taskIds": ["ok", 3]},
            {"id": "d", "type": "sprinkler"},
            {"id": "d", "type": "sprinkler"},
        ]})

    violations = excinfo.value.violations
    assert len(violations) == 6
    assert any("'id' is required" in v for v in violations)
    assert any("25:00" in v for v in violations)
    assert any("scheduleDuration" in v for v in violations)
    assert any("'type' is required" in v for v in violations)
    assert any("taskIds" in v for v in violations)
    assert any("duplicate id 'd'" in v for v in violations)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="failed to open"):
        load_device_configs(tmp_path / "nope.json")


def test_invalid_json(tmp_path):
    path = tmp_path / "devices.json"
    path.write_text("{")

    with pytest.raises(ConfigurationError, match="failed to parse"):
        load_device_configs(path)
