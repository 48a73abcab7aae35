# device_service.py - typed loading of the device configuration file

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Union

from autoirrigation.core.exceptions import ConfigurationError
from autoirrigation.models import DeviceConfig, DeviceType

log = logging.getLogger(__name__)

_CLOCK_TIME = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


def validate_device_row(row: Any, index: int) -> List[str]:
    """Every problem with one device entry, prefixed with its position."""
    where = f"devices[{index}]"
    if not isinstance(row, dict):
        return [f"{where}: expected an object, got {type(row).__name__}"]

    problems = []
    device_id = row.get("id")
    if not isinstance(device_id, str) or not device_id.strip():
        problems.append(f"{where}: 'id' is required and must be a non-empty string")
    else:
        where = f"{where} ({device_id})"

    if not isinstance(row.get("type"), str) or not row["type"].strip():
        problems.append(f"{where}: 'type' is required and must be a string")

    times = row.get("scheduleTimes", [])
    if not isinstance(times, list):
        problems.append(f"{where}: 'scheduleTimes' must be a list")
    else:
        for t in times:
            if not isinstance(t, str) or (t.strip() and not _CLOCK_TIME.match(t.strip())):
                problems.append(f"{where}: invalid schedule time {t!r} (expected HH:MM)")

    duration = row.get("scheduleDuration", 0)
    if isinstance(duration, bool) or not isinstance(duration, int) or duration < 0:
        problems.append(f"{where}: 'scheduleDuration' must be a non-negative integer")

    task_ids = row.get("taskIds", [])
    if not isinstance(task_ids, list) or not all(isinstance(t, str) and t for t in task_ids):
        problems.append(f"{where}: 'taskIds' must be a list of non-empty strings")

    return problems


def parse_device_configs(document: Any) -> List[DeviceConfig]:
    """Build device configs from `{"devices": [...]}` or a bare list.

    All violations are collected and raised together.
    """
    rows = document.get("devices") if isinstance(document, dict) else document
    if not isinstance(rows, list):
        raise ConfigurationError("device configuration must be a list or an object with a 'devices' list")

    problems: List[str] = []
    seen: Dict[str, int] = {}
    for index, row in enumerate(rows):
        row_problems = validate_device_row(row, index)
        problems.extend(row_problems)
        if not row_problems:
            device_id = row["id"].strip()
            if device_id in seen:
                problems.append(f"devices[{index}]: duplicate id '{device_id}' (first at devices[{seen[device_id]}])")
            seen.setdefault(device_id, index)

    if problems:
        raise ConfigurationError("invalid device configuration", problems)

    devices = [DeviceConfig.from_row(row) for row in rows]
    for device in devices:
        if device.type is DeviceType.UNRECOGNIZED:
            log.warning(f"Device '{device.id}' has unrecognized type '{device.raw_type}'; it will be skipped")
    return devices


def load_device_configs(path: Union[str, Path]) -> List[DeviceConfig]:
    path = Path(path)
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"failed to open device config file '{path}': {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"failed to parse device config JSON '{path}': {e}") from e

    devices = parse_device_configs(document)
    log.info(f"Loaded {len(devices)} devices from {path}")
    return devices
