"""Topic-suffix to status-field table for inbound device telemetry."""
from enum import Enum
from typing import Any, Callable, Dict, Optional

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


def parse_bool(raw: str) -> bool:
    value = raw.strip()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"invalid boolean: {raw!r}")


def parse_int(raw: str) -> int:
    return int(raw.strip(), 10)


def parse_float(raw: str) -> float:
    return float(raw.strip())


def parse_str(raw: str) -> str:
    return raw


class StatusField(Enum):
    """Every status path a device reports, with the field and type it feeds.

    Member value is the topic path after `<deviceID>/status/`.
    """
    SPRINKLER_POSITION = "sprinkler/position"
    VALVE_POSITION = "valve/position"
    SPRINKLER_CALIB_COMPLETE = "sprinkler/calib_complete"
    VALVE_CALIB_COMPLETE = "valve/calib_complete"
    VALVE_IS_AT_TARGET = "valve/is_at_target"
    TASK_CURRENT_INDEX = "task/current_index"
    TASK_CURRENT_COUNT = "task/current_count"
    TASK_ARRAY = "task/array"
    TASK_ALL_COMPLETE = "task/all_complete"
    HEALTH_CHECK = "health_check"

    @property
    def suffix(self) -> str:
        return self.value

    @property
    def attribute(self) -> str:
        return _ATTRIBUTES[self]

    def parse(self, raw: str) -> Any:
        return _PARSERS[self](raw)

    @classmethod
    def from_suffix(cls, suffix: str) -> Optional["StatusField"]:
        try:
            return cls(suffix)
        except ValueError:
            return None


_ATTRIBUTES: Dict[StatusField, str] = {
    StatusField.SPRINKLER_POSITION: "sprinkler_position",
    StatusField.VALVE_POSITION: "valve_position",
    StatusField.SPRINKLER_CALIB_COMPLETE: "sprinkler_calib_complete",
    StatusField.VALVE_CALIB_COMPLETE: "valve_calib_complete",
    StatusField.VALVE_IS_AT_TARGET: "valve_is_at_target",
    StatusField.TASK_CURRENT_INDEX: "task_current_index",
    StatusField.TASK_CURRENT_COUNT: "task_current_count",
    StatusField.TASK_ARRAY: "task_array",
    StatusField.TASK_ALL_COMPLETE: "task_all_complete",
    StatusField.HEALTH_CHECK: "health_check",
}

_PARSERS: Dict[StatusField, Callable[[str], Any]] = {
    StatusField.SPRINKLER_POSITION: parse_float,
    StatusField.VALVE_POSITION: parse_float,
    StatusField.SPRINKLER_CALIB_COMPLETE: parse_bool,
    StatusField.VALVE_CALIB_COMPLETE: parse_bool,
    StatusField.VALVE_IS_AT_TARGET: parse_bool,
    StatusField.TASK_CURRENT_INDEX: parse_int,
    StatusField.TASK_CURRENT_COUNT: parse_int,
    StatusField.TASK_ARRAY: parse_str,
    StatusField.TASK_ALL_COMPLETE: parse_bool,
    StatusField.HEALTH_CHECK: parse_bool,
}

if not set(_ATTRIBUTES) == set(StatusField) == set(_PARSERS):
    raise RuntimeError("status field tables do not cover every StatusField member")
