from __future__ import annotations
from dataclasses import dataclass, field, fields
from datetime import datetime, time
from enum import Enum
from typing import Any, Dict, List, Optional
import json
import re

from autoirrigation.core.exceptions import JobRecordError, TaskDefinitionError


###############################################################################
# 1. DEVICE CONFIG ------------------------------------------------------------
###############################################################################

class DeviceType(Enum):
    SPRINKLER = "sprinkler"
    PLANT_POT = "plant-pot"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def parse(cls, raw: Any) -> "DeviceType":
        aliases = {
            "sprinkler": cls.SPRINKLER,
            "iot_sprinkler": cls.SPRINKLER,
            "plant-pot": cls.PLANT_POT,
            "plant_pot": cls.PLANT_POT,
            "iot_plant_pot": cls.PLANT_POT,
        }
        if not isinstance(raw, str):
            return cls.UNRECOGNIZED
        return aliases.get(raw.strip().lower(), cls.UNRECOGNIZED)


@dataclass(frozen=True, slots=True)
class DeviceConfig:
    """Immutable projection of one entry of the device configuration file."""
    id: str
    type: DeviceType
    raw_type: str = ""
    schedule_times: List[str] = field(default_factory=list)
    schedule_duration: int = 0          # seconds, plant-pot trigger only
    task_ids: List[str] = field(default_factory=list)

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "DeviceConfig":
        raw_type = row.get("type") or ""
        return cls(
            id                = str(row["id"]).strip(),
            type              = DeviceType.parse(raw_type),
            raw_type          = str(raw_type),
            schedule_times    = [t.strip() for t in row.get("scheduleTimes") or [] if t.strip()],
            schedule_duration = int(row.get("scheduleDuration") or 0),
            task_ids          = list(row.get("taskIds") or []),
        )

    def schedule_clock_times(self) -> List[time]:
        return [_parse_time(t) for t in self.schedule_times]


###############################################################################
# 2. TASK DEFINITION ----------------------------------------------------------
###############################################################################

@dataclass(frozen=True, slots=True)
class TaskDefinition:
    """Descriptor of one externally defined task; the payload is opaque.

    `raw_payload` holds the payload's JSON text exactly as it appeared in the
    descriptor file; it is what gets published.
    """
    payload: Any
    timeout_minutes: int
    raw_payload: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any, raw_payload: Optional[str] = None) -> "TaskDefinition":
        if not isinstance(row, dict):
            raise TaskDefinitionError("task descriptor must be a JSON object")
        if "payload" not in row:
            raise TaskDefinitionError("task descriptor has no 'payload'")
        timeout = row.get("timeoutMinutes")
        if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
            raise TaskDefinitionError(f"'timeoutMinutes' must be a positive integer, got {timeout!r}")
        return cls(payload=row["payload"], timeout_minutes=timeout, raw_payload=raw_payload)

    @classmethod
    def from_json(cls, text: str) -> "TaskDefinition":
        try:
            row = json.loads(text)
        except json.JSONDecodeError as e:
            raise TaskDefinitionError(f"invalid JSON: {e}") from e
        raw = _raw_member(text, "payload") if isinstance(row, dict) else None
        return cls.from_row(row, raw_payload=raw)

    @property
    def encoded_payload(self) -> str:
        """JSON text published as the command body."""
        if self.raw_payload is not None:
            return self.raw_payload
        return json.dumps(self.payload, separators=(",", ":"), ensure_ascii=False)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_minutes * 60.0


###############################################################################
# 3. DEVICE STATUS ------------------------------------------------------------
###############################################################################

@dataclass(slots=True)
class DeviceStatus:
    """Latest known telemetry for one device; every field starts zero-valued."""
    health_check: bool = False
    sprinkler_calib_complete: bool = False
    valve_calib_complete: bool = False
    valve_is_at_target: bool = False
    task_all_complete: bool = False
    sprinkler_position: float = 0.0
    valve_position: float = 0.0
    task_current_index: int = 0
    task_current_count: int = 0
    task_array: str = ""

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls)]

    def is_zero(self) -> bool:
        return self == DeviceStatus()


###############################################################################
# 4. JOB HISTORY --------------------------------------------------------------
###############################################################################

class JobStatus(Enum):
    SCHEDULED = "scheduled"
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    CALIBRATION_TIMEOUT = "calibration_timeout"
    TASK_TIMEOUT = "task_timeout"
    TASK_ERROR = "task_error"

    @property
    def is_terminal(self) -> bool:
        return self not in (JobStatus.SCHEDULED, JobStatus.STARTED)


@dataclass
class JobRecord:
    """One row of the irrigation history."""
    device_id: str
    scheduled_at: datetime
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    status: JobStatus = JobStatus.SCHEDULED
    duration: int = 0                   # seconds from start to terminal status
    notes: str = ""
    id: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def mark(self, status: JobStatus, notes: Optional[str] = None, *, now: Optional[datetime] = None):
        """Record a phase boundary; terminal statuses go through `finish`."""
        if self.is_terminal:
            raise JobRecordError(f"job record {self.id} is already {self.status.value}")
        if status.is_terminal:
            self.finish(status, notes, now=now)
            return
        self.status = status
        if status is JobStatus.STARTED and self.started_at is None:
            self.started_at = now or datetime.now()
        if notes is not None:
            self.notes = notes

    def finish(self, status: JobStatus, notes: Optional[str] = None, *, now: Optional[datetime] = None):
        if self.is_terminal:
            raise JobRecordError(f"job record {self.id} is already {self.status.value}")
        if not status.is_terminal:
            raise JobRecordError(f"{status.value} is not a terminal status")
        self.ended_at = now or datetime.now()
        started = self.started_at or self.scheduled_at
        self.duration = max(0, int((self.ended_at - started).total_seconds()))
        self.status = status
        if notes is not None:
            self.notes = notes

    def to_row(self) -> Dict[str, Any]:
        return {
            "device_id":    self.device_id,
            "scheduled_at": _format_dt(self.scheduled_at),
            "started_at":   _format_dt(self.started_at),
            "ended_at":     _format_dt(self.ended_at),
            "status":       self.status.value,
            "duration":     self.duration,
            "notes":        self.notes,
        }


###############################################################################
# 5. HELPER PARSERS -----------------------------------------------------------
###############################################################################

def _parse_time(value: Any) -> time:
    """Parse 'HH:MM' (or 'HH:MM:SS') strings into `time`."""
    if isinstance(value, time):
        return value
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(value.strip(), fmt).time()
        except ValueError:
            continue
    raise ValueError(f"invalid clock time: {value!r}")


def _format_dt(value: Optional[datetime]) -> Optional[str]:
    """Frappe standard: 'YYYY-MM-DD HH:MM:SS'."""
    if value is None:
        return None
    return value.strftime("%Y-%m-%d %H:%M:%S")


_WS = re.compile(r"[ \t\n\r]*")


def _raw_member(text: str, key: str) -> Optional[str]:
    """Source text of one top-level member of an already-validated JSON object.

    Duplicate keys resolve to the last occurrence, as `json.loads` does.
    """
    decoder = json.JSONDecoder()
    found = None
    idx = _WS.match(text, 0).end() + 1          # past '{'
    while True:
        idx = _WS.match(text, idx).end()
        if text[idx] == "}":
            return found
        name, idx = decoder.raw_decode(text, idx)
        idx = _WS.match(text, idx).end() + 1    # past ':'
        start = _WS.match(text, idx).end()
        _, idx = decoder.raw_decode(text, start)
        if name == key:
            found = text[start:idx]
        idx = _WS.match(text, idx).end()
        if text[idx] == ",":
            idx += 1
