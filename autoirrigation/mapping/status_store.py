import dataclasses
import logging
import threading
from typing import Any, Dict, List

from autoirrigation.models import DeviceStatus


class DeviceStatusStore:
    """Thread-safe map of device ID to its latest `DeviceStatus`.

    Written from the MQTT network thread (one message at a time per topic),
    read from the orchestrator's poll loop. Each `update` touches a single
    field; there is no cross-field atomicity, so a reader can see a device
    halfway through a burst of status messages.
    """

    _FIELDS = frozenset(DeviceStatus.field_names())

    def __init__(self):
        self._lock = threading.Lock()
        self._statuses: Dict[str, DeviceStatus] = {}
        self.log = logging.getLogger(self.__class__.__name__)

    def get(self, device_id: str) -> DeviceStatus:
        """Snapshot of the device status; unseen devices start zero-valued."""
        with self._lock:
            status = self._statuses.get(device_id)
            if status is None:
                status = self._statuses[device_id] = DeviceStatus()
            return dataclasses.replace(status)

    def reset(self, device_id: str) -> None:
        """Replace the entry wholesale with a zero-valued status."""
        with self._lock:
            self._statuses[device_id] = DeviceStatus()
        self.log.debug(f"status reset for {device_id}")

    def update(self, device_id: str, field: str, value: Any) -> None:
        if field not in self._FIELDS:
            raise ValueError(f"unknown status field: {field}")
        with self._lock:
            status = self._statuses.get(device_id)
            if status is None:
                status = self._statuses[device_id] = DeviceStatus()
            setattr(status, field, value)

    def device_ids(self) -> List[str]:
        with self._lock:
            return list(self._statuses)
