import logging
from typing import Union

from .status_fields import StatusField
from .status_store import DeviceStatusStore

STATUS_SEGMENT = "status"


class StatusDispatcher:
    """Routes inbound `<deviceID>/status/<path>` messages into the status store.

    Runs on the transport's network thread, so it never raises: malformed
    topics, unknown paths and unparseable values are logged and dropped.
    """

    def __init__(self, store: DeviceStatusStore):
        self.store = store
        self.logger = logging.getLogger(self.__class__.__name__)

    def dispatch(self, topic: str, payload: Union[bytes, str]) -> bool:
        """Apply one message. Returns True if a status field was updated."""
        try:
            return self._dispatch(topic, payload)
        except Exception as e:
            self.logger.error(f"Error dispatching message on '{topic}': {e}", exc_info=True)
            return False

    def _dispatch(self, topic: str, payload: Union[bytes, str]) -> bool:
        parts = topic.split("/")
        if len(parts) < 3 or parts[1] != STATUS_SEGMENT or not parts[0]:
            self.logger.warning(f"Ignoring message from unexpected topic format: {topic}")
            return False

        device_id = parts[0]
        suffix = "/".join(parts[2:])
        status_field = StatusField.from_suffix(suffix)
        if status_field is None:
            self.logger.warning(f"Unhandled status topic: {topic}")
            return False

        try:
            raw = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else str(payload)
            value = status_field.parse(raw)
        except (UnicodeDecodeError, ValueError) as e:
            self.logger.warning(f"Failed to parse value {payload!r} for topic {topic}: {e}")
            return False

        self.store.update(device_id, status_field.attribute, value)
        self.logger.debug(f"{device_id}.{status_field.attribute} = {value!r}")
        return True
