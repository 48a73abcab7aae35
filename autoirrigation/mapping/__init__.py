"""Inbound telemetry mapping: topic suffix table, status store and dispatcher."""

from .status_fields import StatusField
from .status_store import DeviceStatusStore
from .dispatcher import StatusDispatcher

__all__ = [
    'StatusField',
    'DeviceStatusStore',
    'StatusDispatcher',
]
