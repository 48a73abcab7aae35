"""Data models and domain objects."""

from .device_models import (
    DeviceType,
    DeviceConfig,
    TaskDefinition,
    DeviceStatus,
    JobStatus,
    JobRecord,
)

__all__ = [
    'DeviceType',
    'DeviceConfig',
    'TaskDefinition',
    'DeviceStatus',
    'JobStatus',
    'JobRecord',
]
