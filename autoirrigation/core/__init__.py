# autoirrigation/core/__init__.py
"""Core infrastructure components for the irrigation orchestrator."""

from .exceptions import (
    IrrigationError,
    ConfigurationError,
    BusConnectionError,
    PublishError,
    TaskDefinitionError,
    NotificationError,
    DeviceNotFoundError,
    DeviceJobError,
    JobRecordError,
    InvalidTransitionError,
)
from .patterns import BackoffRule, RateLimitWindow, wait_for

__all__ = [
    "IrrigationError",
    "ConfigurationError",
    "BusConnectionError",
    "PublishError",
    "TaskDefinitionError",
    "NotificationError",
    "DeviceNotFoundError",
    "DeviceJobError",
    "JobRecordError",
    "InvalidTransitionError",
    "BackoffRule",
    "RateLimitWindow",
    "wait_for",
]
