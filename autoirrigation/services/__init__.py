"""Business services: device config, task definitions, notifications, history."""

from .device_service import load_device_configs, parse_device_configs
from .task_loader import TaskDefinitionLoader
from .notification_service import Severity, SlackNotifier
from .history_service import (
    HistoryRecorder,
    InMemoryHistoryRecorder,
    FrappeHistoryRecorder,
)

__all__ = [
    'load_device_configs',
    'parse_device_configs',
    'TaskDefinitionLoader',
    'Severity',
    'SlackNotifier',
    'HistoryRecorder',
    'InMemoryHistoryRecorder',
    'FrappeHistoryRecorder',
]
