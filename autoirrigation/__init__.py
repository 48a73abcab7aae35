"""Auto-irrigation orchestrator - Main Package"""

__version__ = '1.0.0'
__description__ = 'Scheduled calibration and task runs for MQTT irrigation devices'

# Models - domain objects
from .models import DeviceConfig, DeviceStatus, JobRecord, JobStatus, TaskDefinition

# Telemetry
from .mapping import DeviceStatusStore, StatusDispatcher

# Message bus
from .protocols import MessageBus, MQTTGateway

# Services
from .services import SlackNotifier, TaskDefinitionLoader, HistoryRecorder

# Orchestration
from .orchestration import IrrigationOrchestrator, JobOutcome, OrchestratorConfig

# Schedule
from .triggers import JobClock, TriggerStrategyFactory

__all__ = [
    'DeviceConfig',
    'DeviceStatus',
    'JobRecord',
    'JobStatus',
    'TaskDefinition',
    'DeviceStatusStore',
    'StatusDispatcher',
    'MessageBus',
    'MQTTGateway',
    'SlackNotifier',
    'TaskDefinitionLoader',
    'HistoryRecorder',
    'IrrigationOrchestrator',
    'JobOutcome',
    'OrchestratorConfig',
    'JobClock',
    'TriggerStrategyFactory',
]
