"""Orchestration layer with command pattern and per-job state machine."""

from .state_machine import JobStateMachine, JobState, TERMINAL_STATES
from .commands import (
    OrchestratorConfig,
    JobContext,
    DeviceCommand,
    CalibrateAxisCommand,
    RunTaskCommand,
    TriggerPlantPotCommand,
)
from .orchestrator import IrrigationOrchestrator, JobOutcome

__all__ = [
    'IrrigationOrchestrator',
    'JobOutcome',
    'OrchestratorConfig',
    'JobStateMachine',
    'JobState',
    'TERMINAL_STATES',
    'JobContext',
    'DeviceCommand',
    'CalibrateAxisCommand',
    'RunTaskCommand',
    'TriggerPlantPotCommand',
]
