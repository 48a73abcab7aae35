from enum import Enum, auto
from typing import Dict, List, Set
import logging

from autoirrigation.core.exceptions import InvalidTransitionError


class JobState(Enum):
    SCHEDULED = auto()
    STARTED = auto()
    CALIBRATING_SPRINKLER = auto()
    CALIBRATING_VALVE = auto()
    RUNNING_TASKS = auto()
    TRIGGERING = auto()
    COMPLETED = auto()
    FAILED = auto()


TERMINAL_STATES = {JobState.COMPLETED, JobState.FAILED}


class JobStateMachine:
    """Tracks one device job through its phases.

    Calibration axes may be skipped, so STARTED can move straight to the
    valve axis or to the task phase. Plant pots use TRIGGERING instead of the
    calibration/task phases.
    """

    def __init__(self, device_id: str):
        self.device_id = device_id
        self.current_state = JobState.SCHEDULED
        self.history: List[JobState] = [JobState.SCHEDULED]
        self.logger = logging.getLogger(self.__class__.__name__)
        self.valid_transitions: Dict[JobState, Set[JobState]] = {
            JobState.SCHEDULED: {JobState.STARTED, JobState.FAILED},
            JobState.STARTED: {JobState.CALIBRATING_SPRINKLER, JobState.CALIBRATING_VALVE,
                               JobState.RUNNING_TASKS, JobState.TRIGGERING,
                               JobState.COMPLETED, JobState.FAILED},
            JobState.CALIBRATING_SPRINKLER: {JobState.CALIBRATING_VALVE, JobState.RUNNING_TASKS,
                                             JobState.FAILED},
            JobState.CALIBRATING_VALVE: {JobState.RUNNING_TASKS, JobState.FAILED},
            JobState.RUNNING_TASKS: {JobState.COMPLETED, JobState.FAILED},
            JobState.TRIGGERING: {JobState.COMPLETED, JobState.FAILED},
            JobState.COMPLETED: set(),
            JobState.FAILED: set(),
        }

    @property
    def is_terminal(self) -> bool:
        return self.current_state in TERMINAL_STATES

    def can_transition_to(self, new_state: JobState) -> bool:
        return new_state in self.valid_transitions.get(self.current_state, set())

    def transition_to(self, new_state: JobState) -> None:
        if not self.can_transition_to(new_state):
            raise InvalidTransitionError(
                f"{self.device_id}: invalid transition {self.current_state.name} -> {new_state.name}"
            )
        self.logger.info(f"{self.device_id}: {self.current_state.name} -> {new_state.name}")
        self.current_state = new_state
        self.history.append(new_state)

    def fail(self) -> None:
        """Move to FAILED from any non-terminal state."""
        self.transition_to(JobState.FAILED)
