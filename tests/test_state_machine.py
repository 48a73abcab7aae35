import pytest

from autoirrigation.core.exceptions import InvalidTransitionError
from autoirrigation.orchestration import JobState, JobStateMachine


def test_full_sprinkler_path():
    machine = JobStateMachine("dev")
    for state in (JobState.STARTED, JobState.CALIBRATING_SPRINKLER, JobState.CALIBRATING_VALVE,
                  JobState.RUNNING_TASKS, JobState.COMPLETED):
        machine.transition_to(state)

    assert machine.is_terminal
    assert machine.history[0] is JobState.SCHEDULED
    assert machine.history[-1] is JobState.COMPLETED


def test_calibration_phases_may_be_skipped():
    machine = JobStateMachine("dev")
    machine.transition_to(JobState.STARTED)

    assert machine.can_transition_to(JobState.CALIBRATING_VALVE)
    assert machine.can_transition_to(JobState.RUNNING_TASKS)


def test_plant_pot_path():
    machine = JobStateMachine("pot")
    machine.transition_to(JobState.STARTED)
    machine.transition_to(JobState.TRIGGERING)
    machine.fail()

    assert machine.current_state is JobState.FAILED


@pytest.mark.parametrize("path, bad", [
    ((), JobState.RUNNING_TASKS),
    ((JobState.STARTED, JobState.RUNNING_TASKS), JobState.CALIBRATING_SPRINKLER),
    ((JobState.STARTED, JobState.TRIGGERING), JobState.RUNNING_TASKS),
    ((JobState.STARTED, JobState.COMPLETED), JobState.FAILED),
])
def test_invalid_transitions_raise(path, bad):
    machine = JobStateMachine("dev")
    for state in path:
        machine.transition_to(state)

    with pytest.raises(InvalidTransitionError):
        machine.transition_to(bad)
