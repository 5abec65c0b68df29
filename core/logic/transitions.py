"""
State Transition Logic for Runs and Jobs.

Contains business rules for valid state transitions.
Separated from data models for clean architecture.

Exports:
    can_run_transition: Check if run state transition is valid
    can_job_transition: Check if job lifecycle transition is valid
    get_run_terminal_states: Get terminal states for runs
    get_run_active_states: Get active (non-terminal) states for runs
    is_run_terminal: Check if run is in terminal state
    is_job_terminal: Check if job lifecycle state is terminal

Dependencies:
    core.models.enums: RunStatus, JobLifecycle
"""

from typing import List

from ..models.enums import RunStatus, JobLifecycle


# Fixed step order - no reordering, no skipping
_RUN_TRANSITIONS = {
    RunStatus.IDLE: [RunStatus.UPLOADING_INPUTS, RunStatus.FAILED],
    RunStatus.UPLOADING_INPUTS: [RunStatus.PROVISIONING_POOL, RunStatus.FAILED],
    RunStatus.PROVISIONING_POOL: [RunStatus.PROVISIONING_JOB, RunStatus.FAILED],
    RunStatus.PROVISIONING_JOB: [RunStatus.BUILDING_TASKS, RunStatus.FAILED],
    RunStatus.BUILDING_TASKS: [RunStatus.SUBMITTING_TASKS, RunStatus.FAILED],
    RunStatus.SUBMITTING_TASKS: [
        RunStatus.COMPLETED,
        RunStatus.COMPLETED_WITH_ERRORS,
        RunStatus.FAILED
    ],
    RunStatus.COMPLETED: [],  # Terminal state
    RunStatus.COMPLETED_WITH_ERRORS: [],  # Terminal state
    RunStatus.FAILED: []  # Terminal state
}


def can_run_transition(current: RunStatus, target: RunStatus) -> bool:
    """
    Check if a run can transition from current to target status.

    Unlike job/task transitions there is no same-status no-op: every
    step is entered exactly once.

    Args:
        current: Current run status
        target: Target run status

    Returns:
        True if transition is valid, False otherwise
    """
    return target in _RUN_TRANSITIONS.get(current, [])


def can_job_transition(current: JobLifecycle, target: JobLifecycle) -> bool:
    """
    Check if a job can move from current to target lifecycle state.

    Args:
        current: Current lifecycle state
        target: Target lifecycle state

    Returns:
        True if transition is valid, False otherwise
    """
    transitions = {
        JobLifecycle.CREATED: [JobLifecycle.SUBMITTING],
        JobLifecycle.SUBMITTING: [JobLifecycle.SUBMITTED],
        JobLifecycle.SUBMITTED: []  # Terminal state
    }

    return target in transitions.get(current, [])


def get_run_terminal_states() -> List[RunStatus]:
    """
    Get list of terminal states for runs.

    Returns:
        List of terminal run statuses
    """
    return [
        RunStatus.COMPLETED,
        RunStatus.COMPLETED_WITH_ERRORS,
        RunStatus.FAILED
    ]


def get_run_active_states() -> List[RunStatus]:
    """
    Get list of active (non-terminal) states for runs.

    Returns:
        List of active run statuses
    """
    return [
        RunStatus.IDLE,
        RunStatus.UPLOADING_INPUTS,
        RunStatus.PROVISIONING_POOL,
        RunStatus.PROVISIONING_JOB,
        RunStatus.BUILDING_TASKS,
        RunStatus.SUBMITTING_TASKS
    ]


def is_run_terminal(status: RunStatus) -> bool:
    """Check if a run status is terminal."""
    return status in get_run_terminal_states()


def is_job_terminal(status: JobLifecycle) -> bool:
    """Check if a job lifecycle state is terminal."""
    return status == JobLifecycle.SUBMITTED
