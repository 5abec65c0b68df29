"""
Pure Enumeration Types for Core Framework.

Defines valid states for runs, jobs and task submissions, and the
conditions under which output rules fire.
No business logic - pure type definitions only.

Exports:
    RunStatus: Orchestrator run state enumeration
    JobLifecycle: Job submission lifecycle
    SubmissionStatus: Per-task submission outcome
    OutputUploadCondition: Output rule trigger condition
"""

from enum import Enum


class RunStatus(Enum):
    """
    Valid states for one orchestrator run.

    State transitions:
    - IDLE -> UPLOADING_INPUTS -> PROVISIONING_POOL -> PROVISIONING_JOB
      -> BUILDING_TASKS -> SUBMITTING_TASKS -> COMPLETED (normal flow)
    - ... -> SUBMITTING_TASKS -> COMPLETED_WITH_ERRORS (some tasks rejected)
    - any active state -> FAILED (fatal error)
    """

    IDLE = "idle"
    UPLOADING_INPUTS = "uploading_inputs"
    PROVISIONING_POOL = "provisioning_pool"
    PROVISIONING_JOB = "provisioning_job"
    BUILDING_TASKS = "building_tasks"
    SUBMITTING_TASKS = "submitting_tasks"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"


class JobLifecycle(Enum):
    """
    Job lifecycle as far as this system is responsible.

    CREATED -> SUBMITTING -> SUBMITTED. Remote execution is out of scope,
    so SUBMITTED is terminal.
    """

    CREATED = "created"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


class SubmissionStatus(Enum):
    """Outcome of submitting one task."""

    SUBMITTED = "submitted"
    REJECTED = "rejected"
    SKIPPED = "skipped"  # Never dispatched (cancelled or input missing)


class OutputUploadCondition(str, Enum):
    """
    When the backend uploads the files matched by an output rule.

    Values match the Azure Batch OutputFileUploadCondition names.
    """

    TASK_SUCCESS = "taskSuccess"
    TASK_FAILURE = "taskFailure"
