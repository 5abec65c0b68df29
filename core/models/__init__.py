"""
Core Data Models Package.

Contains pure data structures without business logic.
All business logic is in the core.logic package.

Exports:
    RunStatus, JobLifecycle, SubmissionStatus, OutputUploadCondition: Enums
    BlobRef, WorkItem: Caller-supplied work
    InputBinding, OutputRule, TaskSpec: Task specification
    PoolSpec, PoolRef, JobRef: Remote resources
    Job: Job aggregate
    TaskSubmissionOutcome, SubmissionResult, RunReport: Result types
"""

# Enums
from .enums import (
    RunStatus,
    JobLifecycle,
    SubmissionStatus,
    OutputUploadCondition
)

# Work items
from .work_item import BlobRef, WorkItem

# Task models
from .task import (
    InputBinding,
    OutputRule,
    TaskSpec
)

# Remote resources
from .pool import PoolSpec, PoolRef, JobRef

# Job aggregate
from .job import Job

# Results
from .results import (
    TaskSubmissionOutcome,
    SubmissionResult,
    RunReport
)

__all__ = [
    'RunStatus',
    'JobLifecycle',
    'SubmissionStatus',
    'OutputUploadCondition',
    'BlobRef',
    'WorkItem',
    'InputBinding',
    'OutputRule',
    'TaskSpec',
    'PoolSpec',
    'PoolRef',
    'JobRef',
    'Job',
    'TaskSubmissionOutcome',
    'SubmissionResult',
    'RunReport',
]
