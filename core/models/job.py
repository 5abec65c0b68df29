"""
Job Aggregate Model.

A Job groups the pool it runs on with the ordered task specifications
submitted to it together. The model is frozen; lifecycle changes return
a new instance.

Exports:
    Job: Job aggregate with submission lifecycle
"""

from typing import Tuple
from pydantic import BaseModel, Field, ConfigDict

from exceptions import ContractViolationError
from .enums import JobLifecycle
from .pool import JobRef, PoolRef
from .task import TaskSpec


class Job(BaseModel):
    """
    Job aggregate.

    Lifecycle: CREATED -> SUBMITTING -> SUBMITTED. SUBMITTED is terminal
    for this system; remote completion tracking lives elsewhere.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    job_ref: JobRef
    pool_ref: PoolRef
    tasks: Tuple[TaskSpec, ...] = Field(default=())
    status: JobLifecycle = JobLifecycle.CREATED

    @property
    def job_id(self) -> str:
        return self.job_ref.job_id

    @property
    def task_ids(self) -> Tuple[str, ...]:
        return tuple(spec.task_id for spec in self.tasks)

    def advance(self, target: JobLifecycle) -> "Job":
        """
        Return a copy of this job in the target lifecycle state.

        Raises:
            ContractViolationError: If the transition is not allowed
        """
        from core.logic.transitions import can_job_transition

        if not can_job_transition(self.status, target):
            raise ContractViolationError(
                f"Job {self.job_id}: illegal transition {self.status.value} -> {target.value}"
            )
        return self.model_copy(update={"status": target})
