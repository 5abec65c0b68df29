"""
Submission and Run Result Data Models.

Represents the outcome of submitting tasks and of a whole orchestrator
run. Partial failure is data here, not an exception.

Exports:
    TaskSubmissionOutcome: Result of submitting one task
    SubmissionResult: Ordered outcomes of one batch submission
    RunReport: Final report returned by the orchestrator
"""

from datetime import datetime, timezone
from typing import Dict, Any, Optional, Tuple
from pydantic import BaseModel, Field, ConfigDict

from core.errors import ErrorCode
from .enums import RunStatus, SubmissionStatus


class TaskSubmissionOutcome(BaseModel):
    """
    Result of submitting one task.

    Pure data structure - only the status helpers below.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    task_id: str = Field(..., description="Task identifier")
    status: SubmissionStatus = Field(..., description="Submission outcome")
    error_code: Optional[ErrorCode] = Field(default=None, description="Failure classification")
    reason: Optional[str] = Field(default=None, max_length=2000, description="Failure detail")
    duration_ms: Optional[int] = Field(default=None, ge=0, description="Time spent on the request")

    @property
    def submitted(self) -> bool:
        return self.status == SubmissionStatus.SUBMITTED

    @classmethod
    def success(cls, task_id: str, duration_ms: Optional[int] = None) -> "TaskSubmissionOutcome":
        """Factory for a submitted task."""
        return cls(task_id=task_id, status=SubmissionStatus.SUBMITTED, duration_ms=duration_ms)

    @classmethod
    def rejected(cls, task_id: str, error_code: ErrorCode, reason: str,
                 duration_ms: Optional[int] = None) -> "TaskSubmissionOutcome":
        """Factory for a task the backend (or duplicate check) refused."""
        return cls(
            task_id=task_id,
            status=SubmissionStatus.REJECTED,
            error_code=error_code,
            reason=reason[:2000],
            duration_ms=duration_ms,
        )

    @classmethod
    def skipped(cls, task_id: str, error_code: ErrorCode, reason: str) -> "TaskSubmissionOutcome":
        """Factory for a task that was never dispatched."""
        return cls(
            task_id=task_id,
            status=SubmissionStatus.SKIPPED,
            error_code=error_code,
            reason=reason[:2000],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "status": self.status.value,
            "error_code": self.error_code.value if self.error_code else None,
            "reason": self.reason,
            "duration_ms": self.duration_ms,
        }


class SubmissionResult(BaseModel):
    """
    Ordered per-task outcomes of one bulk submission.

    Outcomes keep the order of the submitted specs regardless of the
    order in which requests completed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    job_id: str
    outcomes: Tuple[TaskSubmissionOutcome, ...] = Field(default=())
    cancelled: bool = False

    @property
    def submitted(self) -> Tuple[TaskSubmissionOutcome, ...]:
        return tuple(o for o in self.outcomes if o.status == SubmissionStatus.SUBMITTED)

    @property
    def rejected(self) -> Tuple[TaskSubmissionOutcome, ...]:
        return tuple(o for o in self.outcomes if o.status == SubmissionStatus.REJECTED)

    @property
    def skipped(self) -> Tuple[TaskSubmissionOutcome, ...]:
        return tuple(o for o in self.outcomes if o.status == SubmissionStatus.SKIPPED)

    @property
    def all_submitted(self) -> bool:
        return all(o.submitted for o in self.outcomes)

    def outcome_for(self, task_id: str) -> Optional[TaskSubmissionOutcome]:
        """First outcome recorded for task_id (duplicates come later)."""
        return next((o for o in self.outcomes if o.task_id == task_id), None)


class RunReport(BaseModel):
    """
    Final report of one orchestrator run.

    status is COMPLETED when every task was submitted, COMPLETED_WITH_ERRORS
    when some were rejected or skipped.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    job_id: str
    pool_id: str
    status: RunStatus
    outcomes: Tuple[TaskSubmissionOutcome, ...] = Field(default=())
    uploaded_inputs: Tuple[str, ...] = Field(default=(), description="container/name of uploaded blobs")
    pool_reused: bool = False
    job_reused: bool = False
    cancelled: bool = False
    history: Tuple[RunStatus, ...] = Field(default=())
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    @property
    def partial(self) -> bool:
        return self.status == RunStatus.COMPLETED_WITH_ERRORS

    @property
    def submitted_count(self) -> int:
        return sum(1 for o in self.outcomes if o.submitted)

    def outcome_for(self, task_id: str) -> Optional[TaskSubmissionOutcome]:
        return next((o for o in self.outcomes if o.task_id == task_id), None)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "job_id": self.job_id,
            "pool_id": self.pool_id,
            "status": self.status.value,
            "submitted": self.submitted_count,
            "total": len(self.outcomes),
            "pool_reused": self.pool_reused,
            "job_reused": self.job_reused,
            "cancelled": self.cancelled,
            "uploaded_inputs": list(self.uploaded_inputs),
            "outcomes": [o.to_dict() for o in self.outcomes],
            "history": [s.value for s in self.history],
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }
