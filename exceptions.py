# ============================================================================
# EXCEPTIONS
# ============================================================================
# STATUS: Core - Exception hierarchy shared by all layers
# PURPOSE: Separate contract violations from expected submission failures
# EXPORTS: ContractViolationError, BusinessLogicError, ValidationError,
#          ProvisioningError, AlreadyExistsError, DuplicateTaskError,
#          SubmissionError, TransientIOError, ConfigurationError
# DEPENDENCIES: None (standard library only)
# ============================================================================

"""
Custom Exception Hierarchy

Distinguishes between:
1. Contract Violations (programming bugs that need fixing)
2. Business Logic Failures (expected runtime issues)

Business failures are further split by how far they reach:

    Fatal (abort the run):      ValidationError, ProvisioningError
    Per-task (recorded):        DuplicateTaskError, SubmissionError,
                                TransientIOError (during submission)
    Not an error for callers:   AlreadyExistsError (absorbed and logged)
"""

from typing import Any, Optional


class ContractViolationError(TypeError):
    """
    Raised when component contracts are violated (programming bugs).

    These indicate:
    - Illegal run or job state transitions
    - Wrong types passed across a component boundary
    - Backends returning values outside their interface

    These should NEVER be caught and handled - they indicate bugs
    that need to be fixed in the code.
    """
    pass


class BusinessLogicError(Exception):
    """
    Base class for expected runtime business logic failures.

    Carries optional context so fatal errors can be reported with the
    run step that failed and the resource involved.

    Attributes:
        step: Run step at which the error surfaced (RunStatus or str)
        resource_id: Pool, job, task or blob identifier involved
    """

    def __init__(self, message: str, step: Optional[Any] = None,
                 resource_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.step = step
        self.resource_id = resource_id

    def with_context(self, step: Any = None, resource_id: Optional[str] = None) -> "BusinessLogicError":
        """Fill in missing context and return self (for re-raising)."""
        if self.step is None:
            self.step = step
        if self.resource_id is None:
            self.resource_id = resource_id
        return self

    def __str__(self) -> str:
        parts = [self.message]
        if self.step is not None:
            parts.append(f"step={getattr(self.step, 'value', self.step)}")
        if self.resource_id:
            parts.append(f"resource={self.resource_id}")
        return " | ".join(parts)


class ValidationError(BusinessLogicError):
    """
    A work item or request is malformed.

    Fatal: the run aborts before any remote call is made.

    Examples:
        - Work item with an empty id
        - Two work items sharing an id in one batch
        - Output rule set with a missing or duplicated condition
    """
    pass


class ProvisioningError(BusinessLogicError):
    """
    Pool or job creation failed for a reason other than "already exists".

    Fatal: the run transitions to FAILED and remaining steps are skipped.

    Attributes:
        kind: Resource kind ("pool" or "job")
    """

    def __init__(self, message: str, kind: Optional[str] = None,
                 step: Optional[Any] = None, resource_id: Optional[str] = None):
        super().__init__(message, step=step, resource_id=resource_id)
        self.kind = kind


class AlreadyExistsError(BusinessLogicError):
    """
    A create-if-absent call found the resource already present.

    Raised by compute backends; absorbed by the submitter's
    create-if-absent primitive and logged as reuse.
    """
    pass


class DuplicateTaskError(BusinessLogicError):
    """
    A task id was submitted twice to the same job.

    Per-task failure: recorded in the report, does not abort the batch.
    """
    pass


class SubmissionError(BusinessLogicError):
    """
    The backend rejected an individual task.

    Per-task failure: recorded in the report, does not abort the batch.

    Attributes:
        code: Backend error code if one was returned
    """

    def __init__(self, message: str, code: Optional[str] = None,
                 step: Optional[Any] = None, resource_id: Optional[str] = None):
        super().__init__(message, step=step, resource_id=resource_id)
        self.code = code


class TransientIOError(BusinessLogicError):
    """
    Network failure that survived the collaborator's own retry policy.

    Per-task during upload or submission, fatal during provisioning
    (surfaces there as ProvisioningError).
    """
    pass


class ConfigurationError(Exception):
    """
    System configuration error.

    These are typically fatal and indicate misconfiguration
    that prevents the system from operating.

    Examples:
        - Missing BATCH_ACCOUNT_URL
        - Output name template without a {task_id} placeholder
        - Non-numeric SUBMIT_MAX_CONCURRENCY
    """
    pass
