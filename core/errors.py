"""
Error Code Definitions and Classification.

Centralized error code management with retry classification and
consistent error payloads for run reports and CLI output.

Key Features:
    - Explicit error codes for all submission failure modes
    - Retry classification (PERMANENT, TRANSIENT, THROTTLING)
    - Mapping from exception types to codes

Exports:
    ErrorCode: Standardized error codes enum
    ErrorClassification: Error category enum
    is_retryable: Helper to check if error should be retried
    get_error_classification: Classification lookup
    error_code_for: Map an exception to its ErrorCode
    create_error_response: Standard error dict
"""

import asyncio
from enum import Enum
from typing import Dict, Any

from exceptions import (
    AlreadyExistsError,
    ConfigurationError,
    DuplicateTaskError,
    ProvisioningError,
    SubmissionError,
    TransientIOError,
    ValidationError,
)


class ErrorCode(str, Enum):
    """
    Standardized error codes recorded on task outcomes and error payloads.
    """

    # ========================================================================
    # VALIDATION ERRORS - CLIENT ERRORS
    # ========================================================================
    VALIDATION_ERROR = "VALIDATION_ERROR"  # Malformed work item
    MISSING_PARAMETER = "MISSING_PARAMETER"  # Required field empty
    CONFIG_ERROR = "CONFIG_ERROR"  # Configuration error

    # ========================================================================
    # PROVISIONING ERRORS
    # ========================================================================
    ALREADY_EXISTS = "ALREADY_EXISTS"  # Pool/job present (absorbed)
    PROVISIONING_FAILED = "PROVISIONING_FAILED"  # Pool/job create failed

    # ========================================================================
    # SUBMISSION ERRORS - PER TASK
    # ========================================================================
    DUPLICATE_TASK = "DUPLICATE_TASK"  # Task id already in job
    SUBMISSION_REJECTED = "SUBMISSION_REJECTED"  # Backend refused the task
    CANCELLED = "CANCELLED"  # Never dispatched, run cancelled
    TIMEOUT = "TIMEOUT"  # Remote call exceeded its timeout

    # ========================================================================
    # INFRASTRUCTURE ERRORS
    # ========================================================================
    TRANSIENT_IO = "TRANSIENT_IO"  # Network failure after retries
    UPLOAD_FAILED = "UPLOAD_FAILED"  # Input blob upload failed
    THROTTLED = "THROTTLED"  # Rate limited

    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"  # Unexpected exception


class ErrorClassification(str, Enum):
    """
    Error classification for retry logic.

    Determines whether a caller could reasonably resubmit.
    """

    PERMANENT = "PERMANENT"  # Never retry (client error, won't fix itself)
    TRANSIENT = "TRANSIENT"  # Retry with exponential backoff
    THROTTLING = "THROTTLING"  # Retry with longer delay


_ERROR_CLASSIFICATION: Dict[ErrorCode, ErrorClassification] = {
    ErrorCode.VALIDATION_ERROR: ErrorClassification.PERMANENT,
    ErrorCode.MISSING_PARAMETER: ErrorClassification.PERMANENT,
    ErrorCode.CONFIG_ERROR: ErrorClassification.PERMANENT,
    ErrorCode.ALREADY_EXISTS: ErrorClassification.PERMANENT,
    ErrorCode.DUPLICATE_TASK: ErrorClassification.PERMANENT,
    ErrorCode.SUBMISSION_REJECTED: ErrorClassification.PERMANENT,

    ErrorCode.PROVISIONING_FAILED: ErrorClassification.TRANSIENT,
    ErrorCode.CANCELLED: ErrorClassification.TRANSIENT,
    ErrorCode.TIMEOUT: ErrorClassification.TRANSIENT,
    ErrorCode.TRANSIENT_IO: ErrorClassification.TRANSIENT,
    ErrorCode.UPLOAD_FAILED: ErrorClassification.TRANSIENT,
    ErrorCode.UNEXPECTED_ERROR: ErrorClassification.TRANSIENT,

    ErrorCode.THROTTLED: ErrorClassification.THROTTLING,
}


def is_retryable(error_code: ErrorCode) -> bool:
    """
    Determine if an error code should allow a retry.

    Example:
        >>> is_retryable(ErrorCode.DUPLICATE_TASK)
        False
        >>> is_retryable(ErrorCode.TIMEOUT)
        True
    """
    classification = _ERROR_CLASSIFICATION.get(error_code, ErrorClassification.TRANSIENT)
    return classification != ErrorClassification.PERMANENT


def get_error_classification(error_code: ErrorCode) -> ErrorClassification:
    """Get the classification for an error code (TRANSIENT if unmapped)."""
    return _ERROR_CLASSIFICATION.get(error_code, ErrorClassification.TRANSIENT)


def error_code_for(exc: BaseException) -> ErrorCode:
    """
    Map an exception raised by a collaborator to an ErrorCode.

    Order matters: subclasses are checked before their bases.
    """
    if isinstance(exc, DuplicateTaskError):
        return ErrorCode.DUPLICATE_TASK
    if isinstance(exc, AlreadyExistsError):
        return ErrorCode.ALREADY_EXISTS
    if isinstance(exc, SubmissionError):
        if exc.code and "throttl" in exc.code.lower():
            return ErrorCode.THROTTLED
        return ErrorCode.SUBMISSION_REJECTED
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return ErrorCode.TIMEOUT
    if isinstance(exc, TransientIOError):
        return ErrorCode.TRANSIENT_IO
    if isinstance(exc, ProvisioningError):
        return ErrorCode.PROVISIONING_FAILED
    if isinstance(exc, ValidationError):
        return ErrorCode.VALIDATION_ERROR
    if isinstance(exc, ConfigurationError):
        return ErrorCode.CONFIG_ERROR
    return ErrorCode.UNEXPECTED_ERROR


def create_error_response(
    error_code: ErrorCode,
    message: str,
    **kwargs: Any
) -> Dict[str, Any]:
    """
    Create a standardized error response dictionary.

    Example:
        >>> create_error_response(
        ...     ErrorCode.PROVISIONING_FAILED,
        ...     "Pool creation failed",
        ...     step="provisioning_pool",
        ...     resource_id="poolId1234",
        ... )
        {
            "success": False,
            "error": "PROVISIONING_FAILED",
            "error_type": "ProvisioningError",
            "message": "Pool creation failed",
            "retryable": True,
            "step": "provisioning_pool",
            "resource_id": "poolId1234"
        }
    """
    response = {
        "success": False,
        "error": error_code.value,
        "error_type": kwargs.pop("error_type", "BusinessLogicError"),
        "message": message,
        "retryable": is_retryable(error_code),
        **kwargs
    }

    return response
