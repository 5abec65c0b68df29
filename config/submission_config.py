"""
Task Submission Configuration.

Provides configuration for:
    - Upper bound on concurrently in-flight submission requests
    - Per-request timeout for remote calls

The concurrency bound limits requests, not task execution: the backend
schedules execution on its own.

Exports:
    SubmissionConfig: Pydantic submission settings
"""

import os
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from .defaults import SubmissionDefaults


class SubmissionConfig(BaseModel):
    """
    Bounded-concurrency submission settings.

    Attributes:
        max_concurrency: Max simultaneous submission requests (default 3)
        request_timeout_seconds: Timeout per remote call; None disables it
    """

    model_config = ConfigDict(frozen=True)

    max_concurrency: int = Field(
        default=SubmissionDefaults.MAX_CONCURRENCY,
        ge=1,
        le=SubmissionDefaults.MAX_CONCURRENCY_LIMIT,
        description="Upper bound on in-flight submission requests"
    )
    request_timeout_seconds: Optional[float] = Field(
        default=SubmissionDefaults.REQUEST_TIMEOUT_SECONDS,
        gt=0,
        description="Timeout applied to each remote call"
    )

    @classmethod
    def from_environment(cls) -> "SubmissionConfig":
        """Load submission settings from environment variables."""
        timeout = os.environ.get("SUBMIT_TIMEOUT_SECONDS", str(SubmissionDefaults.REQUEST_TIMEOUT_SECONDS))
        return cls(
            max_concurrency=int(os.environ.get("SUBMIT_MAX_CONCURRENCY", str(SubmissionDefaults.MAX_CONCURRENCY))),
            request_timeout_seconds=float(timeout) if timeout.strip().lower() not in ("", "0", "none") else None,
        )

    def debug_dict(self) -> dict:
        return {
            "max_concurrency": self.max_concurrency,
            "request_timeout_seconds": self.request_timeout_seconds,
        }
