"""
Work Item Models.

A work item is the caller-supplied unit of work before it is translated
into a remote task. Created by the caller, never mutated.

Exports:
    BlobRef: Container + blob name reference
    WorkItem: Logical unit of work
"""

from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class BlobRef(BaseModel):
    """Reference to a named blob inside a named container."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    container: str = Field(..., min_length=1, description="Container name")
    name: str = Field(..., min_length=1, description="Blob name within the container")

    def __str__(self) -> str:
        return f"{self.container}/{self.name}"


class WorkItem(BaseModel):
    """
    Logical unit of work.

    The id is deliberately not length-validated here: an empty id is
    reported by the task builder as a ValidationError so the whole batch
    can be rejected before any remote call.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., description="Unique id within the batch; becomes the task id")
    input_ref: BlobRef = Field(..., description="Remote input blob")
    command: str = Field(..., min_length=1, description="Command line run on the compute node")
    output_pattern: str = Field(..., min_length=1, description="Glob uploaded on success")
    failure_pattern: str = Field(..., min_length=1, description="Glob uploaded on failure")
    local_input: Optional[Path] = Field(
        default=None,
        description="Local file uploaded to input_ref before submission (None if already remote)"
    )
