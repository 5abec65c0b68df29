"""
Task Specification Models.

Defines the immutable description of one remote task: what to run,
which blobs to stage onto the node, and where output files go once the
task finishes.

Exports:
    InputBinding: Remote URL staged to a local file name
    OutputRule: Declarative output upload rule
    TaskSpec: Immutable task specification
"""

from typing import Tuple
from pydantic import BaseModel, Field, ConfigDict, model_validator

from .enums import OutputUploadCondition


class InputBinding(BaseModel):
    """Blob URL downloaded into the task working directory as local_target_name."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    remote_url: str = Field(..., min_length=1)
    local_target_name: str = Field(..., min_length=1)


class OutputRule(BaseModel):
    """
    Mapping from files in the task working directory to a remote blob.

    The backend evaluates the condition after the task finishes and
    uploads matching files to destination_container/destination_name.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    file_pattern: str = Field(..., min_length=1, description="Glob relative to the task working directory")
    destination_container: str = Field(..., min_length=1, description="Container URL (usually with SAS)")
    destination_name: str = Field(..., min_length=1, description="Blob name, includes job and task id")
    condition: OutputUploadCondition


class TaskSpec(BaseModel):
    """
    Immutable task specification, built once per work item.

    Invariant: exactly one TASK_SUCCESS rule and exactly one TASK_FAILURE
    rule. A spec violating it cannot be constructed.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    task_id: str = Field(..., min_length=1)
    command: str = Field(..., min_length=1)
    input_bindings: Tuple[InputBinding, ...] = Field(default=())
    output_rules: Tuple[OutputRule, ...] = Field(default=())

    @model_validator(mode="after")
    def _one_rule_per_condition(self) -> "TaskSpec":
        for condition in OutputUploadCondition:
            count = sum(1 for rule in self.output_rules if rule.condition == condition)
            if count != 1:
                raise ValueError(
                    f"Task {self.task_id!r} needs exactly one {condition.value} output rule, got {count}"
                )
        return self

    def rule_for(self, condition: OutputUploadCondition) -> OutputRule:
        """Return the single rule for a condition."""
        return next(rule for rule in self.output_rules if rule.condition == condition)
