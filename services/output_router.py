# ============================================================================
# OUTPUT ROUTER
# ============================================================================
# STATUS: Service - Declarative output rules for submitted tasks
# PURPOSE: Route task artifacts to the success or failure container
# EXPORTS: OutputRouter
# ============================================================================
"""
Output Router

Produces the pair of output rules attached to every task:

    TASK_SUCCESS  output_pattern  -> <success container>/output-{job_id}-{task_id}.txt
    TASK_FAILURE  failure_pattern -> <failure container>/failed-{job_id}-{task_id}.txt

The backend evaluates the rules on the compute node once the task
finishes; nothing here polls for completion. The two conditions are
mutually exclusive, so exactly one rule fires for a finished task.
"""

from typing import Iterable, Tuple

from core.models import OutputRule, OutputUploadCondition
from exceptions import ConfigurationError, ValidationError
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "OutputRouter")

_REQUIRED_PLACEHOLDERS = ("{job_id}", "{task_id}")


class OutputRouter:
    """
    Builds and checks OutputRules for one pair of destination containers.

    Args:
        success_container_url: Container URL (with write SAS) for successful outputs
        failure_container_url: Container URL (with write SAS) for failure logs
        success_template: Blob name template for TASK_SUCCESS
        failure_template: Blob name template for TASK_FAILURE
    """

    def __init__(
        self,
        success_container_url: str,
        failure_container_url: str,
        success_template: str = "output-{job_id}-{task_id}.txt",
        failure_template: str = "failed-{job_id}-{task_id}.txt",
    ):
        for name, template in (("success", success_template), ("failure", failure_template)):
            missing = [p for p in _REQUIRED_PLACEHOLDERS if p not in template]
            if missing:
                raise ConfigurationError(
                    f"{name} name template {template!r} is missing {', '.join(missing)}"
                )
        if not success_container_url or not failure_container_url:
            raise ConfigurationError("Both output destination container URLs are required")

        self._containers = {
            OutputUploadCondition.TASK_SUCCESS: success_container_url,
            OutputUploadCondition.TASK_FAILURE: failure_container_url,
        }
        self._templates = {
            OutputUploadCondition.TASK_SUCCESS: success_template,
            OutputUploadCondition.TASK_FAILURE: failure_template,
        }

    def destination_name(self, condition: OutputUploadCondition, job_id: str, task_id: str) -> str:
        """Blob name a task's files land under for the given condition."""
        return self._templates[condition].format(job_id=job_id, task_id=task_id)

    def rules_for(
        self,
        job_id: str,
        task_id: str,
        output_pattern: str,
        failure_pattern: str,
    ) -> Tuple[OutputRule, OutputRule]:
        """
        Build the success and failure rules for one task (success first).

        Args:
            job_id: Job the task belongs to
            task_id: Task id (unique within the job)
            output_pattern: Glob uploaded when the task exits with code 0
            failure_pattern: Glob uploaded when the task fails

        Returns:
            (success_rule, failure_rule)
        """
        patterns = {
            OutputUploadCondition.TASK_SUCCESS: output_pattern,
            OutputUploadCondition.TASK_FAILURE: failure_pattern,
        }
        success, failure = (
            OutputRule(
                file_pattern=patterns[condition],
                destination_container=self._containers[condition],
                destination_name=self.destination_name(condition, job_id, task_id),
                condition=condition,
            )
            for condition in (OutputUploadCondition.TASK_SUCCESS, OutputUploadCondition.TASK_FAILURE)
        )
        return success, failure

    @staticmethod
    def validate(rules: Iterable[OutputRule]) -> None:
        """
        Require exactly one rule per condition.

        Raises:
            ValidationError: On a missing or duplicated condition
        """
        rules = list(rules)
        for condition in OutputUploadCondition:
            count = sum(1 for rule in rules if rule.condition == condition)
            if count == 0:
                raise ValidationError(f"No output rule for condition {condition.value}")
            if count > 1:
                raise ValidationError(f"{count} output rules for condition {condition.value}; expected one")

    @classmethod
    def select(cls, rules: Iterable[OutputRule], succeeded: bool) -> OutputRule:
        """The single rule the backend fires for a finished task."""
        rules = list(rules)
        cls.validate(rules)
        condition = OutputUploadCondition.TASK_SUCCESS if succeeded else OutputUploadCondition.TASK_FAILURE
        rule = next(r for r in rules if r.condition == condition)
        logger.debug(f"Selected {condition.value} rule -> {rule.destination_name}")
        return rule
