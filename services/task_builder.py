# ============================================================================
# TASK DESCRIPTOR BUILDER
# ============================================================================
# STATUS: Service - Pure WorkItem -> TaskSpec translation
# PURPOSE: One immutable task spec per work item, no I/O
# EXPORTS: TaskDescriptorBuilder
# ============================================================================
"""
Task Descriptor Builder

Turns a WorkItem into a TaskSpec:
    - task id = work item id
    - one input binding: the input blob URL staged as input.txt
    - two output rules from the OutputRouter (success, failure)

The input URL resolver is a plain function of the blob reference (for
Azure, BlobRepository.blob_url, which signs locally), so building never
touches the network.
"""

from typing import Callable, Iterable, List, Tuple

from config.defaults import TaskDefaults
from core.models import BlobRef, InputBinding, TaskSpec, WorkItem
from exceptions import ValidationError
from services.output_router import OutputRouter
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "TaskDescriptorBuilder")


class TaskDescriptorBuilder:
    """Builds TaskSpecs; holds no per-run state."""

    def __init__(
        self,
        router: OutputRouter,
        resolve_input_url: Callable[[BlobRef], str],
        input_target_name: str = TaskDefaults.INPUT_TARGET_NAME,
    ):
        self.router = router
        self.resolve_input_url = resolve_input_url
        self.input_target_name = input_target_name

    def build(self, work_item: WorkItem, job_id: str) -> TaskSpec:
        """
        Build the task spec for one work item.

        Raises:
            ValidationError: Empty work item id or job id
        """
        if not work_item.id or not work_item.id.strip():
            raise ValidationError("Work item id must not be empty", resource_id=str(work_item.input_ref))
        if not job_id:
            raise ValidationError("Job id must not be empty", resource_id=work_item.id)

        binding = InputBinding(
            remote_url=self.resolve_input_url(work_item.input_ref),
            local_target_name=self.input_target_name,
        )
        rules = self.router.rules_for(
            job_id=job_id,
            task_id=work_item.id,
            output_pattern=work_item.output_pattern,
            failure_pattern=work_item.failure_pattern,
        )
        self.router.validate(rules)

        spec = TaskSpec(
            task_id=work_item.id,
            command=work_item.command,
            input_bindings=(binding,),
            output_rules=rules,
        )
        logger.debug(f"Built task spec {job_id}/{spec.task_id}")
        return spec

    def build_all(self, work_items: Iterable[WorkItem], job_id: str) -> Tuple[TaskSpec, ...]:
        """Build specs for every work item, keeping input order."""
        return tuple(self.build(item, job_id) for item in work_items)

    @staticmethod
    def validate_batch(work_items: Iterable[WorkItem]) -> List[WorkItem]:
        """
        Check a batch before any remote call.

        Every id must be non-empty and unique in the batch.

        Returns:
            The work items as a list

        Raises:
            ValidationError: Naming the first offending id
        """
        items = list(work_items)
        if not items:
            raise ValidationError("No work items supplied")

        seen = set()
        for index, item in enumerate(items):
            if not item.id or not item.id.strip():
                raise ValidationError(f"Work item at position {index} has an empty id",
                                      resource_id=str(item.input_ref))
            if item.id in seen:
                raise ValidationError(f"Duplicate work item id {item.id!r} in batch", resource_id=item.id)
            seen.add(item.id)
        return items
