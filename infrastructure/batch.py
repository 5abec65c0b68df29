# ============================================================================
# BATCH COMPUTE BACKEND
# ============================================================================
# STATUS: Infrastructure - Azure Batch adapter
# PURPOSE: Create pools, jobs and tasks; translate Batch errors to our taxonomy
# EXPORTS: IComputeBackend, AzureBatchBackend
# DEPENDENCIES: azure-batch, msrest
# ============================================================================

"""
Compute Backend - Azure Batch Adapter

Every method is a single remote call with no retry loop of its own; the
JobSubmitter decides what a failure means for the run.

Error translation:
    PoolExists, JobExists       -> AlreadyExistsError
    TaskExists                  -> DuplicateTaskError
    ServerBusy, OperationTimedOut, InternalError, network errors
                                -> TransientIOError
    any other Batch error code  -> SubmissionError(code=...)

Output rules are passed through unchanged: Batch evaluates them on the
node after the task finishes and uploads matching files itself.
"""

from abc import ABC, abstractmethod
from typing import Optional

from azure.batch import BatchServiceClient
from azure.batch.batch_auth import SharedKeyCredentials
import azure.batch.models as batchmodels
from msrest.exceptions import ClientRequestError

from config.batch_config import BatchAccountConfig
from core.models import OutputUploadCondition, PoolSpec, TaskSpec
from exceptions import (
    AlreadyExistsError,
    BusinessLogicError,
    DuplicateTaskError,
    SubmissionError,
    TransientIOError,
)
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.ADAPTER, "AzureBatchBackend")


# ============================================================================
# INTERFACE
# ============================================================================

class IComputeBackend(ABC):
    """
    Remote compute service interface.

    Methods may be plain functions or coroutines; the JobSubmitter runs
    plain ones in its executor.
    """

    @abstractmethod
    def create_pool(self, pool_spec: PoolSpec) -> None:
        """Create pool; AlreadyExistsError if it exists."""
        pass

    @abstractmethod
    def create_job(self, job_id: str, pool_id: str) -> None:
        """Create job bound to pool; AlreadyExistsError if it exists."""
        pass

    @abstractmethod
    def add_task(self, job_id: str, task_spec: TaskSpec) -> None:
        """Submit one task; DuplicateTaskError if the id is taken."""
        pass


# ============================================================================
# TRANSLATION HELPERS
# ============================================================================

_EXISTS_CODES = frozenset({"PoolExists", "JobExists"})
_DUPLICATE_CODES = frozenset({"TaskExists"})
_TRANSIENT_CODES = frozenset({"ServerBusy", "OperationTimedOut", "InternalError"})

_UPLOAD_CONDITIONS = {
    OutputUploadCondition.TASK_SUCCESS: batchmodels.OutputFileUploadCondition.task_success,
    OutputUploadCondition.TASK_FAILURE: batchmodels.OutputFileUploadCondition.task_failure,
}


def _error_code(exc: batchmodels.BatchErrorException) -> Optional[str]:
    return exc.error.code if exc.error is not None else None


def _error_message(exc: batchmodels.BatchErrorException) -> str:
    if exc.error is not None and exc.error.message is not None:
        return exc.error.message.value
    return str(exc)


def translate_batch_error(exc: Exception, resource_id: str) -> BusinessLogicError:
    """Map an azure-batch/msrest exception to the error taxonomy."""
    if isinstance(exc, batchmodels.BatchErrorException):
        code = _error_code(exc)
        message = _error_message(exc)
        if code in _EXISTS_CODES:
            return AlreadyExistsError(message, resource_id=resource_id)
        if code in _DUPLICATE_CODES:
            return DuplicateTaskError(message, resource_id=resource_id)
        if code in _TRANSIENT_CODES:
            return TransientIOError(f"{code}: {message}", resource_id=resource_id)
        return SubmissionError(message, code=code, resource_id=resource_id)
    if isinstance(exc, ClientRequestError):
        return TransientIOError(f"Request to Batch failed: {exc}", resource_id=resource_id)
    return SubmissionError(str(exc), resource_id=resource_id)


def to_task_add_parameter(task_spec: TaskSpec) -> batchmodels.TaskAddParameter:
    """Convert a TaskSpec into the Batch wire model."""
    resource_files = [
        batchmodels.ResourceFile(http_url=binding.remote_url, file_path=binding.local_target_name)
        for binding in task_spec.input_bindings
    ]
    output_files = [
        batchmodels.OutputFile(
            file_pattern=rule.file_pattern,
            destination=batchmodels.OutputFileDestination(
                container=batchmodels.OutputFileBlobContainerDestination(
                    container_url=rule.destination_container,
                    path=rule.destination_name,
                )
            ),
            upload_options=batchmodels.OutputFileUploadOptions(
                upload_condition=_UPLOAD_CONDITIONS[rule.condition]
            ),
        )
        for rule in task_spec.output_rules
    ]
    return batchmodels.TaskAddParameter(
        id=task_spec.task_id,
        command_line=task_spec.command,
        resource_files=resource_files,
        output_files=output_files,
    )


def to_pool_add_parameter(pool_spec: PoolSpec) -> batchmodels.PoolAddParameter:
    """Convert a PoolSpec into the Batch wire model."""
    return batchmodels.PoolAddParameter(
        id=pool_spec.pool_id,
        virtual_machine_configuration=batchmodels.VirtualMachineConfiguration(
            image_reference=batchmodels.ImageReference(
                publisher=pool_spec.image_publisher,
                offer=pool_spec.image_offer,
                sku=pool_spec.image_sku,
                version=pool_spec.image_version,
            ),
            node_agent_sku_id=pool_spec.node_agent_sku_id,
        ),
        vm_size=pool_spec.vm_size,
        target_dedicated_nodes=pool_spec.target_dedicated_nodes,
    )


# ============================================================================
# AZURE IMPLEMENTATION
# ============================================================================

class AzureBatchBackend(IComputeBackend):
    """
    Azure Batch implementation of IComputeBackend (shared key auth).

    Args:
        config: Batch account settings
        client: Optional pre-built BatchServiceClient (tests)
        request_timeout_seconds: Server-side timeout sent with each call
    """

    def __init__(self, config: BatchAccountConfig, client: Optional[BatchServiceClient] = None,
                 request_timeout_seconds: Optional[float] = None):
        self.config = config
        self.timeout = int(request_timeout_seconds) if request_timeout_seconds else None
        if client is None:
            credentials = SharedKeyCredentials(config.account_name, config.account_key)
            client = BatchServiceClient(credentials, batch_url=config.account_url)
            logger.info(f"Batch client created for {config.account_url}")
        self.client = client

    def create_pool(self, pool_spec: PoolSpec) -> None:
        options = batchmodels.PoolAddOptions(timeout=self.timeout) if self.timeout else None
        try:
            self.client.pool.add(to_pool_add_parameter(pool_spec), pool_add_options=options)
        except (batchmodels.BatchErrorException, ClientRequestError) as e:
            raise translate_batch_error(e, pool_spec.pool_id) from e
        logger.info(f"Pool add accepted: {pool_spec.pool_id} ({pool_spec.vm_size} x{pool_spec.target_dedicated_nodes})")

    def create_job(self, job_id: str, pool_id: str) -> None:
        job = batchmodels.JobAddParameter(id=job_id, pool_info=batchmodels.PoolInformation(pool_id=pool_id))
        options = batchmodels.JobAddOptions(timeout=self.timeout) if self.timeout else None
        try:
            self.client.job.add(job, job_add_options=options)
        except (batchmodels.BatchErrorException, ClientRequestError) as e:
            raise translate_batch_error(e, job_id) from e
        logger.info(f"Job add accepted: {job_id} on pool {pool_id}")

    def add_task(self, job_id: str, task_spec: TaskSpec) -> None:
        options = batchmodels.TaskAddOptions(timeout=self.timeout) if self.timeout else None
        try:
            self.client.task.add(job_id=job_id, task=to_task_add_parameter(task_spec), task_add_options=options)
        except (batchmodels.BatchErrorException, ClientRequestError) as e:
            raise translate_batch_error(e, task_spec.task_id) from e
        logger.debug(f"Task add accepted: {job_id}/{task_spec.task_id}")
