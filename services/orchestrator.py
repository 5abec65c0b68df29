# ============================================================================
# BATCH ORCHESTRATOR
# ============================================================================
# STATUS: Service - Root of the submission pipeline
# PURPOSE: Upload inputs, provision pool and job, build and submit tasks
# EXPORTS: BatchOrchestrator, run
# ============================================================================
"""
Batch Orchestrator

Drives one run through a fixed sequence of steps:

    IDLE -> UPLOADING_INPUTS -> PROVISIONING_POOL -> PROVISIONING_JOB
         -> BUILDING_TASKS -> SUBMITTING_TASKS -> COMPLETED | COMPLETED_WITH_ERRORS

Any active step may end in FAILED. Fatal errors (ValidationError,
ProvisioningError) are re-raised with the step and resource id filled in;
per-task problems (failed upload, rejected or skipped submission) end up
in the RunReport instead.

The batch is validated while the run is still IDLE, so a malformed work
item stops the run before anything is uploaded or created. Such errors
are reported with step=BUILDING_TASKS, where they would otherwise surface.

The run returns as soon as every task has been submitted; task execution
and output upload happen on the backend.
"""

import asyncio
import inspect
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from functools import partial
from typing import Dict, Iterable, List, Optional

from config import AppConfig
from config.defaults import PoolDefaults
from core.errors import ErrorCode
from core.logic import can_run_transition, is_run_terminal
from core.models import (
    Job,
    JobLifecycle,
    PoolSpec,
    RunReport,
    RunStatus,
    TaskSubmissionOutcome,
    WorkItem,
)
from exceptions import BusinessLogicError, ContractViolationError, ValidationError
from services.job_submitter import JobSubmitter
from services.output_router import OutputRouter
from services.task_builder import TaskDescriptorBuilder
from util_logger import LoggerFactory, ComponentType, log_exceptions

logger = LoggerFactory.create_logger(ComponentType.CONTROLLER, "BatchOrchestrator")


class BatchOrchestrator:
    """
    One-shot orchestrator: each instance performs a single run.

    Args:
        object_store: IObjectStore used for inputs and input URLs
        backend: IComputeBackend for pools, jobs and tasks
        config: Immutable application configuration
    """

    def __init__(self, object_store, backend, config: AppConfig):
        self.object_store = object_store
        self.config = config
        self.router = OutputRouter(
            success_container_url=config.storage.output_container_url,
            failure_container_url=config.storage.failed_container_url,
            success_template=config.success_name_template,
            failure_template=config.failure_name_template,
        )
        self.builder = TaskDescriptorBuilder(
            self.router,
            resolve_input_url=lambda ref: object_store.blob_url(ref.container, ref.name),
        )
        self.submitter = JobSubmitter(backend, config.submission)
        self.status = RunStatus.IDLE
        self.history: List[RunStatus] = [RunStatus.IDLE]
        self.job: Optional[Job] = None

    # ========================================================================
    # STATE MACHINE
    # ========================================================================

    def _transition(self, target: RunStatus) -> None:
        if not can_run_transition(self.status, target):
            raise ContractViolationError(f"Illegal run transition {self.status.value} -> {target.value}")
        logger.info(f"Run step: {self.status.value} -> {target.value}",
                    extra={"custom_dimensions": {"from": self.status.value, "to": target.value}})
        self.status = target
        self.history.append(target)

    def _fail(self, error: Exception) -> None:
        if not is_run_terminal(self.status):
            step = self.status
            self._transition(RunStatus.FAILED)
            logger.error(f"Run failed during {step.value}: {error}",
                         extra={"custom_dimensions": {"step": step.value, "error_type": type(error).__name__}})

    # ========================================================================
    # RUN
    # ========================================================================

    async def run(
        self,
        work_items: Iterable[WorkItem],
        job_id: str,
        pool_spec: PoolSpec,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RunReport:
        """
        Execute the full pipeline once.

        Returns:
            RunReport with one outcome per work item, in input order

        Raises:
            ValidationError: Malformed batch (no remote call was made)
            ProvisioningError: Pool or job could not be created
        """
        if self.status != RunStatus.IDLE:
            raise ContractViolationError("BatchOrchestrator instances run only once")

        started_at = datetime.now(timezone.utc)
        try:
            try:
                items = self.builder.validate_batch(work_items)
                if not job_id:
                    raise ValidationError("Job id must not be empty")
                if len(job_id) > PoolDefaults.MAX_ID_LENGTH:
                    raise ValidationError(
                        f"Job id is {len(job_id)} characters, limit is {PoolDefaults.MAX_ID_LENGTH}",
                        resource_id=job_id,
                    )
            except ValidationError as e:
                raise e.with_context(step=RunStatus.BUILDING_TASKS)

            self._transition(RunStatus.UPLOADING_INPUTS)
            uploaded, upload_failures = await self._upload_inputs(items)

            self._transition(RunStatus.PROVISIONING_POOL)
            pool_ref = await self._step(self.submitter.ensure_pool(pool_spec), pool_spec.pool_id)

            self._transition(RunStatus.PROVISIONING_JOB)
            job_ref = await self._step(self.submitter.ensure_job(job_id, pool_ref), job_id)

            self._transition(RunStatus.BUILDING_TASKS)
            ready = [item for item in items if item.id not in upload_failures]
            try:
                specs = self.builder.build_all(ready, job_id)
            except ValidationError as e:
                raise e.with_context(step=RunStatus.BUILDING_TASKS)
            self.job = Job(job_ref=job_ref, pool_ref=pool_ref, tasks=specs)

            self._transition(RunStatus.SUBMITTING_TASKS)
            self.job = self.job.advance(JobLifecycle.SUBMITTING)
            result = await self.submitter.submit_tasks(
                job_ref,
                specs,
                max_concurrency=self.config.submission.max_concurrency,
                cancel_event=cancel_event,
            )
            self.job = self.job.advance(JobLifecycle.SUBMITTED)
        except Exception as e:
            self._fail(e)
            raise

        outcomes = tuple(upload_failures.get(item.id) or result.outcome_for(item.id) for item in items)
        all_submitted = all(outcome.submitted for outcome in outcomes)
        self._transition(RunStatus.COMPLETED if all_submitted else RunStatus.COMPLETED_WITH_ERRORS)

        report = RunReport(
            job_id=job_id,
            pool_id=pool_ref.pool_id,
            status=self.status,
            outcomes=outcomes,
            uploaded_inputs=tuple(uploaded),
            pool_reused=not pool_ref.created,
            job_reused=not job_ref.created,
            cancelled=result.cancelled,
            history=tuple(self.history),
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )
        logger.info(
            f"Run {self.status.value}: {report.submitted_count}/{len(outcomes)} tasks submitted to {job_id}",
            extra={"custom_dimensions": {"job_id": job_id, "pool_id": pool_ref.pool_id,
                                         "status": self.status.value, "submitted": report.submitted_count,
                                         "total": len(outcomes), "cancelled": result.cancelled}},
        )
        return report

    async def _step(self, pending, resource_id: str):
        """Await a provisioning step, tagging errors with the current step."""
        try:
            return await pending
        except BusinessLogicError as e:
            raise e.with_context(step=self.status, resource_id=resource_id)

    # ========================================================================
    # INPUT UPLOAD
    # ========================================================================

    async def _upload_inputs(self, items: List[WorkItem]):
        """
        Upload every declared local input, bounded by max_concurrency.

        Returns:
            (uploaded blob refs, {task_id: SKIPPED outcome} for failed uploads)
        """
        to_upload = [item for item in items if item.local_input is not None]
        uploaded: List[str] = []
        failures: Dict[str, TaskSubmissionOutcome] = {}
        if not to_upload:
            return uploaded, failures

        limit = self.config.submission.max_concurrency
        semaphore = asyncio.Semaphore(limit)
        executor = ThreadPoolExecutor(max_workers=limit, thread_name_prefix="upload")

        async def call(fn, *args):
            if inspect.iscoroutinefunction(fn):
                return await fn(*args)
            return await asyncio.get_running_loop().run_in_executor(executor, partial(fn, *args))

        async def upload(item: WorkItem):
            async with semaphore:
                try:
                    await call(self.object_store.upload_file, item.input_ref.container,
                               item.input_ref.name, item.local_input)
                except ContractViolationError:
                    raise
                except Exception as e:
                    logger.warning(f"Input upload failed for {item.id} ({item.input_ref}): {e}")
                    failures[item.id] = TaskSubmissionOutcome.skipped(
                        item.id, ErrorCode.UPLOAD_FAILED, f"Input upload failed: {e}"
                    )
                    return
                uploaded.append(str(item.input_ref))

        try:
            for container in dict.fromkeys(item.input_ref.container for item in to_upload):
                try:
                    await call(self.object_store.create_container_if_absent, container)
                except BusinessLogicError as e:
                    # Uploads into this container will fail and be recorded per task
                    logger.warning(f"Could not ensure container {container}: {e}")

            await asyncio.gather(*(upload(item) for item in to_upload))
        finally:
            executor.shutdown(wait=False)

        logger.info(f"Uploaded {len(uploaded)}/{len(to_upload)} input files",
                    extra={"custom_dimensions": {"uploaded": len(uploaded), "failed": len(failures)}})
        return uploaded, failures


@log_exceptions(ComponentType.CONTROLLER, "BatchOrchestrator")
async def run(
    work_items: Iterable[WorkItem],
    job_id: str,
    pool_spec: PoolSpec,
    config: AppConfig,
    *,
    object_store=None,
    backend=None,
    cancel_event: Optional[asyncio.Event] = None,
) -> RunReport:
    """
    Run the pipeline once with the given configuration.

    Adapters not supplied are built from config by RepositoryFactory.
    """
    if object_store is None or backend is None:
        from infrastructure import RepositoryFactory

        if object_store is None:
            object_store = RepositoryFactory.create_blob_repository(config.storage)
        if backend is None:
            backend = RepositoryFactory.create_batch_backend(
                config.batch, config.submission.request_timeout_seconds
            )

    orchestrator = BatchOrchestrator(object_store, backend, config)
    return await orchestrator.run(work_items, job_id, pool_spec, cancel_event=cancel_event)
