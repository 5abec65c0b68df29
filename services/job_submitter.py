# ============================================================================
# JOB SUBMITTER
# ============================================================================
# STATUS: Service - Pool/job provisioning and bounded-concurrency task submission
# PURPOSE: Idempotent create-if-absent plus best-effort batch submission
# EXPORTS: JobSubmitter
# ============================================================================
"""
Job Submitter

Provisioning:
    ensure_pool and ensure_job share one primitive, create_if_absent.
    AlreadyExistsError means reuse (logged at INFO). Every other failure,
    a timeout included, becomes a ProvisioningError naming the resource.

Submission:
    submit_tasks keeps at most max_concurrency add_task requests in flight.
    Slots are handed out in input order (asyncio.Semaphore waiters are
    FIFO), so no request waits forever while slots free up. Each task gets
    an outcome; one failure never stops the rest of the batch.

    Duplicate ids for a job are rejected with DUPLICATE_TASK whether the id
    was dispatched earlier in this batch, by an earlier call on this
    submitter, or reported as TaskExists by the backend.

    Setting cancel_event stops new dispatches at once. Requests already in
    flight finish and are recorded; the rest are SKIPPED/CANCELLED.

Backends:
    Coroutine methods are awaited directly. Plain methods run in a thread
    pool sized to the concurrency limit, so a timed-out call still holds
    its thread and real concurrency never exceeds the limit.
"""

import asyncio
import inspect
import time
from concurrent.futures import Executor, ThreadPoolExecutor
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence, Set

from config.submission_config import SubmissionConfig
from core.errors import ErrorCode, error_code_for
from core.models import JobRef, PoolRef, PoolSpec, SubmissionResult, TaskSpec, TaskSubmissionOutcome
from exceptions import (
    AlreadyExistsError,
    BusinessLogicError,
    ContractViolationError,
    DuplicateTaskError,
    ProvisioningError,
)
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "JobSubmitter")


class JobSubmitter:
    """
    Provisions pools and jobs and submits task batches to a compute backend.

    Args:
        backend: IComputeBackend implementation (sync or async methods)
        settings: Concurrency bound and request timeout
    """

    def __init__(self, backend, settings: Optional[SubmissionConfig] = None):
        self.backend = backend
        self.settings = settings or SubmissionConfig()
        self._registry: Dict[str, Set[str]] = {}
        self._active = 0
        self.peak_in_flight = 0

    # ========================================================================
    # REMOTE CALL HELPER
    # ========================================================================

    async def _call(self, fn: Callable, *args, executor: Optional[Executor] = None):
        """Await fn(*args) with the configured timeout, off-loop if it is sync."""
        if inspect.iscoroutinefunction(fn):
            pending = fn(*args)
        else:
            loop = asyncio.get_running_loop()
            pending = loop.run_in_executor(executor, partial(fn, *args))

        timeout = self.settings.request_timeout_seconds
        if timeout:
            return await asyncio.wait_for(pending, timeout=timeout)
        return await pending

    # ========================================================================
    # PROVISIONING
    # ========================================================================

    async def create_if_absent(self, kind: str, resource_id: str, create: Callable, *args) -> bool:
        """
        Run create(*args), treating "already exists" as success.

        Returns:
            True if the resource was created, False if it was reused

        Raises:
            ProvisioningError: Any failure other than AlreadyExistsError
        """
        try:
            await self._call(create, *args)
        except AlreadyExistsError:
            logger.info(
                f"{kind} {resource_id} already exists, reusing it",
                extra={"custom_dimensions": {"resource_kind": kind, "resource_id": resource_id, "reused": True}},
            )
            return False
        except asyncio.TimeoutError as e:
            raise ProvisioningError(
                f"Timed out creating {kind} after {self.settings.request_timeout_seconds}s",
                kind=kind, resource_id=resource_id,
            ) from e
        except ContractViolationError:
            raise
        except BusinessLogicError as e:
            raise ProvisioningError(f"Could not create {kind}: {e.message}",
                                    kind=kind, resource_id=resource_id) from e
        except Exception as e:
            raise ProvisioningError(f"Could not create {kind}: {type(e).__name__}: {e}",
                                    kind=kind, resource_id=resource_id) from e

        logger.info(
            f"Created {kind} {resource_id}",
            extra={"custom_dimensions": {"resource_kind": kind, "resource_id": resource_id, "reused": False}},
        )
        return True

    async def ensure_pool(self, pool_spec: PoolSpec) -> PoolRef:
        created = await self.create_if_absent("pool", pool_spec.pool_id, self.backend.create_pool, pool_spec)
        return PoolRef(pool_id=pool_spec.pool_id, created=created)

    async def ensure_job(self, job_id: str, pool_ref: PoolRef) -> JobRef:
        created = await self.create_if_absent("job", job_id, self.backend.create_job, job_id, pool_ref.pool_id)
        return JobRef(job_id=job_id, pool_id=pool_ref.pool_id, created=created)

    # ========================================================================
    # SUBMISSION
    # ========================================================================

    async def submit_tasks(
        self,
        job_ref: JobRef,
        task_specs: Sequence[TaskSpec],
        max_concurrency: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SubmissionResult:
        """
        Submit task specs with at most max_concurrency requests in flight.

        Args:
            job_ref: Job to add tasks to
            task_specs: Specs in the order outcomes should be reported
            max_concurrency: Override of settings.max_concurrency
            cancel_event: Stops new dispatches once set

        Returns:
            SubmissionResult with one outcome per spec, in input order
        """
        limit = max_concurrency if max_concurrency is not None else self.settings.max_concurrency
        if limit < 1:
            raise ContractViolationError(f"max_concurrency must be >= 1, got {limit}")

        job_id = job_ref.job_id
        registry = self._registry.setdefault(job_id, set())
        outcomes: List[Optional[TaskSubmissionOutcome]] = [None] * len(task_specs)
        semaphore = asyncio.Semaphore(limit)
        in_flight: List[asyncio.Future] = []
        cancelled = False

        logger.info(
            f"Submitting {len(task_specs)} tasks to job {job_id} (max {limit} in flight)",
            extra={"custom_dimensions": {"job_id": job_id, "task_count": len(task_specs), "max_concurrency": limit}},
        )

        executor = ThreadPoolExecutor(max_workers=limit, thread_name_prefix="submit")
        try:
            for index, spec in enumerate(task_specs):
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    break

                if spec.task_id in registry:
                    error = DuplicateTaskError(
                        f"Task {spec.task_id} was already submitted to job {job_id}",
                        resource_id=spec.task_id,
                    )
                    logger.warning(str(error))
                    outcomes[index] = TaskSubmissionOutcome.rejected(spec.task_id, error_code_for(error), str(error))
                    continue

                if not await self._acquire_slot(semaphore, cancel_event):
                    cancelled = True
                    break

                registry.add(spec.task_id)
                in_flight.append(asyncio.ensure_future(
                    self._submit_one(index, job_id, spec, outcomes, registry, semaphore, executor)
                ))

            if in_flight:
                await asyncio.gather(*in_flight)
        finally:
            executor.shutdown(wait=False)

        for index, spec in enumerate(task_specs):
            if outcomes[index] is None:
                outcomes[index] = TaskSubmissionOutcome.skipped(
                    spec.task_id, ErrorCode.CANCELLED, "Run cancelled before this task was dispatched"
                )

        result = SubmissionResult(job_id=job_id, outcomes=tuple(outcomes), cancelled=cancelled)
        logger.info(
            f"Submission finished for job {job_id}: {len(result.submitted)} submitted, "
            f"{len(result.rejected)} rejected, {len(result.skipped)} skipped",
            extra={"custom_dimensions": {
                "job_id": job_id,
                "submitted": len(result.submitted),
                "rejected": len(result.rejected),
                "skipped": len(result.skipped),
                "cancelled": cancelled,
                "peak_in_flight": self.peak_in_flight,
            }},
        )
        return result

    async def _acquire_slot(self, semaphore: asyncio.Semaphore, cancel_event: Optional[asyncio.Event]) -> bool:
        """Wait for a free slot; False if cancel_event fires first."""
        if cancel_event is None:
            await semaphore.acquire()
            return True

        acquire = asyncio.ensure_future(semaphore.acquire())
        stop = asyncio.ensure_future(cancel_event.wait())
        await asyncio.wait({acquire, stop}, return_when=asyncio.FIRST_COMPLETED)
        stop.cancel()

        if not acquire.done():
            acquire.cancel()
            try:
                await acquire
            except asyncio.CancelledError:
                return False
        if cancel_event.is_set():
            semaphore.release()
            return False
        return True

    async def _submit_one(
        self,
        index: int,
        job_id: str,
        spec: TaskSpec,
        outcomes: List[Optional[TaskSubmissionOutcome]],
        registry: Set[str],
        semaphore: asyncio.Semaphore,
        executor: Executor,
    ) -> None:
        self._active += 1
        self.peak_in_flight = max(self.peak_in_flight, self._active)
        start = time.monotonic()
        try:
            await self._call(self.backend.add_task, job_id, spec, executor=executor)
            outcome = TaskSubmissionOutcome.success(spec.task_id, duration_ms=_elapsed_ms(start))
            logger.info(f"Task {job_id}/{spec.task_id} submitted",
                        extra={"custom_dimensions": {"job_id": job_id, "task_id": spec.task_id}})
        except asyncio.TimeoutError:
            outcome = TaskSubmissionOutcome.rejected(
                spec.task_id, ErrorCode.TIMEOUT,
                f"No response within {self.settings.request_timeout_seconds}s",
                duration_ms=_elapsed_ms(start),
            )
        except ContractViolationError:
            raise
        except BusinessLogicError as e:
            outcome = TaskSubmissionOutcome.rejected(
                spec.task_id, error_code_for(e), str(e), duration_ms=_elapsed_ms(start)
            )
        except Exception as e:
            logger.exception(f"Unexpected error submitting {job_id}/{spec.task_id}")
            outcome = TaskSubmissionOutcome.rejected(
                spec.task_id, ErrorCode.UNEXPECTED_ERROR, f"{type(e).__name__}: {e}",
                duration_ms=_elapsed_ms(start),
            )
        finally:
            self._active -= 1
            semaphore.release()

        if not outcome.submitted:
            # Only a confirmed duplicate keeps the id reserved
            if outcome.error_code != ErrorCode.DUPLICATE_TASK:
                registry.discard(spec.task_id)
            logger.warning(
                f"Task {job_id}/{spec.task_id} rejected: {outcome.error_code.value}",
                extra={"custom_dimensions": {"job_id": job_id, "task_id": spec.task_id,
                                             "error_code": outcome.error_code.value, "reason": outcome.reason}},
            )
        outcomes[index] = outcome


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
