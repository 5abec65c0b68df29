"""
In-memory test doubles for IObjectStore and IComputeBackend.

FakeComputeBackend is async and records peak in-flight add_task calls;
SyncFakeComputeBackend does the same with threads, to exercise the
executor path of JobSubmitter.
"""

import asyncio
import threading
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Set

from core.models import PoolSpec, TaskSpec
from exceptions import AlreadyExistsError, DuplicateTaskError, TransientIOError
from infrastructure.blob import IObjectStore
from infrastructure.batch import IComputeBackend


class FakeObjectStore(IObjectStore):
    """Dict-backed object store; names in fail_uploads raise TransientIOError."""

    def __init__(self, existing_containers: Optional[Set[str]] = None,
                 fail_uploads: Optional[Set[str]] = None):
        self.containers: Set[str] = set(existing_containers or ())
        self.blobs: Dict[str, bytes] = {}
        self.fail_uploads = set(fail_uploads or ())
        self.upload_calls: List[str] = []

    def create_container_if_absent(self, name: str) -> bool:
        if name in self.containers:
            return False
        self.containers.add(name)
        return True

    def upload_blob(self, container, name, data):
        key = f"{container}/{name}"
        self.upload_calls.append(key)
        if name in self.fail_uploads:
            raise TransientIOError(f"simulated upload failure for {key}", resource_id=key)
        self.blobs[key] = data if isinstance(data, bytes) else data.read()
        return {"container": container, "name": name, "etag": "0x1", "last_modified": None}

    def upload_file(self, container, name, path):
        with Path(path).open("rb") as stream:
            return self.upload_blob(container, name, stream)

    def blob_url(self, container: str, name: str) -> str:
        return f"https://fake.blob.core.windows.net/{container}/{name}?sig=read"


class FakeComputeBackend(IComputeBackend):
    """
    Async in-memory compute backend.

    Args:
        existing_pools / existing_jobs: Ids that raise AlreadyExistsError
        existing_tasks: {job_id: {task_id}} already present (TaskExists)
        task_failures: {task_id: exception} raised by add_task
        pool_failure / job_failure: Exception raised by create_pool / create_job
        hang: Task ids whose add_task never returns
        delay: Seconds each add_task takes
        on_start: Called with the task id when add_task starts
    """

    def __init__(self, existing_pools=(), existing_jobs=(), existing_tasks=None,
                 task_failures=None, pool_failure=None, job_failure=None,
                 hang=(), delay: float = 0.01, on_start: Optional[Callable[[str], None]] = None):
        self.pools: Set[str] = set(existing_pools)
        self.jobs: Dict[str, str] = {job_id: "existing" for job_id in existing_jobs}
        self.tasks: Dict[str, Dict[str, TaskSpec]] = {
            job_id: {task_id: None for task_id in ids} for job_id, ids in (existing_tasks or {}).items()
        }
        self.task_failures = dict(task_failures or {})
        self.pool_failure = pool_failure
        self.job_failure = job_failure
        self.hang = set(hang)
        self.delay = delay
        self.on_start = on_start

        self.pool_calls: List[PoolSpec] = []
        self.job_calls: List[str] = []
        self.add_task_calls: List[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0

    async def create_pool(self, pool_spec: PoolSpec) -> None:
        self.pool_calls.append(pool_spec)
        if self.pool_failure is not None:
            raise self.pool_failure
        if pool_spec.pool_id in self.pools:
            raise AlreadyExistsError("The specified pool already exists.", resource_id=pool_spec.pool_id)
        self.pools.add(pool_spec.pool_id)

    async def create_job(self, job_id: str, pool_id: str) -> None:
        self.job_calls.append(job_id)
        if self.job_failure is not None:
            raise self.job_failure
        if job_id in self.jobs:
            raise AlreadyExistsError("The specified job already exists.", resource_id=job_id)
        self.jobs[job_id] = pool_id

    async def add_task(self, job_id: str, task_spec: TaskSpec) -> None:
        self.add_task_calls.append(task_spec.task_id)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.on_start is not None:
                self.on_start(task_spec.task_id)
            if task_spec.task_id in self.hang:
                await asyncio.sleep(3600)
            await asyncio.sleep(self.delay)
            if task_spec.task_id in self.task_failures:
                raise self.task_failures[task_spec.task_id]
            job_tasks = self.tasks.setdefault(job_id, {})
            if task_spec.task_id in job_tasks:
                raise DuplicateTaskError("The specified task already exists.", resource_id=task_spec.task_id)
            job_tasks[task_spec.task_id] = task_spec
        finally:
            self.in_flight -= 1

    def submitted_specs(self, job_id: str) -> List[TaskSpec]:
        return [spec for spec in self.tasks.get(job_id, {}).values() if spec is not None]


class SyncFakeComputeBackend(IComputeBackend):
    """Blocking backend; add_task sleeps in the calling thread."""

    def __init__(self, delay: float = 0.02):
        self.delay = delay
        self.tasks: Dict[str, List[str]] = {}
        self.in_flight = 0
        self.peak_in_flight = 0
        self._lock = threading.Lock()

    def create_pool(self, pool_spec: PoolSpec) -> None:
        pass

    def create_job(self, job_id: str, pool_id: str) -> None:
        pass

    def add_task(self, job_id: str, task_spec: TaskSpec) -> None:
        with self._lock:
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            time.sleep(self.delay)
            with self._lock:
                self.tasks.setdefault(job_id, []).append(task_spec.task_id)
        finally:
            with self._lock:
                self.in_flight -= 1
