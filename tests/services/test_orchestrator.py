"""
BatchOrchestrator end-to-end tests against in-memory fakes.

Covers the fixed step sequence, output routing names, reuse of existing
pools and jobs, fatal vs per-task failures, and cancellation.
"""

import asyncio
import logging

import pytest

from core.errors import ErrorCode
from core.models import (
    JobLifecycle,
    OutputUploadCondition,
    PoolSpec,
    RunStatus,
    SubmissionStatus,
    WorkItem,
)
from exceptions import (
    ContractViolationError,
    ProvisioningError,
    SubmissionError,
    TransientIOError,
    ValidationError,
)
from services.orchestrator import BatchOrchestrator, run
from tests.factories.model_factories import SUCCESS_URL, FAILURE_URL, make_work_item, make_work_items
from tests.fakes import FakeComputeBackend, FakeObjectStore

POOL = PoolSpec(pool_id="poolId1234")

HAPPY_PATH = [
    RunStatus.IDLE,
    RunStatus.UPLOADING_INPUTS,
    RunStatus.PROVISIONING_POOL,
    RunStatus.PROVISIONING_JOB,
    RunStatus.BUILDING_TASKS,
    RunStatus.SUBMITTING_TASKS,
    RunStatus.COMPLETED,
]


def _local_items(tmp_path, count):
    """Work items backed by real local files, one per task."""
    items = []
    for i in range(count):
        path = tmp_path / f"taskdata{i}.txt"
        path.write_text(f"line {i}\n")
        items.append(WorkItem(**make_work_item(f"Task{i}", local_input=path)))
    return items


class TestHappyPath:

    def test_three_tasks_routed_by_job_and_task(self, app_config, tmp_path):
        store, backend = FakeObjectStore(), FakeComputeBackend()
        orchestrator = BatchOrchestrator(store, backend, app_config)
        report = asyncio.run(orchestrator.run(_local_items(tmp_path, 3), "jobId1234", POOL))

        assert report.status == RunStatus.COMPLETED
        assert report.submitted_count == 3
        assert not report.partial
        specs = {spec.task_id: spec for spec in backend.submitted_specs("jobId1234")}
        assert set(specs) == {"Task0", "Task1", "Task2"}
        for task_id, spec in specs.items():
            success = spec.rule_for(OutputUploadCondition.TASK_SUCCESS)
            failure = spec.rule_for(OutputUploadCondition.TASK_FAILURE)
            assert success.destination_name == f"output-jobId1234-{task_id}.txt"
            assert success.destination_container == SUCCESS_URL
            assert failure.destination_name == f"failed-jobId1234-{task_id}.txt"
            assert failure.destination_container == FAILURE_URL

    def test_steps_run_in_fixed_order(self, app_config, tmp_path):
        orchestrator = BatchOrchestrator(FakeObjectStore(), FakeComputeBackend(), app_config)
        report = asyncio.run(orchestrator.run(_local_items(tmp_path, 2), "jobId1234", POOL))
        assert list(report.history) == HAPPY_PATH
        assert orchestrator.job.status == JobLifecycle.SUBMITTED

    def test_local_inputs_uploaded_before_submission(self, app_config, tmp_path):
        store = FakeObjectStore()
        items = _local_items(tmp_path, 3)
        report = asyncio.run(BatchOrchestrator(store, FakeComputeBackend(), app_config)
                             .run(items, "jobId1234", POOL))

        assert sorted(report.uploaded_inputs) == sorted(str(item.input_ref) for item in items)
        assert store.blobs[str(items[1].input_ref)] == b"line 1\n"
        assert "inputfiles" in store.containers

    def test_input_binding_points_at_uploaded_blob(self, app_config, tmp_path):
        backend = FakeComputeBackend()
        items = _local_items(tmp_path, 1)
        asyncio.run(BatchOrchestrator(FakeObjectStore(), backend, app_config).run(items, "jobId1234", POOL))

        binding = backend.submitted_specs("jobId1234")[0].input_bindings[0]
        assert binding.remote_url.startswith(f"https://fake.blob.core.windows.net/{items[0].input_ref}")
        assert binding.local_target_name == "input.txt"

    def test_remote_inputs_are_not_uploaded(self, app_config):
        store = FakeObjectStore()
        report = asyncio.run(BatchOrchestrator(store, FakeComputeBackend(), app_config)
                             .run(make_work_items(2), "jobId1234", POOL))
        assert store.upload_calls == []
        assert report.uploaded_inputs == ()
        assert report.status == RunStatus.COMPLETED

    def test_outcomes_follow_work_item_order(self, app_config):
        items = make_work_items(6)
        report = asyncio.run(BatchOrchestrator(FakeObjectStore(), FakeComputeBackend(), app_config)
                             .run(items, "jobId1234", POOL))
        assert [o.task_id for o in report.outcomes] == [item.id for item in items]

    def test_report_serializes(self, app_config):
        report = asyncio.run(BatchOrchestrator(FakeObjectStore(), FakeComputeBackend(), app_config)
                             .run(make_work_items(1), "jobId1234", POOL))
        payload = report.to_dict()
        assert payload["status"] == "completed"
        assert payload["submitted"] == 1
        assert payload["history"][0] == "idle"
        assert payload["finished_at"] is not None


class TestReuse:

    def test_existing_pool_and_job_are_reused(self, app_config, caplog):
        caplog.set_level(logging.INFO)
        backend = FakeComputeBackend(existing_pools={"poolId1234"}, existing_jobs={"jobId1234"})
        report = asyncio.run(BatchOrchestrator(FakeObjectStore(), backend, app_config)
                             .run(make_work_items(2), "jobId1234", POOL))

        assert report.pool_reused is True
        assert report.job_reused is True
        assert report.status == RunStatus.COMPLETED
        assert "pool poolId1234 already exists, reusing it" in caplog.text
        assert "job jobId1234 already exists, reusing it" in caplog.text

    def test_fresh_resources_are_not_marked_reused(self, app_config):
        report = asyncio.run(BatchOrchestrator(FakeObjectStore(), FakeComputeBackend(), app_config)
                             .run(make_work_items(1), "jobId1234", POOL))
        assert report.pool_reused is False
        assert report.job_reused is False

    def test_existing_task_reported_as_duplicate(self, app_config):
        backend = FakeComputeBackend(existing_jobs={"jobId1234"}, existing_tasks={"jobId1234": {"Task0"}})
        report = asyncio.run(BatchOrchestrator(FakeObjectStore(), backend, app_config)
                             .run(make_work_items(2), "jobId1234", POOL))

        assert report.status == RunStatus.COMPLETED_WITH_ERRORS
        assert report.outcome_for("Task0").error_code == ErrorCode.DUPLICATE_TASK
        assert report.outcome_for("Task1").submitted


class TestValidationFailures:

    def test_empty_id_aborts_before_any_remote_call(self, app_config, tmp_path):
        store, backend = FakeObjectStore(), FakeComputeBackend()
        items = _local_items(tmp_path, 2) + [WorkItem(**make_work_item(""))]
        orchestrator = BatchOrchestrator(store, backend, app_config)

        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(orchestrator.run(items, "jobId1234", POOL))

        assert exc_info.value.step == RunStatus.BUILDING_TASKS
        assert store.upload_calls == []
        assert backend.pool_calls == []
        assert backend.job_calls == []
        assert backend.add_task_calls == []
        assert orchestrator.status == RunStatus.FAILED

    def test_duplicate_ids_abort_run(self, app_config):
        backend = FakeComputeBackend()
        items = make_work_items(2) + make_work_items(1)
        with pytest.raises(ValidationError):
            asyncio.run(BatchOrchestrator(FakeObjectStore(), backend, app_config).run(items, "jobId1234", POOL))
        assert backend.pool_calls == []

    def test_empty_batch_rejected(self, app_config):
        with pytest.raises(ValidationError):
            asyncio.run(BatchOrchestrator(FakeObjectStore(), FakeComputeBackend(), app_config)
                        .run([], "jobId1234", POOL))

    def test_empty_job_id_rejected(self, app_config):
        backend = FakeComputeBackend()
        with pytest.raises(ValidationError):
            asyncio.run(BatchOrchestrator(FakeObjectStore(), backend, app_config).run(make_work_items(1), "", POOL))
        assert backend.pool_calls == []

    def test_overlong_job_id_aborts_before_any_remote_call(self, app_config, tmp_path):
        store, backend = FakeObjectStore(), FakeComputeBackend()
        orchestrator = BatchOrchestrator(store, backend, app_config)

        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(orchestrator.run(_local_items(tmp_path, 2), "j" * 65, POOL))

        assert exc_info.value.step == RunStatus.BUILDING_TASKS
        assert store.upload_calls == []
        assert backend.pool_calls == []
        assert backend.job_calls == []
        assert orchestrator.status == RunStatus.FAILED

    def test_job_id_at_limit_accepted(self, app_config):
        backend = FakeComputeBackend()
        report = asyncio.run(BatchOrchestrator(FakeObjectStore(), backend, app_config)
                             .run(make_work_items(1), "j" * 64, POOL))
        assert report.status == RunStatus.COMPLETED
        assert "j" * 64 in backend.jobs


class TestProvisioningFailures:

    def test_pool_failure_fails_run(self, app_config):
        backend = FakeComputeBackend(pool_failure=TransientIOError("connection reset"))
        orchestrator = BatchOrchestrator(FakeObjectStore(), backend, app_config)

        with pytest.raises(ProvisioningError) as exc_info:
            asyncio.run(orchestrator.run(make_work_items(2), "jobId1234", POOL))

        assert exc_info.value.step == RunStatus.PROVISIONING_POOL
        assert exc_info.value.resource_id == "poolId1234"
        assert orchestrator.status == RunStatus.FAILED
        assert orchestrator.history[-2:] == [RunStatus.PROVISIONING_POOL, RunStatus.FAILED]
        assert backend.job_calls == []
        assert backend.add_task_calls == []

    def test_job_failure_fails_run(self, app_config):
        backend = FakeComputeBackend(job_failure=SubmissionError("forbidden", code="AuthorizationFailure"))
        orchestrator = BatchOrchestrator(FakeObjectStore(), backend, app_config)

        with pytest.raises(ProvisioningError) as exc_info:
            asyncio.run(orchestrator.run(make_work_items(2), "jobId1234", POOL))

        assert exc_info.value.step == RunStatus.PROVISIONING_JOB
        assert exc_info.value.resource_id == "jobId1234"
        assert backend.add_task_calls == []


class TestPartialFailures:

    def test_rejected_task_gives_completed_with_errors(self, app_config):
        backend = FakeComputeBackend(task_failures={"Task1": SubmissionError("bad", code="InvalidPropertyValue")})
        report = asyncio.run(BatchOrchestrator(FakeObjectStore(), backend, app_config)
                             .run(make_work_items(3), "jobId1234", POOL))

        assert report.status == RunStatus.COMPLETED_WITH_ERRORS
        assert report.partial
        assert report.submitted_count == 2
        assert report.history[-1] == RunStatus.COMPLETED_WITH_ERRORS

    def test_failed_upload_skips_only_that_task(self, app_config, tmp_path):
        items = _local_items(tmp_path, 3)
        store = FakeObjectStore(fail_uploads={items[1].input_ref.name})
        backend = FakeComputeBackend()
        report = asyncio.run(BatchOrchestrator(store, backend, app_config).run(items, "jobId1234", POOL))

        skipped = report.outcome_for("Task1")
        assert skipped.status == SubmissionStatus.SKIPPED
        assert skipped.error_code == ErrorCode.UPLOAD_FAILED
        assert "Task1" not in backend.add_task_calls
        assert report.submitted_count == 2
        assert report.status == RunStatus.COMPLETED_WITH_ERRORS

    def test_timeout_recorded_per_task(self, make_config):
        backend = FakeComputeBackend(hang={"Task0"})
        report = asyncio.run(BatchOrchestrator(FakeObjectStore(), backend, make_config(request_timeout_seconds=0.05))
                             .run(make_work_items(2), "jobId1234", POOL))
        assert report.outcome_for("Task0").error_code == ErrorCode.TIMEOUT
        assert report.outcome_for("Task1").submitted

    def test_submission_respects_configured_concurrency(self, make_config):
        backend = FakeComputeBackend(delay=0.02)
        asyncio.run(BatchOrchestrator(FakeObjectStore(), backend, make_config(max_concurrency=2))
                    .run(make_work_items(8), "jobId1234", POOL))
        assert backend.peak_in_flight <= 2


class TestCancellation:

    def test_preset_cancel_skips_every_task(self, app_config):
        backend = FakeComputeBackend()

        async def scenario():
            cancel = asyncio.Event()
            cancel.set()
            orchestrator = BatchOrchestrator(FakeObjectStore(), backend, app_config)
            return await orchestrator.run(make_work_items(3), "jobId1234", POOL, cancel_event=cancel)

        report = asyncio.run(scenario())
        assert report.cancelled is True
        assert report.status == RunStatus.COMPLETED_WITH_ERRORS
        assert all(o.error_code == ErrorCode.CANCELLED for o in report.outcomes)
        assert backend.add_task_calls == []


class TestOneShot:

    def test_second_run_is_contract_violation(self, app_config):
        orchestrator = BatchOrchestrator(FakeObjectStore(), FakeComputeBackend(), app_config)
        asyncio.run(orchestrator.run(make_work_items(1), "jobId1234", POOL))
        with pytest.raises(ContractViolationError):
            asyncio.run(orchestrator.run(make_work_items(1), "jobId1234", POOL))


class TestModuleRun:

    def test_uses_supplied_adapters(self, app_config):
        backend = FakeComputeBackend()
        report = asyncio.run(run(make_work_items(2), "jobId1234", POOL, app_config,
                                 object_store=FakeObjectStore(), backend=backend))
        assert report.submitted_count == 2
        assert backend.add_task_calls == ["Task0", "Task1"]

    def test_builds_missing_adapters_from_factory(self, app_config, monkeypatch):
        import infrastructure

        store, backend = FakeObjectStore(), FakeComputeBackend()
        seen = {}

        class FakeFactory:
            @staticmethod
            def create_blob_repository(storage):
                seen["storage"] = storage
                return store

            @staticmethod
            def create_batch_backend(batch, request_timeout_seconds=None):
                seen["batch"] = batch
                seen["timeout"] = request_timeout_seconds
                return backend

        monkeypatch.setattr(infrastructure, "RepositoryFactory", FakeFactory)
        report = asyncio.run(run(make_work_items(1), "jobId1234", POOL, app_config))

        assert report.status == RunStatus.COMPLETED
        assert seen["storage"] is app_config.storage
        assert seen["batch"] is app_config.batch
        assert seen["timeout"] == 5
