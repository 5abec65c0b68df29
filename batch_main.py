#!/usr/bin/env python3
# ============================================================================
# BATCH SUBMISSION ENTRY POINT
# ============================================================================
# STATUS: Entry point - Command line runner for one submission run
# PURPOSE: Upload local inputs, provision pool/job, submit one task per file
# ============================================================================
"""
Batch Submission Entry Point.

Builds one work item per file in the input directory (Task0, Task1, ...),
uploads the files to the input container and submits a task per file that
copies its input to output.txt. Successful outputs land in the output
container as output-{job}-{task}.txt, failure logs in the failed container
as failed-{job}-{task}.txt.

Usage:
    python batch_main.py --input-dir inputFiles
    batchroute --job-id jobId1234 --max-concurrency 3
    batchroute --dry-run

Environment Variables (Required):
    BATCH_ACCOUNT_NAME, BATCH_ACCOUNT_URL, BATCH_ACCOUNT_KEY
    STORAGE_ACCOUNT_NAME (STORAGE_ACCOUNT_KEY optional)
    OUTPUT_FILES_CONTAINER_SAS_URL, FAILED_FILES_CONTAINER_SAS_URL

Exit codes:
    0  every task submitted
    1  run completed with rejected or skipped tasks
    2  fatal error (configuration, validation, provisioning)
"""

import argparse
import asyncio
import json
import signal
import sys
from pathlib import Path
from typing import List, Optional

import pydantic

from config.env_validation import log_validation_results
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.TRIGGER, "batch_main")

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_FATAL = 2


def build_work_items(input_dir: Path, container: str, task_prefix: str = "Task") -> List["WorkItem"]:
    """
    One work item per regular file in input_dir, ordered by file name.

    The blob name is the file name; the task id is <prefix><index>.
    """
    from config.defaults import TaskDefaults
    from core.models import BlobRef, WorkItem

    files = sorted(p for p in Path(input_dir).iterdir() if p.is_file())
    return [
        WorkItem(
            id=f"{task_prefix}{index}",
            input_ref=BlobRef(container=container, name=path.name),
            command=TaskDefaults.COMMAND_LINE,
            output_pattern=TaskDefaults.OUTPUT_PATTERN,
            failure_pattern=TaskDefaults.FAILURE_PATTERN,
            local_input=path,
        )
        for index, path in enumerate(files)
    ]


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, cancel_event: asyncio.Event) -> None:
    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, no new tasks will be submitted")
        loop.call_soon_threadsafe(cancel_event.set)

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)


async def _run(args, config) -> int:
    from core.models import PoolSpec
    from services import BatchOrchestrator
    from infrastructure import RepositoryFactory

    work_items = build_work_items(args.input_dir, config.storage.input_container)
    store = RepositoryFactory.create_blob_repository(config.storage)

    if args.dry_run:
        return _dry_run(work_items, config, store)

    backend = RepositoryFactory.create_batch_backend(config.batch, config.submission.request_timeout_seconds)
    orchestrator = BatchOrchestrator(store, backend, config)

    cancel_event = asyncio.Event()
    _install_signal_handlers(asyncio.get_running_loop(), cancel_event)

    report = await orchestrator.run(
        work_items,
        config.job_id,
        PoolSpec(pool_id=config.pool_id),
        cancel_event=cancel_event,
    )
    print(json.dumps(report.to_dict(), indent=2))
    return EXIT_OK if not report.partial else EXIT_PARTIAL


def _dry_run(work_items, config, store) -> int:
    """Print the task specs that would be submitted; no remote calls."""
    from services import OutputRouter, TaskDescriptorBuilder

    router = OutputRouter(
        config.storage.output_container_url,
        config.storage.failed_container_url,
        config.success_name_template,
        config.failure_name_template,
    )
    builder = TaskDescriptorBuilder(router, lambda ref: store.blob_url(ref.container, ref.name))
    specs = builder.build_all(builder.validate_batch(work_items), config.job_id)
    plan = [
        {
            "task_id": spec.task_id,
            "command": spec.command,
            "inputs": [b.local_target_name for b in spec.input_bindings],
            "on_success": router.select(spec.output_rules, succeeded=True).destination_name,
            "on_failure": router.select(spec.output_rules, succeeded=False).destination_name,
        }
        for spec in specs
    ]
    print(json.dumps({"job_id": config.job_id, "pool_id": config.pool_id, "tasks": plan}, indent=2))
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Submit one Azure Batch task per input file and route its outputs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default demo: inputFiles/ -> poolId1234/jobId1234
  python batch_main.py

  # Different job, wider submission window
  python batch_main.py --job-id nightly-42 --max-concurrency 8

  # Show the task plan only
  python batch_main.py --dry-run
        """,
    )
    parser.add_argument(
        "--input-dir", type=Path, default=None,
        help="Directory of input files, one task per file (default: inputFiles)",
    )
    parser.add_argument("--job-id", type=str, default=None, help="Job id (default: JOB_ID or jobId1234)")
    parser.add_argument("--pool-id", type=str, default=None, help="Pool id (default: POOL_ID or poolId1234)")
    parser.add_argument(
        "--max-concurrency", type=int, default=None,
        help="Max submission requests in flight (default: SUBMIT_MAX_CONCURRENCY or 3)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Build and print task specs, submit nothing")
    parser.add_argument("--skip-env-validation", action="store_true", help="Skip startup env var checks")

    args = parser.parse_args(argv)

    from config import AppConfig, debug_config
    from config.defaults import TaskDefaults
    from core.errors import create_error_response, error_code_for
    from exceptions import BusinessLogicError, ConfigurationError

    if not args.skip_env_validation and not args.dry_run:
        if not log_validation_results(logger):
            return EXIT_FATAL

    try:
        config = AppConfig.from_environment()
        LoggerFactory.set_level(config.log_level)

        overrides = {}
        if args.job_id:
            overrides["job_id"] = args.job_id
        if args.pool_id:
            overrides["pool_id"] = args.pool_id
        if args.max_concurrency is not None:
            overrides["submission"] = {**config.submission.model_dump(), "max_concurrency": args.max_concurrency}
        if overrides:
            try:
                config = AppConfig.model_validate({**config.model_dump(), **overrides})
            except pydantic.ValidationError as e:
                raise ConfigurationError(f"Invalid command line override: {e}") from e
        if not args.dry_run:
            config.require_valid()

        logger.debug("Configuration loaded", extra={"custom_dimensions": debug_config(config)})
        args.input_dir = args.input_dir or Path(TaskDefaults.INPUT_DIR)
        if not args.input_dir.is_dir():
            raise ConfigurationError(f"Input directory not found: {args.input_dir}")

        return asyncio.run(_run(args, config))

    except (BusinessLogicError, ConfigurationError) as e:
        step = getattr(e, "step", None)
        response = create_error_response(
            error_code_for(e),
            getattr(e, "message", str(e)),
            error_type=type(e).__name__,
            step=getattr(step, "value", step),
            resource_id=getattr(e, "resource_id", None),
        )
        print(json.dumps(response, indent=2))
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
