"""
Services Package - Submission Pipeline

    OutputRouter           Success/failure output rules per task
    TaskDescriptorBuilder  WorkItem -> TaskSpec (pure)
    JobSubmitter           Create-if-absent provisioning, bounded submission
    BatchOrchestrator      Runs the steps in order and builds the RunReport
    run                    Convenience entry point (adapters from config)

Usage:
    from services import run

    report = await run(work_items, "jobId1234", PoolSpec(pool_id="poolId1234"), config)
"""

from .output_router import OutputRouter
from .task_builder import TaskDescriptorBuilder
from .job_submitter import JobSubmitter
from .orchestrator import BatchOrchestrator, run

__all__ = [
    'OutputRouter',
    'TaskDescriptorBuilder',
    'JobSubmitter',
    'BatchOrchestrator',
    'run',
]
