"""
In-process registry of running 3D poll loops.

The HTTP layer submits a job, hands the poll loop to this registry as a
background task and answers status requests from the live ModelJob object.
"""

import asyncio
from collections import OrderedDict
from typing import Awaitable, Callable, Dict, Optional

from design_studio.core.logger import get_logger
from design_studio.models.design_models import ModelJob, ModelJobState

logger = get_logger(__name__)

PollFactory = Callable[[ModelJob, asyncio.Event], Awaitable[ModelJob]]


class ModelJobRegistry:
    """Tracks jobs by task id; finished jobs are kept (bounded) for status reads."""

    def __init__(self, max_jobs: int = 512):
        self.max_jobs = max_jobs
        self._jobs: "OrderedDict[str, ModelJob]" = OrderedDict()
        self._tasks: Dict[str, asyncio.Task] = {}
        self._aborts: Dict[str, asyncio.Event] = {}

    def get(self, task_id: str) -> Optional[ModelJob]:
        return self._jobs.get(task_id)

    def is_running(self, task_id: str) -> bool:
        task = self._tasks.get(task_id)
        return task is not None and not task.done()

    def start(self, job: ModelJob, poll: PollFactory) -> asyncio.Task:
        """Register the job and run poll(job, abort) as a background task."""
        abort = asyncio.Event()
        self._remember(job)
        self._aborts[job.task_id] = abort

        task = asyncio.ensure_future(poll(job, abort))
        self._tasks[job.task_id] = task
        task.add_done_callback(lambda t, task_id=job.task_id: self._finished(task_id, t))
        return task

    def cancel(self, task_id: str) -> bool:
        """Signal the poll loop to stop; returns False for unknown or finished jobs."""
        if not self.is_running(task_id):
            return False
        self._aborts[task_id].set()
        return True

    def _remember(self, job: ModelJob) -> None:
        self._jobs[job.task_id] = job
        self._jobs.move_to_end(job.task_id)
        while len(self._jobs) > self.max_jobs:
            self._jobs.popitem(last=False)

    async def shutdown(self) -> None:
        """Abort every running poll loop and wait for the tasks to finish."""
        tasks = list(self._tasks.values())
        if not tasks:
            return

        logger.info(f"Stopping {len(tasks)} 3D poll loop(s)")
        for abort in self._aborts.values():
            abort.set()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _finished(self, task_id: str, task: asyncio.Task) -> None:
        self._tasks.pop(task_id, None)
        self._aborts.pop(task_id, None)
        job = self._jobs.get(task_id)

        if task.cancelled():
            if job is not None and not job.state.is_terminal:
                job.state = ModelJobState.CANCELLED
            return

        error = task.exception()
        if error is not None:
            logger.error(f"3D poll loop for task {task_id} crashed: {error}")
            if job is not None and not job.state.is_terminal:
                job.state = ModelJobState.FAILED
                job.error = f"3D status polling crashed: {error}"
