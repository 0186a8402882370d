"""
Scheduler Service Module
========================

This module provides the SchedulerService for running periodic jobs (such as realtime heartbeats) using APScheduler.
It handles job registration, execution monitoring, and lifecycle management.
"""

import logging
from typing import Any, Awaitable, Callable, Dict

from apscheduler import events  # type: ignore
from apscheduler.events import JobExecutionEvent  # type: ignore
from apscheduler.executors.asyncio import AsyncIOExecutor  # type: ignore
from apscheduler.job import Job  # type: ignore
from apscheduler.jobstores.memory import MemoryJobStore  # type: ignore
from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore

from casa_sync.common.utility import LoggerMixin


class SchedulerService(LoggerMixin):
    """Service for managing periodic jobs using APScheduler."""

    def __init__(self, *, logger: logging.Logger, timezone: str = "UTC") -> None:
        self._build_logger(logger=logger)

        jobstores = {"default": MemoryJobStore()}
        executors = {"default": AsyncIOExecutor()}

        # A late heartbeat is sent once, never in a burst.
        job_defaults = {"coalesce": True, "max_instances": 1}

        self._scheduler = AsyncIOScheduler(
            jobstores=jobstores,
            executors=executors,
            job_defaults=job_defaults,
            timezone=timezone,
        )

        self._scheduler.add_listener(  # type: ignore
            self._job_executed, events.EVENT_JOB_EXECUTED | events.EVENT_JOB_ERROR
        )

    @property
    def running(self) -> bool:
        return bool(self._scheduler.running)  # type: ignore

    async def start(self) -> None:
        """Start the scheduler on the running event loop."""
        if self.running:
            return
        self._scheduler.start()  # type: ignore
        self._logger.info("Scheduler service started")

    async def shutdown(self) -> None:
        """Shutdown the scheduler."""
        if not self.running:
            return
        self._scheduler.shutdown(wait=False)  # type: ignore
        self._logger.info("Scheduler service stopped")

    def schedule_interval_task(
        self,
        func: Callable[..., Awaitable[Any]],
        seconds: float,
        args: tuple[Any, ...] = (),
        kwargs: Dict[str, Any] | None = None,
        job_id: str | None = None,
    ) -> str:
        """Schedule a coroutine function to run every ``seconds`` seconds."""

        job: Job = self._scheduler.add_job(  # type: ignore
            func=func,
            trigger="interval",
            seconds=seconds,
            args=args,
            kwargs=kwargs or {},
            id=job_id,
            replace_existing=job_id is not None,
        )

        self._logger.debug(f"Scheduled task {job.id} every {seconds} seconds")  # type: ignore
        return str(job.id)  # type: ignore

    def cancel_task(self, job_id: str) -> bool:
        """Cancel a scheduled task."""
        try:
            self._scheduler.remove_job(job_id)  # type: ignore
            self._logger.debug(f"Cancelled task {job_id}")
            return True
        except Exception as e:
            self._logger.warning(f"Failed to cancel task {job_id}: {e}")
            return False

    def _job_executed(self, event: JobExecutionEvent) -> None:  # type: ignore
        """Handle job execution events."""
        if event.exception:  # type: ignore
            self._logger.error(
                f"Task {event.job_id} failed with exception: {event.exception}"  # type: ignore
            )
        else:
            self._logger.debug(f"Task {event.job_id} executed successfully")  # type: ignore
