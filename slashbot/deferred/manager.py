from __future__ import annotations

import asyncio
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Any, Awaitable, Callable

from slashbot.commands import render
from slashbot.core.logsetup import request_id_var
from slashbot.core.timeutil import Clock
from slashbot.interactions.responses import Message
from slashbot.services.errors import ServiceError

from .errors import FollowupFailed
from .followup import FollowupSender
from .job import DeferredJob, JobKey, JobStatus

logger = logging.getLogger(__name__)

Work = Callable[[], Awaitable[Message]]
Launcher = Callable[..., Any]


@dataclass
class _Entry:
    job: DeferredJob
    delivery_attempted: bool = False
    task: asyncio.Task | None = None


class DeferredResponseManager:
    def __init__(
        self,
        *,
        sender: FollowupSender,
        clock: Clock,
        deferred_timeout_seconds: float,
        followup_window_seconds: float,
        max_settled: int = 4096,
    ):
        self._sender = sender
        self._clock = clock
        self._timeout = deferred_timeout_seconds
        self._window = timedelta(seconds=followup_window_seconds)
        self._max_settled = max_settled
        self._lock = threading.Lock()
        self._jobs: dict[JobKey, _Entry] = {}
        self._settled: OrderedDict[JobKey, JobStatus] = OrderedDict()

    def running(self) -> list[DeferredJob]:
        with self._lock:
            return [e.job for e in self._jobs.values()]

    def settled_status(self, key: JobKey) -> JobStatus | None:
        with self._lock:
            return self._settled.get(key)

    def begin(self, job: DeferredJob, work: Work, *, launcher: Launcher | None = None) -> bool:
        with self._lock:
            if job.key in self._jobs or job.key in self._settled:
                logger.warning("duplicate deferred job %s for /%s ignored", job.job_id, job.command_name)
                return False
            entry = _Entry(job=replace(job, status=JobStatus.RUNNING))
            self._jobs[job.key] = entry
        logger.info("deferred job %s started for /%s", job.job_id, job.command_name)
        if launcher is None:
            entry.task = asyncio.get_running_loop().create_task(self.run(job, work))
        else:
            launcher(self.run, job, work)
        return True

    async def run(self, job: DeferredJob, work: Work) -> DeferredJob:
        token = request_id_var.set(job.job_id)
        try:
            message, status = await self._settle(job, work)
            return await self._deliver(job, message, status)
        finally:
            request_id_var.reset(token)

    async def _settle(self, job: DeferredJob, work: Work) -> tuple[Message, JobStatus]:
        try:
            message = await asyncio.wait_for(work(), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("deferred job %s timed out after %ss", job.job_id, self._timeout)
            return render.deferred_timeout(job.command_name), JobStatus.FAILED
        except ServiceError as e:
            logger.warning("deferred job %s upstream failure: %s", job.job_id, e.code)
            return render.service_error(e), JobStatus.FAILED
        except Exception:
            logger.exception("deferred job %s raised", job.job_id)
            return render.internal_error(job.command_name), JobStatus.FAILED
        return message, JobStatus.COMPLETED

    def _claim(self, job: DeferredJob) -> bool:
        with self._lock:
            entry = self._jobs.get(job.key)
            if entry is None:
                entry = _Entry(job=job)
                if job.key in self._settled:
                    return False
                self._jobs[job.key] = entry
            if entry.delivery_attempted:
                return False
            entry.delivery_attempted = True
            return True

    def _finish(self, job: DeferredJob, status: JobStatus) -> DeferredJob:
        with self._lock:
            self._jobs.pop(job.key, None)
            self._settled[job.key] = status
            while len(self._settled) > self._max_settled:
                self._settled.popitem(last=False)
        return replace(job, status=status)

    async def _deliver(self, job: DeferredJob, message: Message, status: JobStatus) -> DeferredJob:
        if not self._claim(job):
            logger.warning("follow-up for job %s already attempted; dropping", job.job_id)
            return replace(job, status=self.settled_status(job.key) or status)

        if self._clock.now() - job.started_at >= self._window:
            logger.error("follow-up window closed for job %s (/%s); result dropped", job.job_id, job.command_name)
            return self._finish(job, JobStatus.FAILED_EXPIRED)

        try:
            await self._sender.edit_original(application_id=job.application_id, token=job.token, message=message)
        except FollowupFailed as e:
            logger.error("follow-up delivery for job %s failed: %s", job.job_id, e)
        except Exception as e:
            logger.error("follow-up delivery for job %s raised %s", job.job_id, type(e).__name__)
        else:
            logger.info("follow-up delivered for job %s status=%s", job.job_id, status.value)
        finally:
            settled = self._finish(job, status)
        return settled

    async def shutdown(self) -> None:
        with self._lock:
            pending = [e for e in self._jobs.values() if not e.delivery_attempted]
        for entry in pending:
            logger.warning("flushing job %s on shutdown", entry.job.job_id)
            await self._deliver(entry.job, render.interrupted(entry.job.command_name), JobStatus.FAILED)
        for entry in pending:
            if entry.task is not None and not entry.task.done():
                entry.task.cancel()
