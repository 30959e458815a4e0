from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class JobStatus(str, Enum):
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    FAILED_EXPIRED = "FAILED_EXPIRED"


JobKey = tuple[str, str]


@dataclass(frozen=True)
class DeferredJob:
    job_id: str
    application_id: str
    token: str
    command_name: str
    started_at: datetime
    status: JobStatus = JobStatus.RUNNING

    @property
    def key(self) -> JobKey:
        return (self.application_id, self.token)
