from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4


def _ts(dt: datetime) -> str:
    return dt.strftime("%Y%m%dT%H%M%SZ")


@dataclass(frozen=True)
class IdGenerator:
    def new_job_id(self, now: datetime) -> str:
        return f"job_{_ts(now)}_{uuid4().hex[:8]}"

    def new_request_id(self) -> str:
        return f"req_{uuid4().hex[:12]}"
