from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class Clock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)
