from __future__ import annotations

from dataclasses import dataclass

from slashbot.core.errors import SlashbotError


@dataclass(frozen=True)
class ServiceError(SlashbotError):
    status: int | None = None

    def __str__(self) -> str:
        if self.status is None:
            return f"{self.code}: {self.message}"
        return f"{self.code} ({self.status}): {self.message}"
