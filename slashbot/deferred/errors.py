from __future__ import annotations

from dataclasses import dataclass

from slashbot.core.errors import SlashbotError


@dataclass(frozen=True)
class FollowupFailed(SlashbotError):
    status: int | None = None
