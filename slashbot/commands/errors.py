from __future__ import annotations

from dataclasses import dataclass

from slashbot.core.errors import SlashbotError


class CommandError(SlashbotError):
    pass


class DuplicateCommand(CommandError):
    pass


@dataclass(frozen=True)
class RegistrationFailed(CommandError):
    status: int | None = None
