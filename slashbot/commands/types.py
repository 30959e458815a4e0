from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

from slashbot.interactions.model import CommandOptions
from slashbot.interactions.responses import Message
from slashbot.services.client import ExternalServiceClient

STRING_OPTION = 3
INTEGER_OPTION = 4
NUMBER_OPTION = 10

CHAT_INPUT_COMMAND = 1


class CommandMode(str, Enum):
    IMMEDIATE = "IMMEDIATE"
    DEFERRED = "DEFERRED"


@dataclass(frozen=True)
class CommandSettings:
    max_tokens: int = 1024
    facts_url: str = ""
    cat_image_url: str = ""
    lookup_timeout_seconds: float = 2.0


@dataclass(frozen=True)
class CommandContext:
    services: ExternalServiceClient
    settings: CommandSettings = CommandSettings()
    rng: random.Random = field(default_factory=random.Random)


Handler = Callable[[CommandOptions, CommandContext], Awaitable[Message]]


@dataclass(frozen=True)
class OptionSpec:
    name: str
    description: str
    type: int = STRING_OPTION
    required: bool = False
    choices: tuple[str, ...] = ()

    def definition(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "required": self.required,
        }
        if self.choices:
            out["choices"] = [{"name": c, "value": c} for c in self.choices]
        return out


@dataclass(frozen=True)
class CommandDescriptor:
    name: str
    mode: CommandMode
    handler: Handler
    description: str = ""
    options: tuple[OptionSpec, ...] = ()

    def definition(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": CHAT_INPUT_COMMAND,
            "description": self.description or self.name,
            "options": [o.definition() for o in self.options],
        }
