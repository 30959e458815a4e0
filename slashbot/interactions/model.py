from __future__ import annotations

import json
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Iterator

from slashbot.core.errors import SchemaInvalid
from slashbot.core.schema import SchemaRegistry

from .errors import MalformedPayload


class InteractionType(IntEnum):
    PING = 1
    APPLICATION_COMMAND = 2


@dataclass(frozen=True)
class CommandOption:
    name: str
    value: Any


@dataclass(frozen=True)
class CommandOptions:
    items: tuple[CommandOption, ...] = ()

    def __iter__(self) -> Iterator[CommandOption]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def get(self, name: str, default: Any = None) -> Any:
        for opt in self.items:
            if opt.name == name:
                return opt.value
        return default

    def first(self) -> Any:
        return self.items[0].value if self.items else None

    def get_str(self, name: str, default: str = "") -> str:
        value = self.get(name)
        return default if value is None else str(value)


@dataclass(frozen=True)
class CommandInvocation:
    name: str
    options: CommandOptions = CommandOptions()


@dataclass(frozen=True)
class Interaction:
    type: int
    application_id: str | None = None
    token: str | None = None
    command: CommandInvocation | None = None

    @property
    def kind(self) -> InteractionType | None:
        try:
            return InteractionType(self.type)
        except ValueError:
            return None


def _flatten_options(raw: list[dict] | None) -> tuple[CommandOption, ...]:
    # subcommand groups nest their options; only leaves carry values
    out: list[CommandOption] = []
    for item in raw or []:
        nested = item.get("options")
        if isinstance(nested, list) and "value" not in item:
            out.extend(_flatten_options(nested))
            continue
        out.append(CommandOption(name=str(item["name"]), value=item.get("value")))
    return tuple(out)


def as_interaction(obj: dict) -> Interaction:
    command = None
    data = obj.get("data")
    if isinstance(data, dict) and isinstance(data.get("name"), str):
        command = CommandInvocation(
            name=data["name"],
            options=CommandOptions(items=_flatten_options(data.get("options"))),
        )
    return Interaction(
        type=int(obj["type"]),
        application_id=obj.get("application_id"),
        token=obj.get("token"),
        command=command,
    )


def parse_interaction(raw_body: bytes, schemas: SchemaRegistry) -> Interaction:
    try:
        obj = json.loads(raw_body)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedPayload(code="MALFORMED_PAYLOAD", message="body is not valid JSON") from e
    try:
        schemas.validate(obj, "interaction.schema.json")
    except SchemaInvalid as e:
        raise MalformedPayload(code="MALFORMED_PAYLOAD", message=e.message) from e
    return as_interaction(obj)
