from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SlashbotError(Exception):
    code: str
    message: str

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ConfigError(SlashbotError):
    pass


class SchemaInvalid(SlashbotError):
    pass
