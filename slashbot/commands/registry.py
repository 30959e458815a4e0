from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterable, Iterator

from .errors import DuplicateCommand
from .types import CommandDescriptor


class CommandRegistry:
    def __init__(self, descriptors: Iterable[CommandDescriptor]):
        table: dict[str, CommandDescriptor] = {}
        for d in descriptors:
            if d.name in table:
                raise DuplicateCommand(code="DUPLICATE_COMMAND", message=f"command registered twice: {d.name}")
            table[d.name] = d
        self._table = MappingProxyType(table)

    def get(self, name: str) -> CommandDescriptor | None:
        return self._table.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._table

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def descriptors(self) -> list[CommandDescriptor]:
        return list(self._table.values())

    def definitions(self) -> list[dict[str, Any]]:
        return [d.definition() for d in self._table.values()]
