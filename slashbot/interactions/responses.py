from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

PONG_TYPE = 1
CHANNEL_MESSAGE_TYPE = 4
DEFERRED_CHANNEL_MESSAGE_TYPE = 5


@dataclass(frozen=True)
class Embed:
    title: str | None = None
    description: str | None = None
    color: int | None = None
    image_url: str | None = None
    footer: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.title is not None:
            out["title"] = self.title
        if self.description is not None:
            out["description"] = self.description
        if self.color is not None:
            out["color"] = self.color
        if self.image_url is not None:
            out["image"] = {"url": self.image_url}
        if self.footer is not None:
            out["footer"] = {"text": self.footer}
        return out


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    description: str | None = None
    content_type: str = "application/octet-stream"


@dataclass(frozen=True)
class Message:
    content: str | None = None
    embeds: tuple[Embed, ...] = ()
    attachment: Attachment | None = None

    def data(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.content is not None:
            out["content"] = self.content
        if self.embeds:
            out["embeds"] = [e.to_dict() for e in self.embeds]
        return out


@dataclass(frozen=True)
class Pong:
    pass


@dataclass(frozen=True)
class DeferredAck:
    pass


Response = Union[Pong, Message, DeferredAck]

PONG = Pong()
DEFERRED_ACK = DeferredAck()


def to_wire(response: Response) -> dict[str, Any]:
    if isinstance(response, Pong):
        return {"type": PONG_TYPE}
    if isinstance(response, DeferredAck):
        return {"type": DEFERRED_CHANNEL_MESSAGE_TYPE}
    if isinstance(response, Message):
        return {"type": CHANNEL_MESSAGE_TYPE, "data": response.data()}
    raise TypeError(f"not a response: {response!r}")
