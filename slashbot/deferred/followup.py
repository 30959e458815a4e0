from __future__ import annotations

import json
from typing import Any, Protocol

import httpx

from slashbot.interactions.responses import Message

from .errors import FollowupFailed


class FollowupSender(Protocol):
    async def edit_original(self, *, application_id: str, token: str, message: Message) -> None: ...


def followup_body(message: Message) -> dict[str, Any]:
    body = message.data()
    if message.attachment is not None:
        meta: dict[str, Any] = {"id": 0, "filename": message.attachment.filename}
        if message.attachment.description is not None:
            meta["description"] = message.attachment.description
        body["attachments"] = [meta]
    return body


class FollowupClient:
    def __init__(self, *, http: httpx.AsyncClient, api_base_url: str, timeout_seconds: float):
        self._http = http
        self._api_base_url = api_base_url.rstrip("/")
        self._timeout = timeout_seconds

    def original_message_url(self, application_id: str, token: str) -> str:
        return f"{self._api_base_url}/webhooks/{application_id}/{token}/messages/@original"

    async def edit_original(self, *, application_id: str, token: str, message: Message) -> None:
        url = self.original_message_url(application_id, token)
        body = followup_body(message)
        try:
            if message.attachment is None:
                resp = await self._http.patch(url, json=body, timeout=self._timeout)
            else:
                att = message.attachment
                resp = await self._http.patch(
                    url,
                    data={"payload_json": json.dumps(body)},
                    files={"files[0]": (att.filename, att.content, att.content_type)},
                    timeout=self._timeout,
                )
        except httpx.HTTPError as e:
            raise FollowupFailed(code="FOLLOWUP_UNREACHABLE", message=type(e).__name__) from e
        if resp.status_code >= 300:
            raise FollowupFailed(
                code="FOLLOWUP_REJECTED",
                message=f"platform returned {resp.status_code}",
                status=resp.status_code,
            )
