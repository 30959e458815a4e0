from __future__ import annotations

import logging
from typing import Any, Callable, Protocol, TypeVar

import httpx

from .errors import ServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ExternalServiceClient(Protocol):
    async def complete(self, prompt: str, max_tokens: int) -> str: ...

    async def fetch_structured(
        self, url: str, parse: Callable[[Any], T], *, timeout: float | None = None
    ) -> T: ...


class HttpServiceClient:
    """Completion calls go to an OpenAI-compatible chat-completions API."""

    def __init__(
        self,
        *,
        http: httpx.AsyncClient,
        completion_base_url: str,
        api_key: str,
        model: str,
        timeout_seconds: float,
    ):
        self._http = http
        self._completions_url = completion_base_url.rstrip("/") + "/chat/completions"
        self._api_key = api_key
        self._model = model
        self._timeout = timeout_seconds

    async def complete(self, prompt: str, max_tokens: int) -> str:
        body = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
        }
        try:
            resp = await self._http.post(
                self._completions_url,
                json=body,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            raise ServiceError(code="COMPLETION_TIMEOUT", message="completion service timed out") from e
        except httpx.HTTPError as e:
            raise ServiceError(code="COMPLETION_UNAVAILABLE", message=f"completion service unreachable: {e}") from e

        if resp.status_code >= 400:
            logger.warning("completion service returned %s", resp.status_code)
            raise ServiceError(
                code="COMPLETION_FAILED",
                message=f"completion service returned {resp.status_code} {resp.reason_phrase}".strip(),
                status=resp.status_code,
            )
        try:
            reply = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ServiceError(
                code="COMPLETION_MALFORMED", message="completion service returned an unexpected body"
            ) from e
        return reply if isinstance(reply, str) else ""

    async def fetch_structured(
        self, url: str, parse: Callable[[Any], T], *, timeout: float | None = None
    ) -> T:
        try:
            resp = await self._http.get(
                url,
                headers={"Accept": "application/json"},
                timeout=self._timeout if timeout is None else timeout,
            )
        except httpx.TimeoutException as e:
            raise ServiceError(code="LOOKUP_TIMEOUT", message="data provider timed out") from e
        except httpx.HTTPError as e:
            raise ServiceError(code="LOOKUP_UNAVAILABLE", message=f"data provider unreachable: {e}") from e

        if resp.status_code >= 400:
            logger.warning("data provider %s returned %s", httpx.URL(url).host, resp.status_code)
            raise ServiceError(
                code="LOOKUP_FAILED",
                message=f"data provider returned {resp.status_code} {resp.reason_phrase}".strip(),
                status=resp.status_code,
            )
        try:
            return parse(resp.json())
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ServiceError(code="LOOKUP_MALFORMED", message="data provider returned an unexpected body") from e
