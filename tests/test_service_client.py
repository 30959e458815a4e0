from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from slashbot.services.client import HttpServiceClient
from slashbot.services.errors import ServiceError


def run_with(handler, call):
    async def main():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = HttpServiceClient(
                http=http,
                completion_base_url="https://llm.test/openai/v1",
                api_key="key_1",
                model="model-x",
                timeout_seconds=5,
            )
            return await call(client)

    return asyncio.run(main())


def test_complete_posts_chat_request():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": "hi!"}}]})

    reply = run_with(handler, lambda c: c.complete("hello", 64))
    assert reply == "hi!"
    req = seen[0]
    assert str(req.url) == "https://llm.test/openai/v1/chat/completions"
    assert req.headers["authorization"] == "Bearer key_1"
    assert json.loads(req.content) == {
        "model": "model-x",
        "messages": [{"role": "user", "content": "hello"}],
        "max_tokens": 64,
    }


def test_complete_http_error_carries_status():
    with pytest.raises(ServiceError) as exc:
        run_with(lambda r: httpx.Response(429, json={"error": "slow down"}), lambda c: c.complete("x", 1))
    assert exc.value.status == 429
    assert exc.value.code == "COMPLETION_FAILED"


def test_complete_malformed_body():
    with pytest.raises(ServiceError) as exc:
        run_with(lambda r: httpx.Response(200, json={"choices": []}), lambda c: c.complete("x", 1))
    assert exc.value.code == "COMPLETION_MALFORMED"


def test_complete_unreachable():
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    with pytest.raises(ServiceError) as exc:
        run_with(handler, lambda c: c.complete("x", 1))
    assert exc.value.status is None


def test_fetch_structured_decodes_and_parses():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        return httpx.Response(200, json={"text": "fact"})

    assert run_with(handler, lambda c: c.fetch_structured("https://facts.test/x", lambda o: o["text"])) == "fact"


def test_fetch_structured_parse_failure_is_service_error():
    with pytest.raises(ServiceError) as exc:
        run_with(
            lambda r: httpx.Response(200, json=[]),
            lambda c: c.fetch_structured("https://facts.test/x", lambda o: o["text"]),
        )
    assert exc.value.code == "LOOKUP_MALFORMED"


def test_fetch_structured_non_json_is_service_error():
    with pytest.raises(ServiceError):
        run_with(
            lambda r: httpx.Response(200, text="<html>"),
            lambda c: c.fetch_structured("https://facts.test/x", lambda o: o),
        )


def test_fetch_structured_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(ServiceError) as exc:
        run_with(handler, lambda c: c.fetch_structured("https://facts.test/x", lambda o: o, timeout=0.1))
    assert exc.value.code == "LOOKUP_TIMEOUT"
