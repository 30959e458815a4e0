from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI
from nacl.signing import SigningKey

import slashbot_register
import slashbot_server

PUBLIC_KEY = SigningKey(b"\x01" * 32).verify_key.encode().hex()


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(slashbot_server, "setup_logging", lambda level: None)
    monkeypatch.setattr(slashbot_register, "setup_logging", lambda level: None)


def test_server_cli_builds_app_and_invokes_runner():
    called = {}

    def runner(app, **kwargs):
        called["app"] = app
        called.update(kwargs)

    slashbot_server.main(
        ["--host", "127.0.0.1", "--port", "8123"],
        runner=runner,
        environ={"DISCORD_PUBLIC_KEY": PUBLIC_KEY, "GROQ_API_KEY": "gsk_test"},
    )
    assert isinstance(called["app"], FastAPI)
    assert called["host"] == "127.0.0.1"
    assert called["port"] == 8123
    assert called["log_config"] is None


def test_server_cli_reads_config_file(tmp_path: Path):
    cfg_path = tmp_path / "slashbot.json"
    cfg_path.write_text(
        json.dumps({"public_key": PUBLIC_KEY, "completion_api_key": "from-file", "log_level": "DEBUG"}),
        encoding="utf-8",
    )
    called = {}
    slashbot_server.main(["--config", str(cfg_path)], runner=lambda app, **kw: called.update(kw), environ={})
    assert called["host"] == "0.0.0.0"


def test_server_cli_exits_on_missing_config():
    with pytest.raises(SystemExit) as exc:
        slashbot_server.main([], runner=lambda app, **kw: None, environ={})
    assert exc.value.code == 2


def test_server_cli_rejects_unusable_public_key():
    with pytest.raises(SystemExit) as exc:
        slashbot_server.main(
            [], runner=lambda app, **kw: None, environ={"DISCORD_PUBLIC_KEY": "zz", "GROQ_API_KEY": "k"}
        )
    assert exc.value.code == 2


def test_register_dry_run_prints_definitions(capsys):
    assert slashbot_register.main(["--dry-run"], environ={}) == 0
    definitions = json.loads(capsys.readouterr().out)
    names = {d["name"] for d in definitions}
    assert {"chat", "echo", "rolldice", "fact"} <= names
    assert all(d["type"] == 1 for d in definitions)


def test_register_puts_definitions_with_bot_token(capsys):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=json.loads(request.content))

    env = {"DISCORD_APPLICATION_ID": "123", "DISCORD_BOT_TOKEN": "bot-secret"}
    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        code = slashbot_register.main(["--guild-id", "999"], environ=env, http=client)

    assert code == 0
    assert len(seen) == 1
    assert seen[0].method == "PUT"
    assert seen[0].url.path == "/api/v10/applications/123/guilds/999/commands"
    assert seen[0].headers["Authorization"] == "Bot bot-secret"
    assert capsys.readouterr().out.startswith("registered ")


def test_register_reports_rejection():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"message": "Missing Access"})

    env = {"DISCORD_APPLICATION_ID": "123", "DISCORD_BOT_TOKEN": "bot-secret"}
    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        assert slashbot_register.main([], environ=env, http=client) == 1


def test_register_requires_credentials():
    with pytest.raises(SystemExit) as exc:
        slashbot_register.main([], environ={})
    assert exc.value.code == 2
