from __future__ import annotations

import asyncio
import random

from slashbot.commands import render
from slashbot.commands.builtin import build_default_registry, convert_temperature, parse_sides
from slashbot.commands.types import CommandContext, CommandSettings
from slashbot.interactions.model import CommandOption, CommandOptions
from slashbot.services.errors import ServiceError


class FakeServices:
    def __init__(self, reply: str = "hello there", structured=None, error: ServiceError | None = None):
        self.reply = reply
        self.structured = structured
        self.error = error
        self.prompts: list[tuple[str, int]] = []
        self.urls: list[tuple[str, float | None]] = []

    async def complete(self, prompt: str, max_tokens: int) -> str:
        self.prompts.append((prompt, max_tokens))
        if self.error is not None:
            raise self.error
        return self.reply

    async def fetch_structured(self, url, parse, *, timeout=None):
        self.urls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return parse(self.structured)


def opts(**values) -> CommandOptions:
    return CommandOptions(items=tuple(CommandOption(name=k, value=v) for k, v in values.items()))


def run(name: str, options: CommandOptions, services: FakeServices | None = None, seed: int = 1):
    ctx = CommandContext(
        services=services or FakeServices(),
        settings=CommandSettings(
            max_tokens=77, facts_url="https://facts.test/random", cat_image_url="https://cats.test/search"
        ),
        rng=random.Random(seed),
    )
    handler = build_default_registry().get(name).handler
    return asyncio.run(handler(options, ctx))


def test_echo_returns_text_verbatim():
    assert run("echo", opts(text="hi")).content == "hi"
    assert run("echo", opts(message="positional")).content == "positional"
    assert run("echo", opts(text="   ")).content == render.EMPTY_TEXT


def test_rolldice_validates_sides():
    assert run("rolldice", opts(sides="0")).content == "Invalid number of sides."
    assert run("rolldice", opts(sides="-3")).content == "Invalid number of sides."
    assert run("rolldice", opts(sides="six")).content == "Invalid number of sides."
    assert run("rolldice", opts(sides=10_000)).content == "Invalid number of sides."


def test_rolldice_rolls_within_range():
    for seed in range(20):
        content = run("rolldice", opts(sides=4), seed=seed).content
        assert "on a d4" in content
        rolled = int(content.split("**")[1])
        assert 1 <= rolled <= 4
    assert "on a d6" in run("rolldice", CommandOptions()).content


def test_parse_sides():
    assert parse_sides(None) == 6
    assert parse_sides(" 20 ") == 20
    assert parse_sides(True) is None
    assert parse_sides("1.5") is None


def test_reverse_and_temperature():
    assert run("reverse", opts(text="abc")).content == "cba"
    assert run("temperature", opts(value=100, unit="C")).content == "100°C is 212.0°F."
    assert run("temperature", opts(value="32", unit="f")).content == "32°F is 0.0°C."
    assert "number" in run("temperature", opts(value="warm", unit="C")).content
    assert "number" in run("temperature", opts(value="1", unit="K")).content


def test_convert_temperature():
    assert convert_temperature(-40, "C") == (-40, "F")
    assert convert_temperature(212, "F") == (100, "C")


def test_chat_delegates_to_completion():
    services = FakeServices(reply="  the answer  ")
    message = run("chat", opts(prompt=" why? "), services)
    assert services.prompts == [("why?", 77)]
    assert message.content == "the answer"
    assert message.attachment is None


def test_chat_empty_prompt_is_user_facing_message():
    services = FakeServices()
    assert run("chat", opts(prompt="  "), services).content == render.EMPTY_PROMPT
    assert services.prompts == []


def test_summarize_uses_template():
    services = FakeServices()
    run("summarize", opts(text="long text"), services)
    assert services.prompts[0][0] == "Summarize the following text in a few sentences:\n\nlong text"


def test_long_reply_is_truncated_and_attached():
    reply = "x" * 2500
    message = run("chat", opts(prompt="go"), FakeServices(reply=reply))
    assert len(message.content) == render.MESSAGE_LIMIT
    assert message.attachment.filename == "reply.txt"
    assert message.attachment.content == reply.encode("utf-8")


def test_empty_reply():
    assert run("chat", opts(prompt="go"), FakeServices(reply="")).content == render.NO_REPLY


def test_upstream_error_becomes_error_embed():
    err = ServiceError(code="COMPLETION_FAILED", message="completion service returned 503", status=503)
    message = run("chat", opts(prompt="go"), FakeServices(error=err))
    assert message.content is None
    embed = message.embeds[0]
    assert embed.color == render.ERROR_COLOR
    assert "503" in embed.description


def test_fact_lookup_is_bounded_and_rendered():
    services = FakeServices(structured={"text": "Honey never spoils.", "source": "djtech.net"})
    message = run("fact", CommandOptions(), services)
    assert services.urls == [("https://facts.test/random", 2.0)]
    assert message.embeds[0].description == "Honey never spoils."
    assert message.embeds[0].footer == "djtech.net"


def test_fact_bad_body_surfaces_as_message():
    err = ServiceError(code="LOOKUP_MALFORMED", message="data provider returned an unexpected body")
    message = run("fact", CommandOptions(), FakeServices(error=err))
    assert message.embeds[0].title == "Service error"


def test_catimage_embed():
    services = FakeServices(structured=[{"id": "a", "url": "https://cdn.test/cat.jpg"}])
    message = run("catimage", CommandOptions(), services)
    assert message.embeds[0].to_dict()["image"] == {"url": "https://cdn.test/cat.jpg"}


def test_render_prompt_is_pure():
    assert render.render_prompt("chat", opts(prompt="hi")) == "hi"
    assert render.render_prompt("chat", opts(prompt="{x}")) == "{x}"
    assert render.render_prompt("summarize", CommandOptions()) == ""


def test_unknown_command_message():
    assert render.unknown_command("nope").content == "Unknown command: `nope`"


def test_echo_and_reverse_stay_within_message_limit():
    long_text = "ab" * 1250
    echoed = run("echo", opts(text=long_text)).content
    reversed_ = run("reverse", opts(text=long_text)).content
    assert len(echoed) == render.MESSAGE_LIMIT
    assert len(reversed_) == render.MESSAGE_LIMIT
    assert echoed.startswith("abab") and echoed.endswith("…")
    assert reversed_.startswith("baba") and reversed_.endswith("…")

    exact = "x" * render.MESSAGE_LIMIT
    assert run("echo", opts(text=exact)).content == exact
    assert len(run("echo", opts(text=exact + "y")).content) == render.MESSAGE_LIMIT
