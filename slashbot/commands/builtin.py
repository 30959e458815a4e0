from __future__ import annotations

from typing import Any

from slashbot.interactions.model import CommandOptions
from slashbot.interactions.responses import Message
from slashbot.services.errors import ServiceError

from . import render
from .registry import CommandRegistry
from .types import (
    INTEGER_OPTION,
    NUMBER_OPTION,
    CommandContext,
    CommandDescriptor,
    CommandMode,
    Handler,
    OptionSpec,
)

DEFAULT_SIDES = 6
MAX_SIDES = 1000


def _generative(command_name: str) -> Handler:
    async def handle(options: CommandOptions, ctx: CommandContext) -> Message:
        prompt = render.render_prompt(command_name, options)
        if not prompt:
            return render.text(render.EMPTY_PROMPT if command_name == "chat" else render.EMPTY_TEXT)
        try:
            reply = await ctx.services.complete(prompt, ctx.settings.max_tokens)
        except ServiceError as e:
            return render.service_error(e)
        return render.completion_reply(reply)

    handle.__name__ = f"handle_{command_name}"
    return handle


def _single_text(options: CommandOptions) -> str:
    value = options.get("text", options.first())
    return "" if value is None else str(value)


async def echo(options: CommandOptions, ctx: CommandContext) -> Message:
    value = _single_text(options)
    if not value.strip():
        return render.text(render.EMPTY_TEXT)
    return render.text(value)


def parse_sides(raw: Any) -> int | None:
    if raw is None:
        return DEFAULT_SIDES
    if isinstance(raw, bool):
        return None
    try:
        sides = int(str(raw).strip())
    except ValueError:
        return None
    if sides < 1 or sides > MAX_SIDES:
        return None
    return sides


async def rolldice(options: CommandOptions, ctx: CommandContext) -> Message:
    sides = parse_sides(options.get("sides", options.first()))
    if sides is None:
        return render.text(render.INVALID_SIDES)
    return render.dice_roll(sides, ctx.rng.randint(1, sides))


async def reverse(options: CommandOptions, ctx: CommandContext) -> Message:
    value = _single_text(options)
    if not value.strip():
        return render.text(render.EMPTY_TEXT)
    return render.text(value[::-1])


def convert_temperature(value: float, unit: str) -> tuple[float, str]:
    unit = unit.strip().upper()
    if unit == "C":
        return value * 9 / 5 + 32, "F"
    if unit == "F":
        return (value - 32) * 5 / 9, "C"
    raise ValueError(f"unknown unit: {unit}")


async def temperature(options: CommandOptions, ctx: CommandContext) -> Message:
    unit = options.get_str("unit", "C").strip().upper()
    try:
        value = float(options.get_str("value").strip())
        converted, target = convert_temperature(value, unit)
    except ValueError:
        return render.text("Please give a number and a unit of C or F.")
    return render.temperature(value, unit, converted, target)


def _parse_fact(obj: Any) -> tuple[str, str | None]:
    text = obj["text"]
    if not isinstance(text, str) or not text.strip():
        raise ValueError("empty fact")
    source = obj.get("source")
    return text.strip(), source if isinstance(source, str) else None


async def fact(options: CommandOptions, ctx: CommandContext) -> Message:
    try:
        text, source = await ctx.services.fetch_structured(
            ctx.settings.facts_url, _parse_fact, timeout=ctx.settings.lookup_timeout_seconds
        )
    except ServiceError as e:
        return render.service_error(e)
    return render.fact(text, source)


def _parse_cat(obj: Any) -> str:
    url = obj[0]["url"]
    if not isinstance(url, str) or not url.startswith("http"):
        raise ValueError("no image url")
    return url


async def catimage(options: CommandOptions, ctx: CommandContext) -> Message:
    try:
        url = await ctx.services.fetch_structured(ctx.settings.cat_image_url, _parse_cat)
    except ServiceError as e:
        return render.service_error(e)
    return render.cat_image(url)


def builtin_commands() -> list[CommandDescriptor]:
    return [
        CommandDescriptor(
            name="chat",
            mode=CommandMode.DEFERRED,
            handler=_generative("chat"),
            description="Chat with AI",
            options=(OptionSpec("prompt", "Your message", required=True),),
        ),
        CommandDescriptor(
            name="summarize",
            mode=CommandMode.DEFERRED,
            handler=_generative("summarize"),
            description="Summarize a piece of text",
            options=(OptionSpec("text", "Text to summarize", required=True),),
        ),
        CommandDescriptor(
            name="echo",
            mode=CommandMode.IMMEDIATE,
            handler=echo,
            description="Repeat your text back",
            options=(OptionSpec("text", "Text to repeat", required=True),),
        ),
        CommandDescriptor(
            name="rolldice",
            mode=CommandMode.IMMEDIATE,
            handler=rolldice,
            description="Roll a die",
            options=(OptionSpec("sides", f"Number of sides (default {DEFAULT_SIDES})", type=INTEGER_OPTION),),
        ),
        CommandDescriptor(
            name="reverse",
            mode=CommandMode.IMMEDIATE,
            handler=reverse,
            description="Reverse your text",
            options=(OptionSpec("text", "Text to reverse", required=True),),
        ),
        CommandDescriptor(
            name="temperature",
            mode=CommandMode.IMMEDIATE,
            handler=temperature,
            description="Convert between Celsius and Fahrenheit",
            options=(
                OptionSpec("value", "Temperature to convert", type=NUMBER_OPTION, required=True),
                OptionSpec("unit", "Unit of the given value", required=True, choices=("C", "F")),
            ),
        ),
        CommandDescriptor(
            name="fact",
            mode=CommandMode.IMMEDIATE,
            handler=fact,
            description="Get a random fact",
        ),
        CommandDescriptor(
            name="catimage",
            mode=CommandMode.DEFERRED,
            handler=catimage,
            description="Get a random cat picture",
        ),
    ]


def build_default_registry() -> CommandRegistry:
    return CommandRegistry(builtin_commands())
