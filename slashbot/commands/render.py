from __future__ import annotations

from typing import Mapping

from slashbot.interactions.model import CommandOptions
from slashbot.interactions.responses import Attachment, Embed, Message
from slashbot.services.errors import ServiceError

MESSAGE_LIMIT = 2000

INFO_COLOR = 0x5865F2
ERROR_COLOR = 0xED4245

INVALID_SIDES = "Invalid number of sides."
EMPTY_PROMPT = "Please provide a prompt."
EMPTY_TEXT = "Please provide some text."
NO_REPLY = "No reply from the model."

# command name -> (option carrying user input, prompt template)
PROMPT_TEMPLATES: Mapping[str, tuple[str, str]] = {
    "chat": ("prompt", "{value}"),
    "summarize": ("text", "Summarize the following text in a few sentences:\n\n{value}"),
}


def render_prompt(command_name: str, options: CommandOptions) -> str:
    option_name, template = PROMPT_TEMPLATES[command_name]
    value = options.get_str(option_name).strip()
    if not value:
        return ""
    return template.format(value=value)


def unknown_command(name: str) -> Message:
    return Message(content=f"Unknown command: `{name}`")


def clip(content: str) -> str:
    if len(content) <= MESSAGE_LIMIT:
        return content
    return content[: MESSAGE_LIMIT - 1] + "…"


def text(content: str) -> Message:
    return Message(content=clip(content))


def completion_reply(reply: str) -> Message:
    reply = reply.strip()
    if not reply:
        return Message(content=NO_REPLY)
    if len(reply) <= MESSAGE_LIMIT:
        return Message(content=reply)
    return Message(
        content=clip(reply),
        attachment=Attachment(
            filename="reply.txt",
            content=reply.encode("utf-8"),
            description="Full reply",
            content_type="text/plain; charset=utf-8",
        ),
    )


def dice_roll(sides: int, value: int) -> Message:
    return Message(content=f"\U0001f3b2 You rolled **{value}** on a d{sides}.")


def temperature(value: float, unit: str, converted: float, target_unit: str) -> Message:
    return Message(content=f"{value:g}°{unit} is {converted:.1f}°{target_unit}.")


def fact(fact_text: str, source: str | None = None) -> Message:
    return Message(
        embeds=(Embed(title="Random fact", description=fact_text, color=INFO_COLOR, footer=source),)
    )


def cat_image(url: str) -> Message:
    return Message(embeds=(Embed(title="Here is a cat", color=INFO_COLOR, image_url=url),))


def failure(title: str, description: str) -> Message:
    return Message(embeds=(Embed(title=title, description=description, color=ERROR_COLOR),))


def service_error(err: ServiceError) -> Message:
    if err.status is not None:
        return failure("Service error", f"{err.message} (HTTP {err.status})")
    return failure("Service error", err.message)


def internal_error(command_name: str) -> Message:
    return failure("Something went wrong", f"`/{command_name}` failed. Please try again later.")


def immediate_timeout(command_name: str) -> Message:
    return failure("Too slow", f"`/{command_name}` took too long to answer. Please try again.")


def deferred_timeout(command_name: str) -> Message:
    return failure("Timed out", f"`/{command_name}` did not finish in time. Please try again.")


def interrupted(command_name: str) -> Message:
    return failure("Interrupted", f"The bot restarted before `/{command_name}` finished. Please try again.")
