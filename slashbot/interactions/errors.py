from __future__ import annotations

from slashbot.core.errors import SlashbotError


class InteractionError(SlashbotError):
    pass


class AuthenticationFailure(InteractionError):
    pass


class MalformedPayload(InteractionError):
    pass


class UnknownInteractionType(InteractionError):
    pass
