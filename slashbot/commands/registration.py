from __future__ import annotations

import logging
from typing import Any

import httpx

from .errors import RegistrationFailed
from .registry import CommandRegistry

logger = logging.getLogger(__name__)


def commands_url(api_base_url: str, application_id: str, guild_id: str | None = None) -> str:
    base = f"{api_base_url.rstrip('/')}/applications/{application_id}"
    if guild_id:
        return f"{base}/guilds/{guild_id}/commands"
    return f"{base}/commands"


def register_commands(
    *,
    http: httpx.Client,
    registry: CommandRegistry,
    api_base_url: str,
    application_id: str,
    bot_token: str,
    guild_id: str | None = None,
) -> list[dict[str, Any]]:
    # bulk overwrite: commands missing from the registry are removed on the platform
    url = commands_url(api_base_url, application_id, guild_id)
    try:
        resp = http.put(url, json=registry.definitions(), headers={"Authorization": f"Bot {bot_token}"})
    except httpx.HTTPError as e:
        raise RegistrationFailed(code="REGISTRATION_UNREACHABLE", message=type(e).__name__) from e
    if resp.status_code >= 300:
        raise RegistrationFailed(
            code="REGISTRATION_REJECTED",
            message=f"platform returned {resp.status_code}: {resp.text[:200]}",
            status=resp.status_code,
        )
    registered = resp.json()
    logger.info("registered %d commands (%s)", len(registered), "guild" if guild_id else "global")
    return registered
