from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

from .errors import ConfigError, SchemaInvalid
from .schema import SchemaRegistry

SERVER_REQUIRED = ("public_key", "completion_api_key")
REGISTRATION_REQUIRED = ("application_id", "bot_token")

ENV_KEYS: dict[str, str] = {
    "DISCORD_PUBLIC_KEY": "public_key",
    "GROQ_API_KEY": "completion_api_key",
    "DISCORD_APPLICATION_ID": "application_id",
    "DISCORD_CLIENT_ID": "application_id",
    "DISCORD_BOT_TOKEN": "bot_token",
    "BOT_TOKEN": "bot_token",
    "SLASHBOT_COMPLETION_BASE_URL": "completion_base_url",
    "SLASHBOT_COMPLETION_MODEL": "completion_model",
    "SLASHBOT_COMPLETION_MAX_TOKENS": "completion_max_tokens",
    "SLASHBOT_API_BASE_URL": "api_base_url",
    "SLASHBOT_FACTS_URL": "facts_url",
    "SLASHBOT_CAT_IMAGE_URL": "cat_image_url",
    "SLASHBOT_HTTP_TIMEOUT_SECONDS": "http_timeout_seconds",
    "SLASHBOT_LOOKUP_TIMEOUT_SECONDS": "lookup_timeout_seconds",
    "SLASHBOT_IMMEDIATE_TIMEOUT_SECONDS": "immediate_timeout_seconds",
    "SLASHBOT_DEFERRED_TIMEOUT_SECONDS": "deferred_timeout_seconds",
    "SLASHBOT_FOLLOWUP_WINDOW_SECONDS": "followup_window_seconds",
    "SLASHBOT_LOG_LEVEL": "log_level",
}

_INT_KEYS = {"completion_max_tokens"}
_FLOAT_KEYS = {
    "http_timeout_seconds",
    "lookup_timeout_seconds",
    "immediate_timeout_seconds",
    "deferred_timeout_seconds",
    "followup_window_seconds",
}


@dataclass(frozen=True)
class AppConfig:
    public_key: str = ""
    completion_api_key: str = ""
    completion_base_url: str = "https://api.groq.com/openai/v1"
    completion_model: str = "llama-3.3-70b-versatile"
    completion_max_tokens: int = 1024
    api_base_url: str = "https://discord.com/api/v10"
    application_id: str = ""
    bot_token: str = ""
    facts_url: str = "https://uselessfacts.jsph.pl/api/v2/facts/random?language=en"
    cat_image_url: str = "https://api.thecatapi.com/v1/images/search"
    http_timeout_seconds: float = 30.0
    lookup_timeout_seconds: float = 2.0
    immediate_timeout_seconds: float = 2.5
    deferred_timeout_seconds: float = 600.0
    followup_window_seconds: float = 900.0
    log_level: str = "INFO"


def _coerce_env(key: str, value: str) -> Any:
    try:
        if key in _INT_KEYS:
            return int(value)
        if key in _FLOAT_KEYS:
            return float(value)
    except ValueError as e:
        raise ConfigError(code="CONFIG_INVALID", message=f"{key} must be numeric") from e
    return value


def _read_config_file(config_path: Path) -> dict:
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigError(code="CONFIG_UNREADABLE", message=f"{config_path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(code="CONFIG_INVALID", message=f"{config_path}: top level must be an object")
    return raw


def load_config(
    *,
    environ: Mapping[str, str],
    config_path: Path | None = None,
    required: tuple[str, ...] = SERVER_REQUIRED,
    schemas: SchemaRegistry | None = None,
) -> AppConfig:
    raw: dict[str, Any] = _read_config_file(config_path) if config_path is not None else {}
    for env_key, key in ENV_KEYS.items():
        value = environ.get(env_key)
        if value is not None and value.strip():
            raw[key] = _coerce_env(key, value.strip())

    try:
        (schemas or SchemaRegistry()).validate(raw, "config.schema.json")
    except SchemaInvalid as e:
        raise ConfigError(code="CONFIG_INVALID", message=e.message) from e

    missing = [k for k in required if not raw.get(k)]
    if missing:
        raise ConfigError(code="CONFIG_MISSING", message=f"missing required settings: {missing}")

    known = {f.name for f in fields(AppConfig)}
    cfg = AppConfig(**{k: v for k, v in raw.items() if k in known})
    if cfg.deferred_timeout_seconds >= cfg.followup_window_seconds:
        raise ConfigError(
            code="CONFIG_INVALID",
            message="deferred_timeout_seconds must be shorter than followup_window_seconds",
        )
    return cfg
