from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Mapping

import httpx

from slashbot.commands.builtin import build_default_registry
from slashbot.commands.errors import RegistrationFailed
from slashbot.commands.registration import register_commands
from slashbot.core.config import REGISTRATION_REQUIRED, load_config
from slashbot.core.errors import ConfigError
from slashbot.core.logsetup import setup_logging


def main(
    argv: list[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    http: httpx.Client | None = None,
) -> int:
    p = argparse.ArgumentParser(description="Register slashbot commands with the platform")
    p.add_argument("--config", default=None, type=Path, help="Optional JSON config file (env vars take precedence)")
    p.add_argument("--guild-id", default=None, help="Register to a single guild instead of globally")
    p.add_argument("--dry-run", action="store_true", help="Print command definitions and exit")
    args = p.parse_args(argv)

    registry = build_default_registry()
    if args.dry_run:
        json.dump(registry.definitions(), sys.stdout, indent=2)
        sys.stdout.write("\n")
        return 0

    try:
        cfg = load_config(
            environ=os.environ if environ is None else environ,
            config_path=args.config,
            required=REGISTRATION_REQUIRED,
        )
    except ConfigError as e:
        p.exit(2, f"configuration error: {e}\n")
    setup_logging(cfg.log_level)

    client = http or httpx.Client(timeout=cfg.http_timeout_seconds)
    try:
        registered = register_commands(
            http=client,
            registry=registry,
            api_base_url=cfg.api_base_url,
            application_id=cfg.application_id,
            bot_token=cfg.bot_token,
            guild_id=args.guild_id,
        )
    except RegistrationFailed as e:
        sys.stderr.write(f"registration failed: {e}\n")
        return 1
    finally:
        if http is None:
            client.close()
    print(f"registered {len(registered)} commands")
    return 0


if __name__ == "__main__":
    sys.exit(main())
