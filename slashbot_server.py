from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Mapping

import uvicorn

from slashbot.core.config import load_config
from slashbot.core.errors import ConfigError
from slashbot.core.logsetup import setup_logging
from slashbot.interactions.app import build_context, create_app


def main(argv: list[str] | None = None, *, runner=uvicorn.run, environ: Mapping[str, str] | None = None) -> None:
    p = argparse.ArgumentParser(description="slashbot interactions endpoint")
    p.add_argument("--config", default=None, type=Path, help="Optional JSON config file (env vars take precedence)")
    p.add_argument("--host", default="0.0.0.0")
    p.add_argument("--port", default=int(os.environ.get("PORT", "3000")), type=int)
    args = p.parse_args(argv)

    try:
        cfg = load_config(environ=os.environ if environ is None else environ, config_path=args.config)
        ctx = build_context(cfg)
    except ConfigError as e:
        p.exit(2, f"configuration error: {e}\n")

    setup_logging(cfg.log_level)
    runner(create_app(ctx), host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
