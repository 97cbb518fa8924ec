#!/usr/bin/env python
"""Serve the AirDrop dispatch endpoint under uvicorn."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

import uvicorn

from config import ServerSettings, Settings
from utils import configure_root


def build_parser(defaults: ServerSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="airdrop-serve",
        description="Serve /api/dispatch, which triggers the QA hand-off workflow",
    )
    parser.add_argument("--host", default=defaults.host, help=f"bind host (SERVER_HOST, default {defaults.host})")
    parser.add_argument("--port", type=int, default=defaults.port, help=f"bind port (SERVER_PORT, default {defaults.port})")
    parser.add_argument("--reload", action="store_true", default=defaults.reload, help="auto-reload on code changes")
    parser.add_argument("--env-file", default=None, help="path to a .env file (default ./.env)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--env-file", default=None)
    known, _ = pre.parse_known_args(argv)
    settings = Settings.load_from_env_file(Path(known.env_file) if known.env_file else None)

    args = build_parser(settings.server).parse_args(argv)
    configure_root(level=logging.INFO, log_file=settings.logging.log_file)
    uvicorn.run(
        "webapp.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.server.log_level,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
