"""CLI entrypoint: run the QA hand-off for one ClickUp task."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import List, Optional

from adapters import (
    ClickUpTracker,
    GraphTokenProvider,
    OpenpyxlSpreadsheetReader,
    SharePointStorage,
    parse_task_id,
)
from config import Settings
from models import PipelineStage
from pipeline import QAHandoffPipeline
from utils import AirDropError, ConfigurationError, configure_root


logger = logging.getLogger("main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="airdrop",
        description="Validate QA gates and post preview links + images to a ClickUp task",
    )
    parser.add_argument("task", help="ClickUp task URL or ID")
    parser.add_argument("--mode", choices=["draft", "final"], default=None, help="override COMMENT_MODE")
    parser.add_argument("--env-file", default=None, help="path to a .env file (default ./.env)")
    parser.add_argument("--quiet", action="store_true", help="log warnings and errors only")
    return parser


def load_settings(env_file: Optional[str], mode: Optional[str]) -> Settings:
    settings = Settings.load_from_env_file(Path(env_file) if env_file else None)
    if mode:
        settings.comment = settings.comment.model_copy(update={"mode": mode})
    return settings


def run(settings: Settings, task_ref: str) -> int:
    task_id = parse_task_id(task_ref)
    if not task_id:
        raise ConfigurationError("Usage: airdrop <ClickUp task URL or ID>")
    settings.require_tracker()

    tracker = ClickUpTracker(settings.clickup)
    storage = SharePointStorage(settings.graph)
    token_provider = GraphTokenProvider(settings.graph)
    try:
        pipeline = QAHandoffPipeline(
            settings,
            tracker=tracker,
            storage=storage,
            token_provider=token_provider,
            spreadsheet_reader=OpenpyxlSpreadsheetReader(),
        )
        result = pipeline.run(task_id)
    finally:
        tracker.close()
        storage.close()
        token_provider.close()

    if result.stage == PipelineStage.GATE_FAILED:
        logger.info("AirDrop gate failed; nothing posted beyond the status comment")
    return 0 if result.ok else 1


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.env_file, args.mode)
    except Exception as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        sys.exit(1)

    level = logging.WARNING if args.quiet else logging.INFO
    configure_root(level=level, log_file=settings.logging.log_file)

    try:
        code = run(settings, args.task)
    except ConfigurationError as exc:
        logger.error("%s", exc)
        sys.exit(1)
    except AirDropError as exc:
        logger.error("Error: %s", exc)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
