"""
Logger Configuration
Unified logging setup
"""
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler
from rich.console import Console


# Shared console instance
console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_FORMAT_SIMPLE = "%(message)s"

LOG_DIR = Path(__file__).parent.parent / "logs"

ROOT_LOGGER_NAME = "airdrop"


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    use_rich: bool = True,
) -> logging.Logger:
    """
    Configure a logger.

    Args:
        name: logger name
        level: log level
        log_file: optional file name under ``logs/``
        use_rich: render console output through Rich

    Returns:
        The configured logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Avoid stacking handlers on repeated setup
    if logger.handlers:
        return logger

    if use_rich:
        console_handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
        )
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE))
    else:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_path = LOG_DIR / log_file

        file_handler = logging.FileHandler(file_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    return logger


def configure_root(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Route the package loggers (``adapters``, ``pipeline``, ``webapp`` ...)
    through the same handlers as the ``airdrop`` logger.
    """
    logger = setup_logger(ROOT_LOGGER_NAME, level=level, log_file=log_file)
    for child in ("adapters", "pipeline", "webapp", "main"):
        child_logger = logging.getLogger(child)
        child_logger.setLevel(level)
        if not child_logger.handlers:
            for handler in logger.handlers:
                child_logger.addHandler(handler)
        child_logger.propagate = False
    return logger

