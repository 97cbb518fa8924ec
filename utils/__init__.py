"""
Utils Module
Shared logging and error types
"""
from .logger import setup_logger, configure_root
from .exceptions import (
    AirDropError,
    ConfigurationError,
    TrackerError,
    SubmissionError,
    StorageError,
    SpreadsheetError,
    DispatchError,
)

__all__ = [
    "setup_logger",
    "configure_root",
    "AirDropError",
    "ConfigurationError",
    "TrackerError",
    "SubmissionError",
    "StorageError",
    "SpreadsheetError",
    "DispatchError",
]
