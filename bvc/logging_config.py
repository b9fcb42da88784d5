"""
Structured logging configuration for bvc.

Logs go to stderr so command output on stdout stays machine-readable.

Environment Variables:
    BVC_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR) - default: WARNING
    BVC_LOG_FORMAT: Log format (text, json) - default: text

Usage:
    from bvc.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__, repo_id="repo_1700000000_ab12")
    logger.info("Pushing commits")
"""

import logging
import os
import sys
from typing import IO, Optional

from pythonjsonlogger.json import JsonFormatter

_HANDLER_NAME = "bvc-stderr"

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class RepoIDFilter(logging.Filter):
    """
    Logging filter that adds repo_id to all log records.

    Ensures all logs have a repo_id field, even if not set via LoggerAdapter.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "repo_id"):
            record.repo_id = "N/A"  # type: ignore
        return True


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None, stream: Optional[IO[str]] = None) -> logging.Handler:
    """
    Configure the root logger.

    Args:
        level: Overrides BVC_LOG_LEVEL (e.g. "DEBUG" for --debug)
        fmt: Overrides BVC_LOG_FORMAT ("text" or "json")
        stream: Output stream (default: sys.stderr)

    Returns:
        The installed handler (replaced on repeated calls)
    """
    log_level = (level or os.getenv("BVC_LOG_LEVEL", "WARNING")).upper()
    log_format = (fmt or os.getenv("BVC_LOG_FORMAT", "text")).lower()
    numeric = LEVELS.get(log_level, logging.WARNING)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric)
    for handler in root_logger.handlers[:]:
        if handler.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(numeric)
    handler.addFilter(RepoIDFilter())

    if log_format == "json":
        formatter: logging.Formatter = JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s %(repo_id)s",
            rename_fields={
                "asctime": "timestamp",
                "name": "logger",
                "levelname": "level",
            },
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s [repo_id=%(repo_id)s]",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Silence noisy libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("web3").setLevel(logging.WARNING)
    return handler


def get_logger(name: str, repo_id: Optional[str] = None) -> logging.LoggerAdapter:
    """
    Get a logger that stamps repo_id on every record.

    Args:
        name: Logger name (typically __name__)
        repo_id: Remote repository id, when the repository has one

    Returns:
        LoggerAdapter with repo_id in extra fields
    """
    logger = logging.getLogger(name)
    return logging.LoggerAdapter(logger, {"repo_id": repo_id or "N/A"})
