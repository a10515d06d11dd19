"""Logging configuration for AgentLedger."""

from __future__ import annotations

import logging
from pathlib import Path

CONSOLE_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def setup_logging(
    logger_name: str = "agentledger",
    log_file: str | Path | None = None,
    verbose: bool = False,
    child_loggers: list[str] | None = None,
) -> logging.Logger:
    """
    Configure dual-handler logging (console + file).

    The console handler sits at WARNING unless ``verbose``: the engine logs
    every recorded event at INFO and every append at DEBUG, and those lines
    would interleave with the CLI's tables. The file handler always keeps
    DEBUG so a log file holds the full event trail.

    Args:
        logger_name: Name for the logger (default: the package logger)
        log_file: Path to log file (None for no file logging); parent
            directories are created
        verbose: Enable DEBUG level on console
        child_loggers: Additional loggers to configure with same handlers

    Returns:
        Configured logger instance
    """
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    file_handler = None
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )

    for name in [logger_name, *(child_loggers or [])]:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        logger.handlers.clear()
        logger.addHandler(console_handler)
        if file_handler:
            logger.addHandler(file_handler)

    # The daemon client's transport logs every request at INFO
    for noisy in ["httpx", "httpcore"]:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logging.getLogger(logger_name)
