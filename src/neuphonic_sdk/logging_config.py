"""Opt-in logging setup for applications embedding the SDK."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_NOISY_LOGGERS = ("httpx", "httpcore", "websockets")


def resolve_level(value: str | int | None) -> int:
    if isinstance(value, int):
        return value
    if not value:
        return logging.INFO
    resolved = logging.getLevelName(value.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: str | int | None = None) -> None:
    """Configure logging based on the LOG_LEVEL/LOG_FILE environment variables."""
    # Load .env file first to ensure LOG_FILE is available
    load_dotenv()

    log_level = resolve_level(level if level is not None else os.getenv("LOG_LEVEL"))
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handlers: list[logging.Handler] = []

    log_file = os.getenv("LOG_FILE")
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)
    logging.getLogger("neuphonic_sdk").setLevel(log_level)

    # Transport libraries are chatty; only surface them when debugging
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(
            log_level if log_level <= logging.DEBUG else logging.WARNING
        )


__all__ = ["LOG_DATE_FORMAT", "LOG_FORMAT", "configure_logging", "resolve_level"]
