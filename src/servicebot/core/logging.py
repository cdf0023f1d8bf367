"""Logging configuration.

The ``servicebot`` logger is set up from environment variables at import
time, since config itself logs while loading. Entry points call
``configure_logging`` once settings exist to apply the ``logging`` section.
"""
import logging
import os
import sys
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_logger: Optional[logging.Logger] = None


def _get_log_path() -> Path:
    root = os.getenv("SERVICEBOT_ROOT", os.getcwd())
    logs_path = os.getenv("SERVICEBOT_LOGS_PATH", f"{root}/logs")
    return Path(logs_path) / "servicebot.log"


def _parse_level(level: Optional[str]) -> int:
    return getattr(logging, (level or "INFO").upper(), logging.INFO)


def _file_logging_enabled() -> bool:
    return os.getenv("SERVICEBOT_LOG_TO_FILE", "true").lower() == "true"


def _build_handlers(fmt: str) -> list:
    formatter = logging.Formatter(fmt)
    handlers = [logging.StreamHandler(sys.stdout)]

    if _file_logging_enabled():
        log_path = _get_log_path()
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_path))
        except OSError as e:
            sys.stderr.write(f"servicebot: file logging disabled, cannot open {log_path}: {e}\n")

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> logging.Logger:
    """Replace the handlers of the ``servicebot`` logger.

    Args:
        level: Level name such as ``"DEBUG"``; unknown names fall back to INFO
        fmt: ``logging.Formatter`` format string
    """
    global _logger

    log = logging.getLogger("servicebot")
    log.setLevel(_parse_level(level))
    log.propagate = False

    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()
    for handler in _build_handlers(fmt or DEFAULT_FORMAT):
        log.addHandler(handler)

    _logger = log
    return log


def get_logger() -> logging.Logger:
    """Get the ``servicebot`` logger, configuring it from the environment on first use."""
    if _logger is None:
        return configure_logging(os.getenv("SERVICEBOT_LOG_LEVEL"), os.getenv("SERVICEBOT_LOG_FORMAT"))
    return _logger


logger = get_logger()
