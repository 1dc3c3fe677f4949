"""Logging for linear-agent.

Every component logs through a child of the ``linear_agent`` logger into one
rotating file under ``~/.linear-agent/logs``. Records pass through
``RedactingFormatter`` so Linear and Anthropic keys never reach a handler.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

from linear_agent.exceptions import ConfigError

ROOT_LOGGER = "linear_agent"

ENV_LOG_DIR = "LINEAR_AGENT_LOG_DIR"
ENV_LOG_LEVEL = "LINEAR_AGENT_LOG_LEVEL"

DEFAULT_LOG_DIR = Path.home() / ".linear-agent" / "logs"
DEFAULT_LOG_FILE = "linear-agent.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = "INFO"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SECRET_PATTERNS = (
    (re.compile(r"lin_(?:api|oauth)_[A-Za-z0-9]+"), "[LINEAR_API_KEY]"),
    (re.compile(r"sk-ant-[A-Za-z0-9_-]+"), "[ANTHROPIC_API_KEY]"),
    (re.compile(r"Bearer [A-Za-z0-9._-]+"), "Bearer [REDACTED]"),
    (re.compile(r"token=[A-Za-z0-9._-]+"), "token=[REDACTED]"),
)


def sanitize_for_log(text: str) -> str:
    """Replace API keys and tokens in ``text`` with placeholders."""
    for pattern, replacement in SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class RedactingFormatter(logging.Formatter):
    """Formatter that strips secrets from the finished log line."""

    def format(self, record: logging.LogRecord) -> str:
        return sanitize_for_log(super().format(record))


def setup_logging(
    log_dir: str | Path | None = None,
    level: str | None = None,
    console: bool = False,
    log_file: str = DEFAULT_LOG_FILE,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
) -> logging.Logger:
    """Configure the ``linear_agent`` logger.

    Calling it again replaces the previous handlers.

    Args:
        log_dir: Directory for the log file. Falls back to
                 ``LINEAR_AGENT_LOG_DIR``, then ``~/.linear-agent/logs``.
        level: Level name such as "DEBUG". Falls back to
               ``LINEAR_AGENT_LOG_LEVEL``, then INFO. Unknown names mean INFO.
        console: Also log to stderr. The CLI turns this on with ``--verbose``.
        log_file: File name inside ``log_dir``.
        max_bytes: Size at which the file is rotated.
        backup_count: Rotated files to keep.

    Returns:
        The configured root logger.

    Raises:
        ConfigError: If the log directory or file cannot be created.
    """
    log_dir = Path(log_dir or os.environ.get(ENV_LOG_DIR) or DEFAULT_LOG_DIR)
    level = level or os.environ.get(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    log_path = log_dir / log_file
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    except OSError as e:
        raise ConfigError(f"Cannot write log file {log_path}: {e}") from e

    handlers: list[logging.Handler] = [file_handler]
    if console:
        handlers.append(logging.StreamHandler())

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(log_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = RedactingFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.info("Logging to %s at %s", log_path, logging.getLevelName(log_level))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a component, e.g. ``get_logger("tracker")``."""
    if not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def truncate_output(output: str, max_length: int = 5000) -> str:
    """Shorten long API payloads before they are logged."""
    if len(output) <= max_length:
        return output
    return output[:max_length] + f"\n... [truncated, {len(output) - max_length} more chars]"
