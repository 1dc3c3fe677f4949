"""Persist rendered Markdown to disk."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from linear_agent.logging import get_logger

logger = get_logger("tickets.writer")


def write_markdown(directory: Path | str, filename: str, content: str) -> Path:
    """Write Markdown content to ``directory/filename``.

    The directory is created if needed. Content goes to a temporary file in
    the same directory which then replaces the target, so readers never see a
    partially written file. An existing file is overwritten.

    Args:
        directory: Destination directory.
        filename: File name (no path components).
        content: Full file content.

    Returns:
        Path of the written file.

    Raises:
        OSError: If the directory or file cannot be written.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / filename

    if target.exists():
        logger.info("Overwriting existing file %s", target)

    fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{filename}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info("Wrote %s (%d bytes)", target, len(content.encode("utf-8")))
    return target
