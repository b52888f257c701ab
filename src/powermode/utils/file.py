"""File utility functions."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Final

logger: Final = logging.getLogger(__name__)


def ensure_directory_exists(directory: Path) -> None:
    """Create directory if it doesn't exist.

    Args:
        directory: Path to create
    """
    if not directory.exists():
        directory.mkdir(parents=True, exist_ok=True)
        logger.debug("Created directory: %s", directory)


def atomic_write_text(path: Path, text: str) -> None:
    """Replace ``path`` with ``text`` without exposing a half-written file.

    The content is written to a temporary file in the same directory and
    moved over the target with ``os.replace``.

    Args:
        path: Destination file
        text: Content to write (UTF-8)
    """
    ensure_directory_exists(path.parent)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
