"""Backing stores for persisted state."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final, Protocol, runtime_checkable

from powermode.utils.file import atomic_write_text

logger: Final = logging.getLogger(__name__)


@runtime_checkable
class TextStore(Protocol):
    """Protocol for a single persisted text record.

    Repositories are written against this protocol so that tests can swap
    the file-backed store for an in-memory one.
    """

    def read(self) -> str | None:
        """Return the stored text, or None if nothing is stored."""
        ...

    def write(self, text: str) -> None:
        """Replace the stored text."""
        ...

    def delete(self) -> bool:
        """Remove the record.

        Returns:
            True if a record existed
        """
        ...

    def exists(self) -> bool:
        """Return True if a record is stored."""
        ...


class FileStore:
    """Text record kept in one file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> str | None:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def write(self, text: str) -> None:
        atomic_write_text(self.path, text)
        logger.debug("Wrote %s", self.path)

    def delete(self) -> bool:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        logger.debug("Deleted %s", self.path)
        return True

    def exists(self) -> bool:
        return self.path.exists()

    def __repr__(self) -> str:
        return f"FileStore({str(self.path)!r})"


class MemoryStore:
    """In-memory implementation of TextStore for testing."""

    def __init__(self, text: str | None = None) -> None:
        self.text = text
        self.writes = 0

    def read(self) -> str | None:
        return self.text

    def write(self, text: str) -> None:
        self.text = text
        self.writes += 1

    def delete(self) -> bool:
        existed = self.text is not None
        self.text = None
        return existed

    def exists(self) -> bool:
        return self.text is not None

    def __repr__(self) -> str:
        return "MemoryStore()"
