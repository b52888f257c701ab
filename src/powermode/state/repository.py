"""Repositories for the persisted mode and settings snapshot."""

from __future__ import annotations

import logging
from typing import Final

from pydantic import ValidationError

from powermode.errors import StateFileError
from powermode.models import Mode, SettingsSnapshot
from powermode.state.store import TextStore

logger: Final = logging.getLogger(__name__)


class ModeTracker:
    """Reads and writes the single persisted mode token."""

    def __init__(self, store: TextStore) -> None:
        self.store = store

    def read(self) -> Mode | None:
        """Return the persisted mode, or None if no mode was ever set.

        Raises:
            StateFileError: If the stored token is not a known mode
        """
        raw = self.store.read()
        if raw is None or not raw.strip():
            return None
        token = raw.strip()
        try:
            return Mode(token)
        except ValueError as exc:
            raise StateFileError(repr(self.store), f"unknown mode token {token!r}", exc) from exc

    def current(self) -> Mode:
        """Return the persisted mode, treating an unset mode as Restored."""
        return self.read() or Mode.RESTORED

    def write(self, mode: Mode) -> None:
        self.store.write(mode.value)
        logger.info("Mode set to %s", mode.value)


class SettingsStore:
    """Holds at most one live ``SettingsSnapshot``."""

    def __init__(self, store: TextStore) -> None:
        self.store = store

    def exists(self) -> bool:
        return self.store.exists()

    def load(self) -> SettingsSnapshot | None:
        """Return the stored snapshot, or None if none is pending.

        Raises:
            StateFileError: If the stored record cannot be parsed
        """
        raw = self.store.read()
        if raw is None:
            return None
        try:
            return SettingsSnapshot.model_validate_json(raw)
        except ValidationError as err:
            raise StateFileError(repr(self.store), f"invalid settings snapshot:\n{err}", err) from err

    def save(self, snapshot: SettingsSnapshot) -> None:
        self.store.write(snapshot.model_dump_json(indent=2))
        logger.info("Original settings saved (captured %s)", snapshot.captured_at.isoformat())

    def delete(self) -> bool:
        return self.store.delete()
