"""Persisted state: mode token, settings snapshot and the operation lock."""

from powermode.state.lock import OperationLock
from powermode.state.repository import ModeTracker, SettingsStore
from powermode.state.store import FileStore, MemoryStore, TextStore

__all__ = [
    "FileStore",
    "MemoryStore",
    "ModeTracker",
    "OperationLock",
    "SettingsStore",
    "TextStore",
]
