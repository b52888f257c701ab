"""Tests for the mode tracker, settings store and backing stores."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from powermode.errors import StateFileError
from powermode.models import (
    Mode,
    RegistryStartupItem,
    ServiceState,
    SettingsSnapshot,
    ShortcutStartupItem,
    WirelessAdapterState,
)
from powermode.state import FileStore, MemoryStore, ModeTracker, SettingsStore


def _snapshot() -> SettingsSnapshot:
    return SettingsSnapshot(
        power_plan="381b4222-f694-41f0-9685-ff5bb260df2e",
        brightness=70,
        execution_policy="RemoteSigned",
        wireless=WirelessAdapterState(adapter_id="Wi-Fi", enabled=True),
        services=[ServiceState(name="bthserv", startup_type="Manual", running=True)],
        startup_items=[
            RegistryStartupItem(path=r"HKCU\Run", name="App", value="app.exe"),
            ShortcutStartupItem(path=r"C:\Startup\x.lnk", target=r"C:\x.exe"),
        ],
        captured_at=datetime(2026, 10, 1, 12, 0, 0),
    )


def test_mode_tracker_unset_reads_none() -> None:
    tracker = ModeTracker(MemoryStore())
    assert tracker.read() is None
    assert tracker.current() is Mode.RESTORED


def test_mode_tracker_writes_plain_token(tmp_path: Path) -> None:
    path = tmp_path / "mode.txt"
    tracker = ModeTracker(FileStore(path))

    tracker.write(Mode.ULTRA_SAVER)

    assert path.read_text(encoding="utf-8") == "UltraSaver"
    assert tracker.read() is Mode.ULTRA_SAVER


def test_mode_tracker_tolerates_trailing_newline() -> None:
    tracker = ModeTracker(MemoryStore("PowerSaver\n"))
    assert tracker.read() is Mode.POWER_SAVER


def test_mode_tracker_rejects_unknown_token() -> None:
    tracker = ModeTracker(MemoryStore("Turbo"))
    with pytest.raises(StateFileError):
        tracker.read()


def test_settings_store_roundtrip_through_file(tmp_path: Path) -> None:
    store = SettingsStore(FileStore(tmp_path / "nested" / "original_settings.json"))
    assert store.load() is None

    snapshot = _snapshot()
    store.save(snapshot)

    assert store.exists()
    loaded = store.load()
    assert loaded == snapshot
    assert isinstance(loaded.startup_items[1], ShortcutStartupItem)


def test_settings_store_delete(tmp_path: Path) -> None:
    path = tmp_path / "original_settings.json"
    store = SettingsStore(FileStore(path))
    store.save(_snapshot())

    assert store.delete() is True
    assert not path.exists()
    assert store.delete() is False


def test_settings_store_rejects_corrupt_json() -> None:
    store = SettingsStore(MemoryStore("{not json"))
    with pytest.raises(StateFileError):
        store.load()


def test_file_store_write_leaves_no_temp_files(tmp_path: Path) -> None:
    store = FileStore(tmp_path / "mode.txt")
    store.write("PowerSaver")
    store.write("Restored")

    assert [p.name for p in tmp_path.iterdir()] == ["mode.txt"]
    assert store.read() == "Restored"
