"""Tests for powermode.backup."""

from __future__ import annotations

from typing import Callable

from powermode.backup import BackupEngine
from powermode.constants import TRACKED_SERVICES
from powermode.models import RegistryStartupItem
from powermode.state import MemoryStore, SettingsStore
from powermode.system.protocols import MockControlSurface


def test_capture_reads_every_field(surface: MockControlSurface) -> None:
    store = SettingsStore(MemoryStore())

    snapshot = BackupEngine(surface, store).capture()

    assert snapshot.power_plan == "381b4222-f694-41f0-9685-ff5bb260df2e"
    assert snapshot.brightness == 70
    assert snapshot.execution_policy == "RemoteSigned"
    assert snapshot.wireless is not None and snapshot.wireless.enabled is True
    assert [s.name for s in snapshot.services] == list(TRACKED_SERVICES)
    assert len(snapshot.startup_items) == 2
    assert snapshot.background_apps_disabled is False
    assert snapshot.visual_effects_suppressed is False
    assert snapshot.notifications_suppressed is False
    assert store.load() == snapshot


def test_capture_does_not_mutate(surface: MockControlSurface) -> None:
    BackupEngine(surface, SettingsStore(MemoryStore())).capture()
    assert all(name.startswith(("get_", "list_")) for name in surface.call_names())


def test_capture_falls_back_on_read_failures(
    surface_factory: Callable[..., MockControlSurface],
) -> None:
    surface = surface_factory(
        brightness=None,
        failures={
            "get_active_power_plan": -1,
            "get_wireless_adapter": -1,
            "list_startup_items": -1,
            "get_service_state:WSearch": -1,
            "get_notifications_suppressed": -1,
        },
    )
    store = SettingsStore(MemoryStore())

    snapshot = BackupEngine(surface, store, default_brightness=60).capture()

    assert snapshot.power_plan is None
    assert snapshot.brightness == 60
    assert snapshot.wireless is None
    assert snapshot.startup_items == []
    assert snapshot.notifications_suppressed is None
    assert "WSearch" not in [s.name for s in snapshot.services]
    assert len(snapshot.services) == len(TRACKED_SERVICES) - 1
    assert store.exists()


def test_capture_skips_uninstalled_services(surface: MockControlSurface) -> None:
    engine = BackupEngine(surface, SettingsStore(MemoryStore()), tracked_services=["bthserv", "NoSuchSvc"])

    snapshot = engine.capture()

    assert [s.name for s in snapshot.services] == ["bthserv"]


def test_capture_overwrites_previous_snapshot(surface: MockControlSurface) -> None:
    store = SettingsStore(MemoryStore())
    engine = BackupEngine(surface, store)
    engine.capture()

    surface.brightness = 40
    surface.startup_items = [RegistryStartupItem(path=r"HKCU\Run", name="Only", value="x.exe")]
    second = engine.capture()

    loaded = store.load()
    assert loaded == second
    assert loaded.brightness == 40
    assert len(loaded.startup_items) == 1
