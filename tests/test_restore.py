"""Tests for powermode.restore."""

from __future__ import annotations

from typing import Callable

import pytest

from powermode.applier import ProfileApplier
from powermode.backup import BackupEngine
from powermode.constants import BLUETOOTH_SERVICES
from powermode.errors import NoBackupFound
from powermode.models import SettingsSnapshot, WirelessAdapterState
from powermode.profiles import ULTRA_SAVER
from powermode.restore import BluetoothReenabler, RestoreEngine
from powermode.scheduling import DeferredRevertScheduler
from powermode.state import MemoryStore, SettingsStore
from powermode.system.protocols import MockControlSurface


def _engine(
    surface: MockControlSurface, store: SettingsStore, sleeps: list[float] | None = None
) -> RestoreEngine:
    sleeps = sleeps if sleeps is not None else []
    return RestoreEngine(
        surface,
        store,
        DeferredRevertScheduler(surface, "Revert", ["python", "-m", "powermode.cli"]),
        BluetoothReenabler(surface, sleep=sleeps.append),
    )


RESTORED_TOGGLES = ("background_apps_disabled", "visual_effects_suppressed", "notifications_suppressed")


def _machine_state(surface: MockControlSurface) -> dict[str, object]:
    return {
        "power_plan": surface.power_plan,
        "brightness": surface.brightness,
        "execution_policy": surface.execution_policy,
        "wireless": surface.wireless,
        "services": dict(surface.services),
        "startup_items": sorted(i.key for i in surface.startup_items),
        "toggles": {name: surface.toggles.get(name, False) for name in RESTORED_TOGGLES},
    }


def test_restore_without_snapshot_raises(surface: MockControlSurface) -> None:
    with pytest.raises(NoBackupFound) as info:
        _engine(surface, SettingsStore(MemoryStore())).restore()

    assert info.value.warning_level is True
    assert surface.calls == []


def test_capture_then_restore_roundtrip(surface: MockControlSurface) -> None:
    store = SettingsStore(MemoryStore())
    before = _machine_state(surface)
    snapshot = BackupEngine(surface, store).capture()

    result = _engine(surface, store).restore()

    assert result.success
    assert result.warnings == []
    assert _machine_state(surface) == before
    assert surface.brightness == snapshot.brightness
    assert not store.exists()


def test_restore_undoes_ultra_saver(surface: MockControlSurface) -> None:
    store = SettingsStore(MemoryStore())
    before = _machine_state(surface)
    BackupEngine(surface, store).capture()
    ProfileApplier(surface).apply(ULTRA_SAVER)
    assert surface.brightness == 30

    result = _engine(surface, store).restore()

    assert result.success
    assert _machine_state(surface) == before
    assert surface.bluetooth_device_enabled is True
    assert surface.toggles["visual_effects_suppressed"] is False
    assert surface.toggles["background_apps_disabled"] is False
    assert surface.toggles["notifications_suppressed"] is False


def test_restore_keeps_toggles_that_were_already_on(surface: MockControlSurface) -> None:
    surface.toggles["background_apps_disabled"] = True
    surface.toggles["notifications_suppressed"] = True
    store = SettingsStore(MemoryStore())
    BackupEngine(surface, store).capture()
    ProfileApplier(surface).apply(ULTRA_SAVER)

    result = _engine(surface, store).restore()

    assert result.success
    assert surface.toggles["background_apps_disabled"] is True
    assert surface.toggles["notifications_suppressed"] is True
    assert surface.toggles["visual_effects_suppressed"] is False


def test_uncaptured_toggle_is_left_alone(surface: MockControlSurface) -> None:
    store = SettingsStore(MemoryStore())
    store.save(
        SettingsSnapshot(
            power_plan="381b4222-f694-41f0-9685-ff5bb260df2e",
            brightness=70,
            background_apps_disabled=None,
            visual_effects_suppressed=True,
            notifications_suppressed=False,
        )
    )

    result = _engine(surface, store).restore()

    assert result.outcome("background_apps").ok
    assert "set_background_apps_disabled" not in surface.call_names()
    assert surface.toggles["visual_effects_suppressed"] is True
    assert surface.toggles["notifications_suppressed"] is False


def test_restore_leaves_captured_disabled_wireless_alone(
    surface_factory: Callable[..., MockControlSurface],
) -> None:
    surface = surface_factory(wireless=WirelessAdapterState(adapter_id="Wi-Fi", enabled=False))
    store = SettingsStore(MemoryStore())
    BackupEngine(surface, store).capture()

    result = _engine(surface, store).restore()

    assert result.outcome("wireless").ok
    assert "set_wireless_enabled" not in surface.call_names()


def test_restore_reenables_captured_enabled_wireless(surface: MockControlSurface) -> None:
    store = SettingsStore(MemoryStore())
    BackupEngine(surface, store).capture()
    surface.wireless = WirelessAdapterState(adapter_id="Wi-Fi", enabled=False)

    _engine(surface, store).restore()

    assert surface.wireless.enabled is True


def test_bluetooth_retry_succeeds_on_fifth_attempt(
    surface_factory: Callable[..., MockControlSurface],
) -> None:
    surface = surface_factory(failures={"set_bluetooth_device_enabled": 4})
    store = SettingsStore(MemoryStore())
    BackupEngine(surface, store).capture()
    sleeps: list[float] = []

    result = _engine(surface, store, sleeps).restore()

    assert result.bluetooth_attempts == 5
    assert result.outcome("bluetooth").ok
    assert result.success
    assert surface.call_names().count("set_bluetooth_device_enabled") == 5
    assert sleeps == [5.0] * 4


def test_bluetooth_retry_exhausted_is_warning(
    surface_factory: Callable[..., MockControlSurface],
) -> None:
    surface = surface_factory(failures={"set_bluetooth_device_enabled": -1})
    store = SettingsStore(MemoryStore())
    BackupEngine(surface, store).capture()

    result = _engine(surface, store).restore()

    assert result.bluetooth_attempts == 5
    assert not result.outcome("bluetooth").ok
    assert [o.step for o in result.warnings] == ["bluetooth"]
    assert result.success


def test_bluetooth_attempt_reissues_every_service() -> None:
    surface = MockControlSurface()
    outcome, attempts = BluetoothReenabler(surface, sleep=lambda _: None).run()

    assert outcome.ok and attempts == 1
    for name in BLUETOOTH_SERVICES:
        assert surface.services[name].startup_type == "Automatic"
        assert surface.services[name].running is True


def test_one_failed_service_does_not_stop_the_rest(
    surface_factory: Callable[..., MockControlSurface],
) -> None:
    surface = surface_factory()
    store = SettingsStore(MemoryStore())
    snapshot = BackupEngine(surface, store).capture()
    surface.failures["set_service_state:SysMain"] = -1

    result = _engine(surface, store).restore()

    service_steps = [o for o in result.outcomes if o.step.startswith("service:")]
    assert len(service_steps) == len(snapshot.services)
    assert [o.step for o in result.failures] == ["service:SysMain"]
    assert all(o.ok for o in service_steps if o.step != "service:SysMain")
    assert not result.success
    # The snapshot is consumed even after a partial failure
    assert not store.exists()


def test_brightness_failure_is_only_a_warning(
    surface_factory: Callable[..., MockControlSurface],
) -> None:
    surface = surface_factory(failures={"set_brightness": -1})
    store = SettingsStore(MemoryStore())
    BackupEngine(surface, store).capture()

    result = _engine(surface, store).restore()

    assert result.success
    assert [o.step for o in result.warnings] == ["brightness"]


def test_missing_power_plan_is_recorded(surface: MockControlSurface) -> None:
    store = SettingsStore(MemoryStore())
    store.save(SettingsSnapshot(brightness=50))

    result = _engine(surface, store).restore()

    assert [o.step for o in result.failures] == ["power_plan"]
    assert "set_active_power_plan" not in surface.call_names()


def test_restore_cancels_pending_revert(surface: MockControlSurface) -> None:
    store = SettingsStore(MemoryStore())
    BackupEngine(surface, store).capture()
    surface.scheduled["Revert"] = (30, ["python"])

    result = _engine(surface, store).restore()

    assert surface.scheduled == {}
    assert result.outcomes[-1].step == "cancel_deferred_revert"
    assert result.outcomes[-2].step == "delete_snapshot"


def test_restore_order(surface: MockControlSurface) -> None:
    store = SettingsStore(MemoryStore())
    BackupEngine(surface, store).capture()

    result = _engine(surface, store).restore()

    steps = [o.step for o in result.outcomes]
    assert steps[:4] == ["power_plan", "brightness", "wireless", "bluetooth"]
    first_startup = next(i for i, s in enumerate(steps) if s.startswith("startup:"))
    last_service = max(i for i, s in enumerate(steps) if s.startswith("service:"))
    assert last_service < first_startup
