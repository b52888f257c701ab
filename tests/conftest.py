from pathlib import Path

import pytest

from powermode.controller import PowerModeController
from powermode.models import (
    RegistryStartupItem,
    ServiceState,
    ShortcutStartupItem,
    WirelessAdapterState,
)
from powermode.settings.user import UserSettings
from powermode.system.protocols import MockControlSurface


def make_surface(**kwargs: object) -> MockControlSurface:
    """Return a mock machine with a Wi-Fi adapter, services and startup items."""
    services = {
        "bthserv": ServiceState(name="bthserv", startup_type="Manual", running=True),
        "BTAGService": ServiceState(name="BTAGService", startup_type="Manual", running=False),
        "BthAvctpSvc": ServiceState(name="BthAvctpSvc", startup_type="Manual", running=True),
        "BluetoothUserService": ServiceState(
            name="BluetoothUserService", startup_type="Manual", running=False
        ),
        "WSearch": ServiceState(name="WSearch", startup_type="Automatic", running=True),
        "SysMain": ServiceState(name="SysMain", startup_type="Automatic", running=True),
        "DiagTrack": ServiceState(name="DiagTrack", startup_type="Automatic", running=True),
    }
    defaults: dict[str, object] = {
        "power_plan": "381b4222-f694-41f0-9685-ff5bb260df2e",
        "brightness": 70,
        "wireless": WirelessAdapterState(adapter_id="Wi-Fi", enabled=True),
        "services": services,
        "startup_items": [
            RegistryStartupItem(
                path=r"HKCU\Software\Microsoft\Windows\CurrentVersion\Run",
                name="OneDrive",
                value=r'"C:\Program Files\OneDrive\OneDrive.exe" /background',
            ),
            ShortcutStartupItem(
                path=r"C:\Users\me\AppData\Roaming\Microsoft\Windows\Start Menu\Programs\Startup\Notes.lnk",
                target=r"C:\Tools\notes.exe",
                arguments="--tray",
                working_directory=r"C:\Tools",
            ),
        ],
        "execution_policy": "RemoteSigned",
    }
    defaults.update(kwargs)
    return MockControlSurface(**defaults)  # type: ignore[arg-type]


@pytest.fixture
def surface() -> MockControlSurface:
    return make_surface()


@pytest.fixture
def settings(tmp_path: Path) -> UserSettings:
    return UserSettings(
        state_dir=tmp_path / "state",
        lock_timeout_seconds=0.2,
        bluetooth_retry_backoff_seconds=0,
    )


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def controller(
    settings: UserSettings, surface: MockControlSurface, sleeps: list[float]
) -> PowerModeController:
    return PowerModeController.from_settings(settings, surface, sleep=sleeps.append)


@pytest.fixture
def surface_factory():
    return make_surface
