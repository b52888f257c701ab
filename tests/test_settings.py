from pathlib import Path

import pytest

from powermode.constants import TRACKED_SERVICES
from powermode.settings import AppPaths, ApplicationSettings, UserSettings


def test_defaults_without_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("POWERMODE_CONFIG", raising=False)
    monkeypatch.setattr(UserSettings, "DEFAULT_CONFIG_PATHS", [tmp_path / "missing.yaml"])

    cfg = UserSettings.load()

    assert cfg.tracked_services == list(TRACKED_SERVICES)
    assert cfg.bluetooth_retry_attempts == 5
    assert cfg.bluetooth_retry_backoff_seconds == 5.0


def test_load_yaml_with_env_interpolation(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PM_STATE", str(tmp_path / "pm"))
    path = tmp_path / "config.yaml"
    path.write_text(
        'state_dir: "${PM_STATE}"\n'
        "default_brightness: 55\n"
        "tracked_services: [bthserv, WSearch, bthserv]\n",
        encoding="utf-8",
    )

    cfg = UserSettings.load(path)

    assert cfg.state_dir == tmp_path / "pm"
    assert cfg.default_brightness == 55
    assert cfg.tracked_services == ["bthserv", "WSearch"]


def test_env_config_path(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    path = tmp_path / "env.yaml"
    path.write_text("revert_task_name: MyRevert\n", encoding="utf-8")
    monkeypatch.setenv("POWERMODE_CONFIG", str(path))

    assert UserSettings.load().revert_task_name == "MyRevert"


def test_env_config_path_missing(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("POWERMODE_CONFIG", str(tmp_path / "nope.yaml"))
    with pytest.raises(FileNotFoundError):
        UserSettings.load()


def test_invalid_config_raises_runtime_error(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("bluetooth_retry_attempts: 0\n", encoding="utf-8")

    with pytest.raises(RuntimeError, match="Invalid configuration"):
        UserSettings.load(path)


def test_empty_config_file_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")

    assert UserSettings.load(path).default_brightness == 75


def test_app_paths_from_settings(tmp_path: Path) -> None:
    app = ApplicationSettings(UserSettings(state_dir=tmp_path, log_file_name="pm.log"))

    assert app.paths == AppPaths.from_state_dir(tmp_path, "pm.log")
    assert app.paths.mode_file == tmp_path / "mode.txt"
    assert app.paths.snapshot_file == tmp_path / "original_settings.json"
    assert app.paths.lock_file == tmp_path / "powermode.lock"
    assert app.paths.log_file == tmp_path / "pm.log"
