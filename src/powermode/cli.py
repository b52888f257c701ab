"""Power mode switcher CLI application.

This module provides the command-line interface for switching the machine
between the PowerSaver and UltraSaver profiles, restoring the original
settings, and inspecting or validating configuration.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Final

import typer

from powermode.controller import PowerModeController
from powermode.errors import PowerModeError
from powermode.models import ApplyResult, RequestedMode, RestoreResult
from powermode.settings.application import AppPaths
from powermode.settings.user import UserSettings
from powermode.state import FileStore, ModeTracker, SettingsStore
from powermode.system.protocols import ControlSurface
from powermode.utils.file import ensure_directory_exists

# ── CLI setup ────────────────────────────────────────────────────────────────
app = typer.Typer(help="Switch power-saving profiles and restore original settings", add_completion=False)
config_app = typer.Typer(help="Config helpers")
app.add_typer(config_app, name="config")

logger: Final = logging.getLogger(__name__)  # Will be "powermode.cli"

MODE_OPTION = typer.Option(
    None, "--mode", "-m", case_sensitive=False, help="PowerSaver, UltraSaver or Restore"
)
REVERT_OPTION = typer.Option(
    0,
    "--revert-after-minutes",
    "--revertAfterMinutes",
    min=0,
    help="Schedule an automatic restore after this many minutes (0 = never)",
)
WIFI_OPTION = typer.Option(
    False, "--enable-wifi", "--enableWiFi", help="Keep Wi-Fi on (PowerSaver only)"
)
CONFIG_OPTION = typer.Option(None, "--config", "-c", exists=True, dir_okay=False)
DEBUG_OPTION = typer.Option(False, "--debug", help="Enable debug logging")


def build_surface() -> ControlSurface:
    """Return the control surface for this machine."""
    if sys.platform != "win32":
        typer.secho("powermode can only change settings on Windows", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    from powermode.system.windows import WindowsControlSurface

    return WindowsControlSurface()


def configure_logging(settings: UserSettings, debug: bool) -> None:
    """Log to the console and to the log file in the state directory."""
    paths = AppPaths.from_state_dir(settings.state_dir, settings.log_file_name)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    try:
        ensure_directory_exists(paths.state_dir)
        handlers.append(logging.FileHandler(paths.log_file, encoding="utf-8"))
    except OSError as exc:
        typer.secho(f"Cannot write log file {paths.log_file}: {exc}", fg=typer.colors.YELLOW, err=True)

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
    )


def load_settings(config: Path | None) -> UserSettings:
    try:
        return UserSettings.load(config)
    except (FileNotFoundError, RuntimeError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


def report(result: ApplyResult | RestoreResult) -> None:
    """Print a one-line summary plus any failed steps."""
    if isinstance(result, ApplyResult):
        label = f"{result.profile} applied"
        problems = result.failures
        if result.scheduled is False:
            typer.secho("Automatic restore could not be scheduled", fg=typer.colors.RED, err=True)
    else:
        label = "Original settings restored"
        problems = result.failures + result.warnings

    if not problems:
        typer.secho(f"✅ {label}", fg=typer.colors.GREEN)
        return

    typer.secho(f"⚠ {label} with {len(problems)} problem(s):", fg=typer.colors.YELLOW)
    for outcome in problems:
        typer.secho(f"  • {outcome.reason}", fg=typer.colors.YELLOW)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    mode: RequestedMode | None = MODE_OPTION,
    revert_after_minutes: int = REVERT_OPTION,
    enable_wifi: bool = WIFI_OPTION,
    config: Path | None = CONFIG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Apply a power mode, or restore the settings saved before the first one."""
    ctx.obj = {"config": config, "debug": debug}
    if ctx.invoked_subcommand is not None:
        return

    if mode is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)

    settings = load_settings(config)
    configure_logging(settings, debug)

    controller = PowerModeController.from_settings(settings, build_surface(), config_path=config)
    try:
        result = controller.run(mode, enable_wifi=enable_wifi, revert_after_minutes=revert_after_minutes)
    except PowerModeError as exc:
        if exc.warning_level:
            logger.warning("%s", exc)
            typer.secho(str(exc), fg=typer.colors.YELLOW)
            raise typer.Exit(code=0) from exc
        logger.error("%s", exc)
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    report(result)


@app.command()
def status(ctx: typer.Context) -> None:
    """Show the current mode and whether original settings are pending restore."""
    obj = ctx.obj or {}
    settings = load_settings(obj.get("config"))
    paths = AppPaths.from_state_dir(settings.state_dir, settings.log_file_name)
    try:
        mode = ModeTracker(FileStore(paths.mode_file)).current()
        snapshot = SettingsStore(FileStore(paths.snapshot_file)).load()
    except PowerModeError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"Mode: {mode.value}")
    if snapshot is not None:
        typer.echo(f"Original settings saved at {snapshot.captured_at.isoformat()} (pending restore)")
    else:
        typer.echo("No original settings pending restore")


# ───────────────────────── config sub-commands ───────────────────────────────
@config_app.command("validate")
def validate_config(file: Path):
    """Validate a YAML config file against the schema."""
    try:
        UserSettings.load(file)
        typer.echo("✅ Config valid")
    except (FileNotFoundError, RuntimeError) as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


# ───────────────────────── module entrypoint ────────────────────────────────
if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        sys.exit(0)
