"""Internal application settings derived from user settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from powermode.constants import LOCK_FILE_NAME, MODE_FILE_NAME, SNAPSHOT_FILE_NAME
from powermode.settings.user import UserSettings


@dataclass
class AppPaths:
    """Application file paths.

    Centralizes the location of every persisted file so the state
    directory can be moved (or pointed at a temporary directory in tests)
    in one place.
    """

    state_dir: Path
    mode_file: Path
    snapshot_file: Path
    lock_file: Path
    log_file: Path

    @classmethod
    def from_state_dir(cls, state_dir: Path, log_file_name: str = "powermode.log") -> AppPaths:
        """Create paths from the state directory."""
        return cls(
            state_dir=state_dir,
            mode_file=state_dir / MODE_FILE_NAME,
            snapshot_file=state_dir / SNAPSHOT_FILE_NAME,
            lock_file=state_dir / LOCK_FILE_NAME,
            log_file=state_dir / log_file_name,
        )


class ApplicationSettings:
    """Application settings container.

    Combines user-provided configuration with derived values such as file
    paths.

    Examples:
        user_settings = UserSettings.load()
        app_settings = ApplicationSettings(user_settings)
        mode_file = app_settings.paths.mode_file
    """

    def __init__(
        self,
        user_settings: UserSettings,
        paths: AppPaths | None = None,
        config_path: Path | None = None,
    ):
        """Initialize application settings with configuration sources."""
        self.user = user_settings
        self.paths = paths or AppPaths.from_state_dir(
            user_settings.state_dir, user_settings.log_file_name
        )
        self.config_path = config_path
