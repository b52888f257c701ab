"""User-configurable settings loaded from a YAML config file."""

from __future__ import annotations

import logging
import os
import re
import sys
from pathlib import Path
from typing import ClassVar, Final

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from powermode.constants import (
    DEFAULT_BRIGHTNESS,
    DEFAULT_REVERT_TASK_NAME,
    LOG_FILE_NAME,
    TRACKED_SERVICES,
)

# Load environment variables from .env file(s)
load_dotenv()

logger: Final = logging.getLogger(__name__)


def _interpolate_env(content: str) -> str:
    return re.sub(r"\$\{(\w+)\}", lambda m: os.getenv(m.group(1), ""), content)


def default_state_dir() -> Path:
    """Return the platform directory for mode, snapshot, lock and log files."""
    if sys.platform == "win32":
        return Path(os.environ.get("ProgramData", r"C:\ProgramData")) / "PowerMode"
    return Path("~/.local/state/powermode").expanduser()


class UserSettings(BaseModel):
    """Settings for where state is kept and how restores behave.

    Every field has a default, so running without a config file is valid.
    Values can be overridden in a YAML file; ``${VAR}`` references are
    expanded from the environment (including ``.env``).
    """

    # Default search paths for configuration
    DEFAULT_CONFIG_PATHS: ClassVar[list[Path]] = [
        Path("powermode.yaml"),
        Path("~/.config/powermode/config.yaml").expanduser(),
        Path(os.environ.get("ProgramData", "/etc")) / "PowerMode" / "config.yaml",
    ]

    # Storage
    state_dir: Path = Field(
        default_factory=default_state_dir,
        description="Directory holding the mode file, settings snapshot, lock and log",
    )
    log_file_name: str = Field(LOG_FILE_NAME, min_length=1, description="Log file inside state_dir")

    # Backup
    tracked_services: list[str] = Field(
        default_factory=lambda: list(TRACKED_SERVICES),
        description="Services whose startup type and run state are captured and restored",
    )
    default_brightness: int = Field(
        DEFAULT_BRIGHTNESS,
        ge=0,
        le=100,
        description="Brightness recorded when the real value cannot be read",
    )

    # Restore
    bluetooth_retry_attempts: int = Field(5, ge=1, le=20, description="Bluetooth re-enable attempts")
    bluetooth_retry_backoff_seconds: float = Field(
        5.0, ge=0, description="Fixed delay between Bluetooth re-enable attempts"
    )

    # Concurrency and scheduling
    lock_timeout_seconds: float = Field(
        10.0, gt=0, description="How long to wait for another operation to finish"
    )
    revert_task_name: str = Field(
        DEFAULT_REVERT_TASK_NAME, min_length=1, description="Name of the deferred revert task"
    )

    # ---- validators ----
    @field_validator("state_dir")
    @classmethod
    def expand_state_dir(cls, v: Path) -> Path:
        return v.expanduser()

    @field_validator("tracked_services")
    @classmethod
    def unique_services(cls, v: list[str]) -> list[str]:
        seen: list[str] = []
        for name in v:
            if name and name not in seen:
                seen.append(name)
        return seen

    @classmethod
    def find_config(cls) -> Path | None:
        """Locate a config file from the environment or default paths.

        Returns:
            The config path, or None to run with built-in defaults

        Raises:
            FileNotFoundError: If POWERMODE_CONFIG names a missing file
        """
        env_path = os.environ.get("POWERMODE_CONFIG")
        if env_path:
            path = Path(env_path)
            if not path.exists():
                raise FileNotFoundError(f"Config file from POWERMODE_CONFIG not found: {path}")
            return path

        for default_path in cls.DEFAULT_CONFIG_PATHS:
            if default_path.exists():
                return default_path
        return None

    @classmethod
    def load(cls, path: Path | None = None) -> UserSettings:
        """Load configuration from a YAML file.

        Args:
            path: Path to config file (optional, searches default locations if None)

        Returns:
            Validated UserSettings object; defaults when no file is found

        Raises:
            FileNotFoundError: If POWERMODE_CONFIG names a missing file
            RuntimeError: If the config file cannot be parsed or is invalid
        """
        if path is None:
            path = cls.find_config()
            if path is None:
                logger.debug("No config file found, using defaults")
                return cls()

        import yaml  # local import to avoid hard dep for callers

        try:
            raw = _interpolate_env(path.read_text(encoding="utf-8"))
            data = yaml.safe_load(raw) or {}
        except Exception as exc:  # pragma: no cover
            raise RuntimeError(f"Unable to read config YAML: {exc}") from exc

        try:
            return cls.model_validate(data)
        except ValidationError as err:
            raise RuntimeError(f"Invalid configuration:\n{err}") from err
