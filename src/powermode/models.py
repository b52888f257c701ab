"""Data models for modes, captured settings and operation results."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Final, Literal, Union

from pydantic import BaseModel, Field

from powermode.errors import PartialMutationFailure

logger: Final = logging.getLogger(__name__)


class Mode(str, Enum):
    """Profile currently applied to the machine."""

    POWER_SAVER = "PowerSaver"
    ULTRA_SAVER = "UltraSaver"
    RESTORED = "Restored"

    @property
    def is_optimization(self) -> bool:
        return self is not Mode.RESTORED


class RequestedMode(str, Enum):
    """Mode names accepted on the command line."""

    POWER_SAVER = "PowerSaver"
    ULTRA_SAVER = "UltraSaver"
    RESTORE = "Restore"

    def to_mode(self) -> Mode:
        if self is RequestedMode.RESTORE:
            return Mode.RESTORED
        return Mode(self.value)


# ── snapshot records ──────────────────────────────────────────────────────────
class WirelessAdapterState(BaseModel):
    """Wireless adapter identity and whether it was enabled."""

    adapter_id: str
    enabled: bool


class ServiceState(BaseModel):
    """Startup type and run state of one Windows service."""

    name: str
    startup_type: str = Field(..., description="Automatic, Manual or Disabled")
    running: bool


class RegistryStartupItem(BaseModel):
    """Run-key value launched at logon."""

    kind: Literal["registry"] = "registry"
    path: str = Field(..., description="Registry key holding the value")
    name: str
    value: str

    @property
    def key(self) -> str:
        return f"{self.path}\\{self.name}"


class ShortcutStartupItem(BaseModel):
    """Shortcut placed in a startup folder."""

    kind: Literal["shortcut"] = "shortcut"
    path: str = Field(..., description="Full path of the .lnk file")
    target: str
    arguments: str = ""
    working_directory: str = ""

    @property
    def key(self) -> str:
        return self.path


StartupItem = Annotated[
    Union[RegistryStartupItem, ShortcutStartupItem], Field(discriminator="kind")
]


class SettingsSnapshot(BaseModel):
    """System configuration captured before an optimization pass.

    Fields that could not be read at capture time hold their safe default
    (``None``, an empty list, or the configured default brightness) so a
    restore simply skips or falls back for them.
    """

    power_plan: str | None = None
    brightness: int = Field(..., ge=0, le=100)
    execution_policy: str | None = None
    wireless: WirelessAdapterState | None = None
    services: list[ServiceState] = Field(default_factory=list)
    startup_items: list[StartupItem] = Field(default_factory=list)
    background_apps_disabled: bool | None = None
    visual_effects_suppressed: bool | None = None
    notifications_suppressed: bool | None = None
    captured_at: datetime = Field(default_factory=datetime.now)


# ── operation results ─────────────────────────────────────────────────────────
@dataclass
class Outcome:
    """Result of one attempted mutation.

    ``fatal`` is False for steps whose failure is reported as a warning and
    does not count against the aggregate result.
    """

    step: str
    ok: bool
    fatal: bool = True
    error: PartialMutationFailure | None = None

    @classmethod
    def success(cls, step: str, fatal: bool = True) -> Outcome:
        return cls(step=step, ok=True, fatal=fatal)

    @classmethod
    def failure(cls, step: str, exc: Exception | None = None, fatal: bool = True) -> Outcome:
        return cls(step=step, ok=False, fatal=fatal, error=PartialMutationFailure(step, exc))

    @property
    def reason(self) -> str | None:
        return self.error.message if self.error else None


@dataclass
class ApplyResult:
    """Per-directive outcomes of applying a profile."""

    profile: str
    outcomes: list[Outcome] = field(default_factory=list)
    wireless_enabled: bool | None = None
    scheduled: bool | None = None

    @property
    def attempted(self) -> bool:
        """True once the directive sequence has run, whatever the outcomes."""
        return bool(self.outcomes)

    @property
    def failures(self) -> list[Outcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def success(self) -> bool:
        return not self.failures


@dataclass
class RestoreResult:
    """Per-step outcomes of a restore.

    ``success`` is the AND of all fatal steps; non-fatal failures
    (brightness, Bluetooth retry) are surfaced through ``warnings``.
    """

    outcomes: list[Outcome] = field(default_factory=list)
    bluetooth_attempts: int = 0

    @property
    def failures(self) -> list[Outcome]:
        return [o for o in self.outcomes if not o.ok and o.fatal]

    @property
    def warnings(self) -> list[Outcome]:
        return [o for o in self.outcomes if not o.ok and not o.fatal]

    @property
    def success(self) -> bool:
        return not self.failures

    def outcome(self, step: str) -> Outcome | None:
        """Return the outcome recorded for ``step``, if any."""
        for item in self.outcomes:
            if item.step == step:
                return item
        return None


def attempt(step: str, call: Callable[..., Any], *args: Any, fatal: bool = True) -> Outcome:
    """Run one control-surface call and turn its result into an Outcome.

    Any exception raised by ``call`` is caught here, logged, and recorded
    on the returned outcome instead of propagating.

    Args:
        step: Name recorded on the outcome
        call: Control-surface method to invoke
        *args: Arguments passed to ``call``
        fatal: Whether a failure counts against the aggregate result

    Returns:
        The outcome of the call
    """
    try:
        call(*args)
    except Exception as exc:
        if fatal:
            logger.error("%s failed: %s", step, exc)
        else:
            logger.warning("%s failed: %s", step, exc)
        return Outcome.failure(step, exc, fatal=fatal)

    logger.info("%s: ok", step)
    return Outcome.success(step, fatal=fatal)
