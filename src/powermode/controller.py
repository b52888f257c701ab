# filepath: src/powermode/controller.py
"""Core controller for switching power modes."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Final

from powermode.applier import ProfileApplier
from powermode.backup import BackupEngine
from powermode.machine import check_transition
from powermode.models import ApplyResult, Mode, RequestedMode, RestoreResult
from powermode.profiles import profile_for
from powermode.restore import BluetoothReenabler, RestoreEngine
from powermode.scheduling import DeferredRevertScheduler, revert_invocation
from powermode.settings.application import ApplicationSettings
from powermode.settings.user import UserSettings
from powermode.state import FileStore, ModeTracker, OperationLock, SettingsStore
from powermode.system.protocols import ControlSurface

logger: Final = logging.getLogger(__name__)


class PowerModeController:
    """Main controller for mode operations.

    Orchestrates one mode operation from start to finish:
    - Taking the operation lock
    - Validating the transition against the persisted mode
    - Backing up settings before the first optimization pass
    - Applying the profile or replaying the snapshot
    - Persisting the new mode and scheduling a deferred revert

    The lock is held from before the transition check until after the final
    mode write, so two invocations can never interleave their state reads
    and writes.
    """

    def __init__(
        self,
        surface: ControlSurface,
        mode_tracker: ModeTracker,
        settings_store: SettingsStore,
        lock: OperationLock,
        scheduler: DeferredRevertScheduler,
        backup: BackupEngine | None = None,
        applier: ProfileApplier | None = None,
        restorer: RestoreEngine | None = None,
    ) -> None:
        self.surface = surface
        self.mode_tracker = mode_tracker
        self.settings_store = settings_store
        self.lock = lock
        self.scheduler = scheduler
        self.backup = backup or BackupEngine(surface, settings_store)
        self.applier = applier or ProfileApplier(surface)
        self.restorer = restorer or RestoreEngine(surface, settings_store, scheduler)

    @classmethod
    def from_settings(
        cls,
        settings: UserSettings,
        surface: ControlSurface,
        config_path: Path | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> PowerModeController:
        """Build a controller backed by files under ``settings.state_dir``.

        Args:
            settings: Loaded user settings
            surface: Control surface to operate on
            config_path: Config file passed on to the deferred revert
            sleep: Sleep function used by retry loops

        Returns:
            A ready-to-use controller
        """
        app = ApplicationSettings(settings, config_path=config_path)
        paths = app.paths

        mode_tracker = ModeTracker(FileStore(paths.mode_file))
        settings_store = SettingsStore(FileStore(paths.snapshot_file))
        lock = OperationLock(paths.lock_file, timeout=settings.lock_timeout_seconds, sleep=sleep)
        scheduler = DeferredRevertScheduler(
            surface, settings.revert_task_name, revert_invocation(app.config_path)
        )
        bluetooth = BluetoothReenabler(
            surface,
            attempts=settings.bluetooth_retry_attempts,
            backoff_seconds=settings.bluetooth_retry_backoff_seconds,
            sleep=sleep,
        )
        return cls(
            surface,
            mode_tracker,
            settings_store,
            lock,
            scheduler,
            backup=BackupEngine(
                surface,
                settings_store,
                settings.tracked_services,
                settings.default_brightness,
            ),
            restorer=RestoreEngine(surface, settings_store, scheduler, bluetooth),
        )

    # ── operations ───────────────────────────────────────────────────────
    def run(
        self,
        requested: RequestedMode,
        enable_wifi: bool = False,
        revert_after_minutes: int = 0,
    ) -> ApplyResult | RestoreResult:
        """Run the operation for a mode requested on the command line."""
        mode = requested.to_mode()
        if mode is Mode.RESTORED:
            if revert_after_minutes:
                logger.warning("--revert-after-minutes is ignored when restoring")
            if enable_wifi:
                logger.warning("--enable-wifi is ignored when restoring")
            return self.restore()
        return self.apply_mode(mode, enable_wifi, revert_after_minutes)

    def apply_mode(
        self,
        mode: Mode,
        enable_wifi: bool = False,
        revert_after_minutes: int = 0,
    ) -> ApplyResult:
        """Switch to an optimization mode.

        Args:
            mode: PowerSaver or UltraSaver
            enable_wifi: Keep Wi-Fi enabled (PowerSaver only)
            revert_after_minutes: Schedule an automatic restore when positive

        Returns:
            Outcomes of every directive

        Raises:
            IllegalTransition: If ``mode`` cannot follow the current mode
            ConcurrentOperationInProgress: If another operation holds the lock
            ValueError: If ``mode`` is not an optimization mode
        """
        if not mode.is_optimization:
            raise ValueError(f"{mode.value} is not an optimization mode; use restore()")
        if revert_after_minutes < 0:
            raise ValueError(f"revert_after_minutes must be >= 0, got {revert_after_minutes}")

        profile = profile_for(mode)
        if enable_wifi and not profile.honors_wifi_override:
            logger.warning("Wi-Fi override is ignored by %s; Wi-Fi will be disabled", profile.name)

        with self.lock:
            current = check_transition(self.mode_tracker.read(), mode)

            if self.settings_store.exists():
                # The pending snapshot holds the true originals; a new capture
                # would record already-optimized values.
                logger.warning(
                    "Original settings from an earlier pass are still pending restore; keeping them"
                )
            else:
                self.backup.capture()

            if current is mode:
                logger.info("Re-applying %s", mode.value)
            result = self.applier.apply(profile, enable_wifi)

            if result.attempted:
                self.mode_tracker.write(mode)

            if revert_after_minutes > 0:
                result.scheduled = self.scheduler.schedule_revert(revert_after_minutes)

        return result

    def restore(self) -> RestoreResult:
        """Return the machine to the settings captured before optimization.

        Returns:
            Outcomes of every restore step

        Raises:
            NoOpTransition: If the machine is already restored
            NoBackupFound: If no snapshot is stored
            ConcurrentOperationInProgress: If another operation holds the lock
        """
        with self.lock:
            check_transition(self.mode_tracker.read(), Mode.RESTORED)
            result = self.restorer.restore()
            self.mode_tracker.write(Mode.RESTORED)
        return result
