"""Replay a captured snapshot to undo an optimization pass."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import Final

from powermode.constants import BLUETOOTH_SERVICES
from powermode.errors import ControlSurfaceError, NoBackupFound
from powermode.models import Outcome, RestoreResult, SettingsSnapshot, attempt
from powermode.scheduling import DeferredRevertScheduler
from powermode.state.repository import SettingsStore
from powermode.system.protocols import ControlSurface

logger: Final = logging.getLogger(__name__)


class BluetoothReenabler:
    """Bounded retry loop that brings Bluetooth support back.

    Each attempt sets every Bluetooth service to Automatic and starts it,
    then re-enables the Bluetooth device. An attempt succeeds only if all
    of those calls succeed; the loop stops at the first such attempt.
    """

    def __init__(
        self,
        surface: ControlSurface,
        services: Sequence[str] = BLUETOOTH_SERVICES,
        attempts: int = 5,
        backoff_seconds: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.surface = surface
        self.services = tuple(services)
        self.attempts = attempts
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep

    def _attempt_once(self) -> list[str]:
        errors: list[str] = []
        for name in self.services:
            try:
                self.surface.set_service_state(name, "Automatic", True)
            except Exception as exc:
                errors.append(f"{name}: {exc}")
        try:
            self.surface.set_bluetooth_device_enabled(True)
        except Exception as exc:
            errors.append(f"device: {exc}")
        return errors

    def run(self) -> tuple[Outcome, int]:
        """Run the retry loop.

        Returns:
            The non-fatal outcome of the step and the number of attempts made
        """
        errors: list[str] = []
        for number in range(1, self.attempts + 1):
            errors = self._attempt_once()
            if not errors:
                logger.info("Bluetooth re-enabled on attempt %d", number)
                return Outcome.success("bluetooth", fatal=False), number

            logger.warning(
                "Bluetooth re-enable attempt %d/%d failed: %s", number, self.attempts, "; ".join(errors)
            )
            if number < self.attempts:
                self._sleep(self.backoff_seconds)

        logger.error("Bluetooth could not be re-enabled after %d attempts", self.attempts)
        exc = ControlSurfaceError("bluetooth", "; ".join(errors))
        return Outcome.failure("bluetooth", exc, fatal=False), self.attempts


class RestoreEngine:
    """Returns the machine to the state held in the Settings Store.

    Steps run in a fixed order and each is attempted independently, so a
    failure in one never prevents the rest. Every step sets an absolute
    value, which makes a restore safe to run again after an interruption.
    """

    def __init__(
        self,
        surface: ControlSurface,
        store: SettingsStore,
        scheduler: DeferredRevertScheduler,
        bluetooth: BluetoothReenabler | None = None,
    ) -> None:
        self.surface = surface
        self.store = store
        self.scheduler = scheduler
        self.bluetooth = bluetooth or BluetoothReenabler(surface)

    def restore(self) -> RestoreResult:
        """Replay the stored snapshot, then delete it.

        Returns:
            RestoreResult with one outcome per step

        Raises:
            NoBackupFound: If no snapshot is stored
        """
        snapshot = self.store.load()
        if snapshot is None:
            raise NoBackupFound()

        logger.info("Restoring settings captured %s", snapshot.captured_at.isoformat())
        result = RestoreResult()
        outcomes = result.outcomes
        surface = self.surface

        outcomes.append(self._restore_power_plan(snapshot))
        outcomes.append(attempt("brightness", surface.set_brightness, snapshot.brightness, fatal=False))
        outcomes.append(self._restore_wireless(snapshot))

        bluetooth, result.bluetooth_attempts = self.bluetooth.run()
        outcomes.append(bluetooth)

        for service in snapshot.services:
            outcomes.append(
                attempt(
                    f"service:{service.name}",
                    surface.set_service_state,
                    service.name,
                    service.startup_type,
                    service.running,
                )
            )

        for item in snapshot.startup_items:
            outcomes.append(attempt(f"startup:{item.key}", surface.set_startup_item, item))

        if snapshot.execution_policy is not None:
            outcomes.append(
                attempt("execution_policy", surface.set_execution_policy, snapshot.execution_policy)
            )

        toggles = (
            ("background_apps", surface.set_background_apps_disabled, snapshot.background_apps_disabled),
            ("visual_effects", surface.set_visual_effects_suppressed, snapshot.visual_effects_suppressed),
            ("notifications", surface.set_notifications_suppressed, snapshot.notifications_suppressed),
        )
        for step, call, captured in toggles:
            outcomes.append(self._restore_toggle(step, call, captured))

        outcomes.append(attempt("delete_snapshot", self.store.delete))
        outcomes.append(self.scheduler.cancel())

        if result.success:
            logger.info("Restore completed (%d warning(s))", len(result.warnings))
        else:
            logger.error(
                "Restore completed with %d failure(s): %s",
                len(result.failures),
                ", ".join(o.step for o in result.failures),
            )
        return result

    def _restore_power_plan(self, snapshot: SettingsSnapshot) -> Outcome:
        if snapshot.power_plan is None:
            logger.error("power_plan failed: no power plan was captured")
            return Outcome.failure(
                "power_plan", ControlSurfaceError("power_plan", "no power plan was captured")
            )
        return attempt("power_plan", self.surface.set_active_power_plan, snapshot.power_plan)

    def _restore_toggle(
        self, step: str, call: Callable[[bool], None], captured: bool | None
    ) -> Outcome:
        if captured is None:
            logger.info("%s was not captured, leaving it as is", step)
            return Outcome.success(step)
        return attempt(step, call, captured)

    def _restore_wireless(self, snapshot: SettingsSnapshot) -> Outcome:
        wireless = snapshot.wireless
        if wireless is None:
            logger.info("No wireless adapter captured, skipping")
            return Outcome.success("wireless")
        if not wireless.enabled:
            logger.info("Wireless adapter %s was disabled, leaving it off", wireless.adapter_id)
            return Outcome.success("wireless")
        return attempt("wireless", self.surface.set_wireless_enabled, wireless.adapter_id, True)
