"""Capture the machine's settings before an optimization pass."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Final, TypeVar

from powermode.constants import DEFAULT_BRIGHTNESS, TRACKED_SERVICES
from powermode.models import ServiceState, SettingsSnapshot
from powermode.state.repository import SettingsStore
from powermode.system.protocols import ControlSurface

logger: Final = logging.getLogger(__name__)

T = TypeVar("T")


class BackupEngine:
    """Reads the current configuration into a ``SettingsSnapshot``.

    Capture never fails on a control-surface error: each read is attempted
    on its own and a failed read leaves its field at a safe default.
    """

    def __init__(
        self,
        surface: ControlSurface,
        store: SettingsStore,
        tracked_services: Sequence[str] = TRACKED_SERVICES,
        default_brightness: int = DEFAULT_BRIGHTNESS,
    ) -> None:
        """Initialize the engine.

        Args:
            surface: Control surface used for all reads
            store: Where the resulting snapshot is saved
            tracked_services: Services whose state is captured
            default_brightness: Brightness recorded when it cannot be read
        """
        self.surface = surface
        self.store = store
        self.tracked_services = tuple(tracked_services)
        self.default_brightness = default_brightness

    def _read(self, what: str, call: Callable[[], T], default: T) -> T:
        try:
            return call()
        except Exception as exc:
            logger.warning("Could not read %s, using %r: %s", what, default, exc)
            return default

    def _read_services(self) -> list[ServiceState]:
        states: list[ServiceState] = []
        for name in self.tracked_services:
            try:
                states.append(self.surface.get_service_state(name))
            except Exception as exc:
                logger.warning("Could not read service %s, not tracking it: %s", name, exc)
        return states

    def capture(self) -> SettingsSnapshot:
        """Snapshot the current settings and save them.

        Any snapshot already in the store is overwritten.

        Returns:
            The snapshot that was saved
        """
        logger.info("Backing up current settings")
        brightness = self._read("brightness", self.surface.get_brightness, self.default_brightness)
        if not 0 <= brightness <= 100:
            logger.warning("Brightness %s out of range, using %s", brightness, self.default_brightness)
            brightness = self.default_brightness

        snapshot = SettingsSnapshot(
            power_plan=self._read("active power plan", self.surface.get_active_power_plan, None),
            brightness=brightness,
            execution_policy=self._read("execution policy", self.surface.get_execution_policy, None),
            wireless=self._read("wireless adapter", self.surface.get_wireless_adapter, None),
            services=self._read_services(),
            startup_items=self._read("startup items", self.surface.list_startup_items, []),
            background_apps_disabled=self._read(
                "background apps setting", self.surface.get_background_apps_disabled, None
            ),
            visual_effects_suppressed=self._read(
                "visual effects setting", self.surface.get_visual_effects_suppressed, None
            ),
            notifications_suppressed=self._read(
                "notifications setting", self.surface.get_notifications_suppressed, None
            ),
            captured_at=datetime.now(),
        )

        self.store.save(snapshot)
        logger.info(
            "Captured plan=%s brightness=%s wireless=%s services=%d startup_items=%d",
            snapshot.power_plan,
            snapshot.brightness,
            snapshot.wireless.enabled if snapshot.wireless else None,
            len(snapshot.services),
            len(snapshot.startup_items),
        )
        return snapshot
