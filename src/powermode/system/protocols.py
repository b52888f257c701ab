# src/powermode/system/protocols.py
from __future__ import annotations

import copy
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from powermode.errors import ControlSurfaceError
from powermode.models import ServiceState, StartupItem, WirelessAdapterState


@runtime_checkable
class ControlSurface(Protocol):
    """Protocol defining every read and mutation of machine settings.

    The core never issues OS commands itself; it goes through an
    implementation of this protocol. Implementations raise an exception
    (normally ``ControlSurfaceError``) when a call fails and the core turns
    that into a recorded outcome.
    """

    # power plan and display
    def get_active_power_plan(self) -> str: ...
    def set_active_power_plan(self, plan_id: str) -> None: ...
    def get_brightness(self) -> int: ...
    def set_brightness(self, percent: int) -> None: ...
    def set_power_threshold(self, percent: int) -> None: ...
    def set_display_timeout(self, minutes: int) -> None: ...

    # radios
    def get_wireless_adapter(self) -> WirelessAdapterState | None:
        """Return the wireless adapter, or None if the machine has none."""
        ...

    def set_wireless_enabled(self, adapter_id: str, enabled: bool) -> None: ...
    def set_bluetooth_device_enabled(self, enabled: bool) -> None: ...

    # services and startup items
    def get_service_state(self, name: str) -> ServiceState: ...
    def set_service_state(self, name: str, startup_type: str, running: bool) -> None: ...
    def list_startup_items(self) -> list[StartupItem]: ...
    def set_startup_item(self, item: StartupItem) -> None: ...

    # policy
    def get_execution_policy(self) -> str: ...
    def set_execution_policy(self, policy: str) -> None: ...

    # profile toggles
    def get_background_apps_disabled(self) -> bool: ...
    def get_visual_effects_suppressed(self) -> bool: ...
    def get_notifications_suppressed(self) -> bool: ...
    def set_background_apps_disabled(self, disabled: bool) -> None: ...
    def set_indexing_suppressed(self, suppressed: bool) -> None: ...
    def set_prefetch_suppressed(self, suppressed: bool) -> None: ...
    def set_diagnostics_suppressed(self, suppressed: bool) -> None: ...
    def set_visual_effects_suppressed(self, suppressed: bool) -> None: ...
    def set_notifications_suppressed(self, suppressed: bool) -> None: ...

    # deferred invocation
    def schedule_one_shot(self, name: str, delay_minutes: int, invocation: Sequence[str]) -> None:
        """Register a one-shot task, replacing any task with the same name."""
        ...

    def cancel_scheduled(self, name: str) -> None:
        """Remove a scheduled task; a missing task is not an error."""
        ...


class MockControlSurface:
    """In-memory implementation of ControlSurface for testing and dry runs.

    Every call is recorded in ``calls``. Failures are injected through
    ``failures``: a mapping from a call name (``"set_brightness"``) or a
    call name plus its first argument (``"set_service_state:WSearch"``) to
    the number of times that call should fail. A negative count fails
    forever.
    """

    def __init__(
        self,
        power_plan: str = "381b4222-f694-41f0-9685-ff5bb260df2e",
        brightness: int | None = 70,
        wireless: WirelessAdapterState | None = None,
        services: dict[str, ServiceState] | None = None,
        startup_items: list[StartupItem] | None = None,
        execution_policy: str = "RemoteSigned",
        failures: dict[str, int] | None = None,
    ) -> None:
        self.power_plan = power_plan
        self.brightness = brightness
        self.wireless = wireless
        self.services: dict[str, ServiceState] = services or {}
        self.startup_items: list[StartupItem] = startup_items or []
        self.execution_policy = execution_policy
        self.bluetooth_device_enabled = True
        self.power_threshold: int | None = None
        self.display_timeout: int | None = None
        self.toggles: dict[str, bool] = {}
        self.scheduled: dict[str, tuple[int, list[str]]] = {}
        self.failures: dict[str, int] = failures or {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    # ── failure injection ────────────────────────────────────────────────
    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        for key in (f"{name}:{args[0]}" if args else None, name):
            if key is None or key not in self.failures:
                continue
            remaining = self.failures[key]
            if remaining == 0:
                continue
            if remaining > 0:
                self.failures[key] = remaining - 1
            raise ControlSurfaceError(name, f"injected failure for {key}")

    def call_names(self) -> list[str]:
        """Return the names of recorded calls in order."""
        return [name for name, _ in self.calls]

    # ── power plan and display ───────────────────────────────────────────
    def get_active_power_plan(self) -> str:
        self._record("get_active_power_plan")
        return self.power_plan

    def set_active_power_plan(self, plan_id: str) -> None:
        self._record("set_active_power_plan", plan_id)
        self.power_plan = plan_id

    def get_brightness(self) -> int:
        self._record("get_brightness")
        if self.brightness is None:
            raise ControlSurfaceError("get_brightness", "no controllable display")
        return self.brightness

    def set_brightness(self, percent: int) -> None:
        self._record("set_brightness", percent)
        self.brightness = percent

    def set_power_threshold(self, percent: int) -> None:
        self._record("set_power_threshold", percent)
        self.power_threshold = percent

    def set_display_timeout(self, minutes: int) -> None:
        self._record("set_display_timeout", minutes)
        self.display_timeout = minutes

    # ── radios ───────────────────────────────────────────────────────────
    def get_wireless_adapter(self) -> WirelessAdapterState | None:
        self._record("get_wireless_adapter")
        return self.wireless.model_copy() if self.wireless else None

    def set_wireless_enabled(self, adapter_id: str, enabled: bool) -> None:
        self._record("set_wireless_enabled", adapter_id, enabled)
        if self.wireless is None or self.wireless.adapter_id != adapter_id:
            raise ControlSurfaceError("set_wireless_enabled", f"adapter {adapter_id!r} not found")
        self.wireless = WirelessAdapterState(adapter_id=adapter_id, enabled=enabled)

    def set_bluetooth_device_enabled(self, enabled: bool) -> None:
        self._record("set_bluetooth_device_enabled", enabled)
        self.bluetooth_device_enabled = enabled

    # ── services and startup items ───────────────────────────────────────
    def get_service_state(self, name: str) -> ServiceState:
        self._record("get_service_state", name)
        if name not in self.services:
            raise ControlSurfaceError("get_service_state", f"service {name!r} not installed")
        return self.services[name].model_copy()

    def set_service_state(self, name: str, startup_type: str, running: bool) -> None:
        self._record("set_service_state", name, startup_type, running)
        self.services[name] = ServiceState(name=name, startup_type=startup_type, running=running)

    def list_startup_items(self) -> list[StartupItem]:
        self._record("list_startup_items")
        return copy.deepcopy(self.startup_items)

    def set_startup_item(self, item: StartupItem) -> None:
        self._record("set_startup_item", item.key)
        self.startup_items = [i for i in self.startup_items if i.key != item.key]
        self.startup_items.append(item.model_copy())

    # ── policy ───────────────────────────────────────────────────────────
    def get_execution_policy(self) -> str:
        self._record("get_execution_policy")
        return self.execution_policy

    def set_execution_policy(self, policy: str) -> None:
        self._record("set_execution_policy", policy)
        self.execution_policy = policy

    # ── profile toggles ──────────────────────────────────────────────────
    def _toggle(self, name: str, value: bool) -> None:
        self._record(f"set_{name}", value)
        self.toggles[name] = value

    def _read_toggle(self, name: str) -> bool:
        self._record(f"get_{name}")
        return self.toggles.get(name, False)

    def get_background_apps_disabled(self) -> bool:
        return self._read_toggle("background_apps_disabled")

    def get_visual_effects_suppressed(self) -> bool:
        return self._read_toggle("visual_effects_suppressed")

    def get_notifications_suppressed(self) -> bool:
        return self._read_toggle("notifications_suppressed")

    def set_background_apps_disabled(self, disabled: bool) -> None:
        self._toggle("background_apps_disabled", disabled)

    def set_indexing_suppressed(self, suppressed: bool) -> None:
        self._toggle("indexing_suppressed", suppressed)

    def set_prefetch_suppressed(self, suppressed: bool) -> None:
        self._toggle("prefetch_suppressed", suppressed)

    def set_diagnostics_suppressed(self, suppressed: bool) -> None:
        self._toggle("diagnostics_suppressed", suppressed)

    def set_visual_effects_suppressed(self, suppressed: bool) -> None:
        self._toggle("visual_effects_suppressed", suppressed)

    def set_notifications_suppressed(self, suppressed: bool) -> None:
        self._toggle("notifications_suppressed", suppressed)

    # ── deferred invocation ──────────────────────────────────────────────
    def schedule_one_shot(self, name: str, delay_minutes: int, invocation: Sequence[str]) -> None:
        self._record("schedule_one_shot", name, delay_minutes)
        self.scheduled[name] = (delay_minutes, list(invocation))

    def cancel_scheduled(self, name: str) -> None:
        self._record("cancel_scheduled", name)
        self.scheduled.pop(name, None)
