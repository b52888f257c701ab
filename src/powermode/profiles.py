"""Built-in optimization profiles."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from powermode.constants import BLUETOOTH_SERVICES, POWER_SAVER_PLAN
from powermode.models import Mode


class WirelessPolicy(Enum):
    """What a profile does with the wireless adapter."""

    FORCE_DISABLE = "ForceDisable"
    FORCE_ENABLE = "ForceEnable"
    LEAVE_AS_CONFIGURED = "LeaveAsConfigured"


class Suppression(Enum):
    """Optional features an aggressive profile switches off."""

    INDEXING = "indexing"
    PREFETCH = "prefetch"
    DIAGNOSTICS = "diagnostics"
    VISUAL_EFFECTS = "visual_effects"
    NOTIFICATIONS = "notifications"


@dataclass(frozen=True)
class OptimizationProfile:
    """Static set of mutation directives applied as one mode.

    Directive order is fixed by ``ProfileApplier``; the profile only says
    what each directive targets.
    """

    name: str
    mode: Mode
    power_plan: str
    brightness: int
    wireless: WirelessPolicy
    battery_threshold: int
    display_timeout_minutes: int
    disabled_services: tuple[str, ...] = BLUETOOTH_SERVICES
    disable_bluetooth_device: bool = True
    suppress_background_apps: bool = True
    suppressions: tuple[Suppression, ...] = ()
    honors_wifi_override: bool = False

    def resolve_wireless(self, enable_wifi: bool = False) -> WirelessPolicy:
        """Return the wireless policy after applying the Wi-Fi override.

        Only profiles that honor the override let ``enable_wifi`` turn a
        forced disable into a forced enable.
        """
        if self.honors_wifi_override:
            return WirelessPolicy.FORCE_ENABLE if enable_wifi else WirelessPolicy.FORCE_DISABLE
        return self.wireless


POWER_SAVER = OptimizationProfile(
    name="PowerSaver",
    mode=Mode.POWER_SAVER,
    power_plan=POWER_SAVER_PLAN,
    brightness=50,
    wireless=WirelessPolicy.FORCE_DISABLE,
    battery_threshold=50,
    display_timeout_minutes=5,
    honors_wifi_override=True,
)

ULTRA_SAVER = OptimizationProfile(
    name="UltraSaver",
    mode=Mode.ULTRA_SAVER,
    power_plan=POWER_SAVER_PLAN,
    brightness=30,
    wireless=WirelessPolicy.FORCE_DISABLE,
    battery_threshold=100,
    display_timeout_minutes=2,
    suppressions=(
        Suppression.INDEXING,
        Suppression.PREFETCH,
        Suppression.DIAGNOSTICS,
        Suppression.VISUAL_EFFECTS,
        Suppression.NOTIFICATIONS,
    ),
)

PROFILES: dict[Mode, OptimizationProfile] = {
    Mode.POWER_SAVER: POWER_SAVER,
    Mode.ULTRA_SAVER: ULTRA_SAVER,
}


def profile_for(mode: Mode) -> OptimizationProfile:
    """Return the built-in profile for an optimization mode.

    Raises:
        KeyError: If ``mode`` is not an optimization mode
    """
    return PROFILES[mode]
