"""Apply an optimization profile to the machine."""

from __future__ import annotations

import logging
from typing import Final

from powermode.models import ApplyResult, Outcome, attempt
from powermode.profiles import OptimizationProfile, Suppression, WirelessPolicy
from powermode.system.protocols import ControlSurface

logger: Final = logging.getLogger(__name__)

# Control-surface toggle for each suppression, in application order
SUPPRESSION_CALLS: Final[dict[Suppression, str]] = {
    Suppression.INDEXING: "set_indexing_suppressed",
    Suppression.PREFETCH: "set_prefetch_suppressed",
    Suppression.DIAGNOSTICS: "set_diagnostics_suppressed",
    Suppression.VISUAL_EFFECTS: "set_visual_effects_suppressed",
    Suppression.NOTIFICATIONS: "set_notifications_suppressed",
}


class ProfileApplier:
    """Issues the directives of a profile in their fixed order.

    Order: power plan, brightness, wireless, Bluetooth services and device,
    battery threshold and display timeout, background apps, then the
    profile's suppressions. Every directive is attempted even if an earlier
    one failed; failures are collected on the ``ApplyResult``.
    """

    def __init__(self, surface: ControlSurface) -> None:
        self.surface = surface

    def apply(self, profile: OptimizationProfile, enable_wifi: bool = False) -> ApplyResult:
        """Apply ``profile`` and return the per-directive outcomes.

        Args:
            profile: Profile to apply
            enable_wifi: Keep Wi-Fi on (honored by PowerSaver only)

        Returns:
            ApplyResult with one outcome per directive and the resulting
            wireless-enabled flag
        """
        logger.info("Applying %s profile", profile.name)
        result = ApplyResult(profile=profile.name)
        outcomes = result.outcomes
        surface = self.surface

        outcomes.append(attempt("power_plan", surface.set_active_power_plan, profile.power_plan))
        outcomes.append(attempt("brightness", surface.set_brightness, profile.brightness))
        outcomes.append(self._apply_wireless(profile, enable_wifi, result))

        for name in profile.disabled_services:
            outcomes.append(attempt(f"service:{name}", surface.set_service_state, name, "Disabled", False))
        if profile.disable_bluetooth_device:
            outcomes.append(attempt("bluetooth_device", surface.set_bluetooth_device_enabled, False))

        outcomes.append(attempt("battery_threshold", surface.set_power_threshold, profile.battery_threshold))
        outcomes.append(
            attempt("display_timeout", surface.set_display_timeout, profile.display_timeout_minutes)
        )

        if profile.suppress_background_apps:
            outcomes.append(attempt("background_apps", surface.set_background_apps_disabled, True))

        for suppression in profile.suppressions:
            call = getattr(surface, SUPPRESSION_CALLS[suppression])
            outcomes.append(attempt(suppression.value, call, True))

        if result.failures:
            logger.warning(
                "%s applied with %d failed directive(s): %s",
                profile.name,
                len(result.failures),
                ", ".join(o.step for o in result.failures),
            )
        else:
            logger.info("%s applied", profile.name)
        return result

    def _apply_wireless(
        self, profile: OptimizationProfile, enable_wifi: bool, result: ApplyResult
    ) -> Outcome:
        policy = profile.resolve_wireless(enable_wifi)
        try:
            adapter = self.surface.get_wireless_adapter()
        except Exception as exc:
            logger.error("wireless failed: %s", exc)
            return Outcome.failure("wireless", exc)

        if adapter is None:
            logger.info("No wireless adapter found, skipping wireless policy")
            return Outcome.success("wireless")

        if policy is WirelessPolicy.LEAVE_AS_CONFIGURED:
            result.wireless_enabled = adapter.enabled
            return Outcome.success("wireless")

        enabled = policy is WirelessPolicy.FORCE_ENABLE
        outcome = attempt("wireless", self.surface.set_wireless_enabled, adapter.adapter_id, enabled)
        # The flag records intent, so it is set even when the call failed
        result.wireless_enabled = enabled
        return outcome
