"""Mode transition guard."""

from __future__ import annotations

import logging
from typing import Final

from powermode.errors import IllegalTransition, NoOpTransition
from powermode.models import Mode

logger: Final = logging.getLogger(__name__)

# Switching between optimization profiles always goes through Restored
ALLOWED_TRANSITIONS: Final[frozenset[tuple[Mode, Mode]]] = frozenset(
    {
        (Mode.RESTORED, Mode.POWER_SAVER),
        (Mode.RESTORED, Mode.ULTRA_SAVER),
        (Mode.POWER_SAVER, Mode.POWER_SAVER),
        (Mode.ULTRA_SAVER, Mode.ULTRA_SAVER),
        (Mode.POWER_SAVER, Mode.RESTORED),
        (Mode.ULTRA_SAVER, Mode.RESTORED),
    }
)


def is_allowed(current: Mode | None, requested: Mode) -> bool:
    """Return True if ``requested`` may follow ``current``."""
    return (current or Mode.RESTORED, requested) in ALLOWED_TRANSITIONS


def check_transition(current: Mode | None, requested: Mode) -> Mode:
    """Validate a transition before anything is touched.

    Args:
        current: Persisted mode, or None if no mode was ever set
        requested: Target mode

    Returns:
        The effective current mode (``Restored`` when unset)

    Raises:
        NoOpTransition: Restore requested while already restored
        IllegalTransition: Any other disallowed pair
    """
    effective = current or Mode.RESTORED
    if effective is Mode.RESTORED and requested is Mode.RESTORED:
        raise NoOpTransition(effective)
    if not is_allowed(effective, requested):
        raise IllegalTransition(effective, requested)

    logger.debug("Transition %s -> %s allowed", effective.value, requested.value)
    return effective
