"""Deferred-revert scheduling."""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Final

from powermode.constants import DEFAULT_REVERT_TASK_NAME
from powermode.errors import SchedulingFailure
from powermode.models import Outcome, attempt
from powermode.system.protocols import ControlSurface

logger: Final = logging.getLogger(__name__)


def revert_invocation(config_path: Path | None = None) -> list[str]:
    """Return the command line that runs a restore with this interpreter."""
    invocation = [sys.executable, "-m", "powermode.cli", "--mode", "Restore"]
    if config_path is not None:
        invocation += ["--config", str(config_path.resolve())]
    return invocation


class DeferredRevertScheduler:
    """Keeps at most one pending deferred revert registered.

    The task is registered under a fixed name; registering again replaces
    the pending task rather than adding a second one.
    """

    def __init__(
        self,
        surface: ControlSurface,
        task_name: str = DEFAULT_REVERT_TASK_NAME,
        invocation: Sequence[str] | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            surface: Control surface providing the scheduling capability
            task_name: Name the one-shot task is registered under
            invocation: Command line to run; defaults to ``revert_invocation()``
        """
        self.surface = surface
        self.task_name = task_name
        self.invocation = list(invocation) if invocation is not None else revert_invocation()

    def schedule_revert(self, minutes: int) -> bool:
        """Schedule a restore ``minutes`` from now.

        Args:
            minutes: Delay before the restore runs, must be positive

        Returns:
            True if the task was registered. A registration failure is
            logged as an error and reported as False; it never undoes the
            mode change that preceded it.

        Raises:
            ValueError: If ``minutes`` is not positive
        """
        if minutes <= 0:
            raise ValueError(f"revert delay must be positive, got {minutes}")

        try:
            self.surface.cancel_scheduled(self.task_name)
        except Exception as exc:
            logger.debug("No previous %s task removed: %s", self.task_name, exc)

        try:
            self.surface.schedule_one_shot(self.task_name, minutes, self.invocation)
        except Exception as exc:
            logger.error("%s", SchedulingFailure(self.task_name, exc))
            return False

        logger.info("Scheduled automatic restore in %d minute(s) as %s", minutes, self.task_name)
        return True

    def cancel(self) -> Outcome:
        """Remove any pending deferred revert."""
        return attempt("cancel_deferred_revert", self.surface.cancel_scheduled, self.task_name)
