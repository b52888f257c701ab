"""Exception classes for mode operations.

This module defines the hierarchy of errors raised while switching power
modes. Guard and concurrency errors abort an operation; mutation and
scheduling failures are recorded and logged but never unwind the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from powermode.models import Mode


class PowerModeError(Exception):
    """Base class for all errors raised by powermode.

    ``warning_level`` marks errors that are reported to the operator as a
    warning rather than a failure (the operation stops cleanly and the
    process still exits 0).
    """

    warning_level: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message: str = message


class IllegalTransition(PowerModeError):
    """Raised when the requested mode cannot follow the current mode."""

    def __init__(self, current: Mode, requested: Mode) -> None:
        """Initialize with the disallowed pair.

        Args:
            current: Mode currently persisted
            requested: Mode the operator asked for
        """
        super().__init__(
            f"Cannot switch from {current.value} to {requested.value}; "
            f"run with --mode Restore first"
        )
        self.current = current
        self.requested = requested


class NoOpTransition(PowerModeError):
    """Raised when restore is requested on an already restored machine."""

    warning_level = True

    def __init__(self, mode: Mode) -> None:
        super().__init__(f"System is already in {mode.value} mode; nothing to do")
        self.mode = mode


class NoBackupFound(PowerModeError):
    """Raised when restore is requested but no snapshot is stored."""

    warning_level = True

    def __init__(self, message: str = "No saved settings found; nothing to restore") -> None:
        super().__init__(message)


class PartialMutationFailure(PowerModeError):
    """A single setting read or mutation failed.

    Never raised out of an operation; instances are attached to the
    ``Outcome`` of the step that failed.
    """

    def __init__(self, step: str, original_error: Optional[Exception] = None) -> None:
        """Initialize with the failing step.

        Args:
            step: Name of the directive or restore step
            original_error: The exception raised by the control surface
        """
        reason = str(original_error) if original_error else "unknown error"
        super().__init__(f"{step} failed: {reason}")
        self.step = step
        self.original_error = original_error


class SchedulingFailure(PowerModeError):
    """Registering the deferred revert task failed."""

    def __init__(self, task_name: str, original_error: Optional[Exception] = None) -> None:
        reason = str(original_error) if original_error else "unknown error"
        super().__init__(f"Could not schedule task {task_name!r}: {reason}")
        self.task_name = task_name
        self.original_error = original_error


class ConcurrentOperationInProgress(PowerModeError):
    """Another powermode process holds the operation lock."""

    def __init__(self, lock_path: str, timeout: float) -> None:
        super().__init__(
            f"Another mode operation is in progress (lock {lock_path} "
            f"not acquired within {timeout:g}s)"
        )
        self.lock_path = lock_path
        self.timeout = timeout


class StateFileError(PowerModeError):
    """A persisted state file exists but cannot be parsed."""

    def __init__(self, path: str, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.original_error = original_error


class ControlSurfaceError(PowerModeError):
    """An OS command issued by a control surface failed."""

    def __init__(self, command: str, message: str, returncode: int | None = None) -> None:
        """Initialize with the failing command.

        Args:
            command: Command or operation that failed
            message: stderr/stdout text or a description of the failure
            returncode: Process exit status when available
        """
        super().__init__(f"{command}: {message}")
        self.command = command
        self.returncode = returncode
