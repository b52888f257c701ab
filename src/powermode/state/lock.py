"""Scoped exclusive lock around a whole mode operation."""

from __future__ import annotations

import logging
import os
import sys
import time
from pathlib import Path
from types import TracebackType
from typing import IO, Callable, Final

from powermode.errors import ConcurrentOperationInProgress
from powermode.utils.file import ensure_directory_exists

logger: Final = logging.getLogger(__name__)


def _try_lock(fh: IO[str]) -> bool:
    """Take a non-blocking exclusive lock on ``fh``; False if already held."""
    if sys.platform == "win32":
        import msvcrt

        fh.seek(0)
        try:
            msvcrt.locking(fh.fileno(), msvcrt.LK_NBLCK, 1)
        except OSError:
            return False
        return True

    import fcntl

    try:
        fcntl.flock(fh, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except BlockingIOError:
        return False
    return True


def _unlock(fh: IO[str]) -> None:
    if sys.platform == "win32":
        import msvcrt

        fh.seek(0)
        msvcrt.locking(fh.fileno(), msvcrt.LK_UNLCK, 1)
        return

    import fcntl

    fcntl.flock(fh, fcntl.LOCK_UN)


class OperationLock:
    """Advisory file lock held for the duration of one mode operation.

    The lock lives in the OS, not in the file's content, so it is dropped
    automatically if the holding process dies. Acquisition polls until
    ``timeout`` and then raises ``ConcurrentOperationInProgress``.

    Examples:
        with OperationLock(paths.lock_file, timeout=10):
            ...
    """

    def __init__(
        self,
        path: Path,
        timeout: float = 10.0,
        poll_interval: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.path = path
        self.timeout = timeout
        self.poll_interval = poll_interval
        self._sleep = sleep
        self._fh: IO[str] | None = None

    @property
    def held(self) -> bool:
        return self._fh is not None

    def acquire(self) -> None:
        """Acquire the lock or raise ``ConcurrentOperationInProgress``."""
        if self._fh is not None:
            raise RuntimeError(f"Lock {self.path} is already held by this object")

        ensure_directory_exists(self.path.parent)
        fh = open(self.path, "a+", encoding="utf-8")
        deadline = time.monotonic() + self.timeout
        while not _try_lock(fh):
            if time.monotonic() >= deadline:
                fh.close()
                raise ConcurrentOperationInProgress(str(self.path), self.timeout)
            self._sleep(self.poll_interval)

        fh.seek(0)
        fh.truncate()
        fh.write(str(os.getpid()))
        fh.flush()
        self._fh = fh
        logger.debug("Acquired operation lock %s", self.path)

    def release(self) -> None:
        if self._fh is None:
            return
        try:
            _unlock(self._fh)
        finally:
            self._fh.close()
            self._fh = None
        logger.debug("Released operation lock %s", self.path)

    def __enter__(self) -> OperationLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
