"""Cross-process advisory file lock usable from asyncio code."""

import asyncio
import fcntl
from pathlib import Path
from typing import IO, Optional

from meowda.errors import LockError
from meowda.logging import get_logger

logger = get_logger(__name__)


class FileLock:
    """Exclusive `flock` on a lock file, held until released.

    Each instance opens its own handle, so two instances on the same path
    exclude each other even inside one process. Not reentrant.
    """

    def __init__(self, path: Path, resource: str):
        self.path = Path(path)
        self.resource = resource
        self._handle: Optional[IO[str]] = None

    @classmethod
    async def acquire(cls, path: Path, resource: str) -> "FileLock":
        lock = cls(path, resource)
        await lock._lock()
        return lock

    @property
    def is_held(self) -> bool:
        return self._handle is not None

    async def _lock(self) -> None:
        if self._handle is not None:
            raise LockError(str(self.path), "lock is already held by this handle")

        try:
            handle = open(self.path, "a+")
        except OSError as e:
            raise LockError(str(self.path), e.strerror or str(e)) from e

        try:
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                logger.info(
                    {"event": "lock_waiting", "resource": self.resource, "path": str(self.path)}
                )
                await asyncio.to_thread(fcntl.flock, handle.fileno(), fcntl.LOCK_EX)
        except OSError as e:
            handle.close()
            raise LockError(str(self.path), e.strerror or str(e)) from e

        self._handle = handle
        logger.debug({"event": "lock_acquired", "resource": self.resource, "path": str(self.path)})

    def release(self) -> None:
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        finally:
            handle.close()
        logger.debug({"event": "lock_released", "resource": self.resource, "path": str(self.path)})

    async def __aenter__(self) -> "FileLock":
        await self._lock()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.release()
