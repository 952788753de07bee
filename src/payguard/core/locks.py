"""Per-subject advisory locks.

Only one mutation strategy may write a subject's data at a time within a
process. Locks are created lazily and dropped once nobody holds or waits
on them.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from payguard.core.logging import get_logger

logger = get_logger(__name__)


class SubjectLockManager:
    """Keyed asyncio locks, one per subject id."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    def is_locked(self, subject_id: str) -> bool:
        lock = self._locks.get(subject_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, subject_id: str) -> AsyncIterator[None]:
        """Hold the lock for ``subject_id`` for the duration of the block."""
        lock = self._locks.setdefault(subject_id, asyncio.Lock())
        self._waiters[subject_id] = self._waiters.get(subject_id, 0) + 1
        if lock.locked():
            logger.debug("Waiting for subject lock", subject_id=subject_id)
        try:
            async with lock:
                yield
        finally:
            self._waiters[subject_id] -= 1
            if self._waiters[subject_id] == 0:
                del self._waiters[subject_id]
                del self._locks[subject_id]
