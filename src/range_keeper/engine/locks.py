"""Per-pool mutual exclusion for overlapping manual and scheduled cycles."""

from __future__ import annotations

import asyncio


class PoolLockRegistry:
    """Hands out one asyncio.Lock per pool id, created on first use."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def lock_for(self, pool_id: str) -> asyncio.Lock:
        key = pool_id.lower()
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def is_locked(self, pool_id: str) -> bool:
        lock = self._locks.get(pool_id.lower())
        return lock is not None and lock.locked()
