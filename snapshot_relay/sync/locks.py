"""
Per-task serialisation of fetch transactions.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class TaskLockRegistry:
    """Hands out one asyncio.Lock per task id.

    Transactions for different task ids run freely; two transactions for the
    same id are serialised so one's cleanup cannot remove the other's commit.
    An id's lock is dropped once nobody holds or waits for it.
    Only guards coroutines in this process.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        # Coroutines inside hold() per id, holding or waiting
        self._users: Dict[str, int] = {}

    def lock_for(self, task_id: str) -> asyncio.Lock:
        lock = self._locks.get(task_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[task_id] = lock
        return lock

    def is_locked(self, task_id: str) -> bool:
        lock = self._locks.get(task_id)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, task_id: str) -> AsyncIterator[None]:
        lock = self.lock_for(task_id)
        self._users[task_id] = self._users.get(task_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[task_id] -= 1
            if not self._users[task_id]:
                del self._users[task_id]
                self._locks.pop(task_id, None)
