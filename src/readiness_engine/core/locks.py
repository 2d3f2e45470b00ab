"""Per-athlete write serialization.

Each athlete's timeline is an independent unit of work. Writes to daily
metrics, load records and injury assessments for one athlete go through a
single asyncio lock so concurrent check-ins collapse into upserts instead of
racing. Different athletes never contend.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class AthleteLockRegistry:
    """Lazily created asyncio locks keyed by athlete ID."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, athlete_id: str) -> asyncio.Lock:
        lock = self._locks.get(athlete_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[athlete_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, athlete_id: str) -> AsyncIterator[None]:
        """Hold the athlete's write lock for the duration of the block."""
        async with self.get(athlete_id):
            yield


# Process-wide registry shared by request handlers and the nightly batch
athlete_locks = AthleteLockRegistry()
