from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable

NOTIFY_TIMESTAMPS_KEY = "notify_timestamps"


class VolatileState:
    """In-memory counterpart of PersistentState; discarded on restart."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str, default: Any = None) -> Any:
        async with self._lock:
            return self._data.get(key, default)

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            self._data[key] = value

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[dict[str, Any]]:
        async with self._lock:
            yield self._data


class NotificationThrottle:
    def __init__(
        self,
        vstate: VolatileState,
        *,
        limit_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.vstate = vstate
        self.limit_seconds = float(limit_seconds)
        self._clock = clock

    async def should_notify(self, user_id: int, now: float | None = None) -> bool:
        now = self._clock() if now is None else float(now)
        async with self.vstate.transaction() as data:
            stamps: dict[int, float] = data.setdefault(NOTIFY_TIMESTAMPS_KEY, {})
            last = stamps.get(int(user_id))
            if last is not None and now - last < self.limit_seconds:
                return False
            stamps[int(user_id)] = now
            return True

    def now(self) -> float:
        return self._clock()

    async def release(self, user_id: int, stamp: float) -> None:
        """Forget a window opened at `stamp`, e.g. when the notification never went out."""
        async with self.vstate.transaction() as data:
            stamps: dict[int, float] = data.setdefault(NOTIFY_TIMESTAMPS_KEY, {})
            if stamps.get(int(user_id)) == float(stamp):
                del stamps[int(user_id)]
