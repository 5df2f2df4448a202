from __future__ import annotations

import asyncio
from collections import deque
from typing import Awaitable, Callable

from controller.models import HistoryMessage
from retrieval.window import select_window

FetchHistory = Callable[..., Awaitable[list[HistoryMessage]]]


class HistoryBuffer:
    """
    Bounded per-channel message log.

    The first time a channel is seen it is seeded with up to `backfill_count`
    earlier messages from the platform. Concurrent first sightings share one
    backfill task, and every read or write of a channel waits for that task,
    so live messages always land after the backfilled ones.
    """

    def __init__(self, *, max_messages: int, backfill_count: int, fetch_history: FetchHistory) -> None:
        if int(max_messages) < 1:
            raise ValueError(f"max_messages must be >= 1, got {max_messages}")
        if int(backfill_count) < 0:
            raise ValueError(f"backfill_count must be >= 0, got {backfill_count}")
        self.max_messages = int(max_messages)
        self.backfill_count = int(backfill_count)
        self._fetch_history = fetch_history
        self._channels: dict[int, deque[HistoryMessage]] = {}
        self._backfills: dict[int, asyncio.Task] = {}
        self._lock = asyncio.Lock()

    def is_backfilled(self, channel_id: int) -> bool:
        task = self._backfills.get(int(channel_id))
        return task is not None and task.done()

    async def ensure_backfilled(self, channel_id: int, *, before: int | None = None) -> None:
        channel_id = int(channel_id)
        task = self._backfills.get(channel_id)
        if task is None:
            task = asyncio.create_task(self._backfill(channel_id, before))
            self._backfills[channel_id] = task
        # A cancelled waiter must not cancel the backfill other events are waiting on.
        await asyncio.shield(task)

    async def _backfill(self, channel_id: int, before: int | None) -> None:
        fetched: list[HistoryMessage] = []
        if self.backfill_count > 0:
            print(f"[Backfill] channel {channel_id}: fetching up to {self.backfill_count} messages")
            try:
                fetched = list(await self._fetch_history(channel_id, self.backfill_count, before=before))
            except Exception as e:
                print(f"[Backfill] channel {channel_id}: fetch failed, starting empty: {e}")
                fetched = []

        async with self._lock:
            buf = self._channels.setdefault(channel_id, deque(maxlen=self.max_messages))
            buf.extend(fetched[-self.backfill_count:])
            count = len(buf)
        if self.backfill_count > 0:
            print(f"[Backfill] channel {channel_id}: done, {count} message(s) in history")

    async def record(self, channel_id: int, message: HistoryMessage) -> None:
        channel_id = int(channel_id)
        await self.ensure_backfilled(channel_id)
        async with self._lock:
            # deque(maxlen=...) evicts the oldest entry when full.
            self._channels[channel_id].append(message)

    async def messages(self, channel_id: int) -> list[HistoryMessage]:
        channel_id = int(channel_id)
        await self.ensure_backfilled(channel_id)
        async with self._lock:
            return list(self._channels[channel_id])

    async def window(self, channel_id: int, token_budget: int) -> list[HistoryMessage]:
        return select_window(await self.messages(channel_id), token_budget)
