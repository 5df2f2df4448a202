from __future__ import annotations

import asyncio
import copy
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import yaml

from controller.errors import StateCorrupt


def read_snapshot_sync(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise StateCorrupt(f"could not load state at {path}: {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise StateCorrupt(f"state at {path} must be a mapping, got {type(payload).__name__}")
    return payload


def write_snapshot_sync(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".new")
    tmp_path.write_text(yaml.safe_dump(data, sort_keys=True, allow_unicode=True), encoding="utf-8")
    # Readers only ever see the old or the new snapshot.
    os.replace(tmp_path, path)


class PersistentState:
    """
    Key/value state that survives restarts.

    All access goes through one asyncio.Lock. Mutations run inside `transaction()`
    on a private copy which replaces the live mapping (and is flushed to disk)
    only when the block exits cleanly, so a failing plugin never leaves a
    half-written value behind. Do not await network calls inside a transaction.
    """

    def __init__(self, path: str | Path, data: dict[str, Any] | None = None) -> None:
        self.path = Path(path).expanduser()
        self._data: dict[str, Any] = dict(data or {})
        self._lock = asyncio.Lock()

    @classmethod
    async def load(cls, path: str | Path) -> PersistentState:
        p = Path(path).expanduser()
        data = await asyncio.to_thread(read_snapshot_sync, p)
        print(f"[State] loaded {len(data)} key(s) from {p}")
        return cls(p, data)

    async def get(self, key: str, default: Any = None) -> Any:
        async with self._lock:
            if key not in self._data:
                return default
            return copy.deepcopy(self._data[key])

    async def snapshot(self) -> dict[str, Any]:
        async with self._lock:
            return copy.deepcopy(self._data)

    async def set(self, key: str, value: Any) -> None:
        async with self.transaction() as data:
            data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        async with self.transaction() as data:
            data.pop(key, None)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[dict[str, Any]]:
        async with self._lock:
            working = copy.deepcopy(self._data)
            yield working
            if working != self._data:
                await asyncio.to_thread(write_snapshot_sync, self.path, working)
                self._data = working

    async def flush(self) -> None:
        async with self._lock:
            await asyncio.to_thread(write_snapshot_sync, self.path, copy.deepcopy(self._data))
        print(f"[State] flushed {len(self._data)} key(s) to {self.path}")
