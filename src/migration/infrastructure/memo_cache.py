import asyncio
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class InflightMemoCache(Generic[K, V]):
    """Append-only key -> value memo with in-flight request coalescing.

    Concurrent callers asking for the same key await one shared task. Only
    successful results are remembered; a failed load is forgotten so a later
    caller can try again.
    """

    def __init__(self) -> None:
        self._values: dict[K, V] = {}
        self._inflight: dict[K, asyncio.Future[V]] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def get(self, key: K) -> V | None:
        return self._values.get(key)

    def prime(self, key: K, value: V) -> None:
        self._values.setdefault(key, value)

    async def get_or_load(self, key: K, loader: Callable[[], Awaitable[V]]) -> V:
        if key in self._values:
            return self._values[key]

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(loader())
            self._inflight[key] = task
            task.add_done_callback(partial(self._settle, key))
        return await asyncio.shield(task)

    def _settle(self, key: K, task: asyncio.Future[V]) -> None:
        self._inflight.pop(key, None)
        if task.cancelled() or task.exception() is not None:
            return
        self._values.setdefault(key, task.result())
