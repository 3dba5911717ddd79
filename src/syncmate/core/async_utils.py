"""Async helpers: thread offloading for blocking calls and save-burst debouncing."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import Any, Generic, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Used for the rsync subprocess and for terminal prompts.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def run_sync_limited(
    semaphore: asyncio.Semaphore | None,
    func: Callable[..., T],
    *args: Any,
    **kwargs: Any,
) -> T:
    """Run a synchronous function in a thread pool, bounded by *semaphore*.

    Falls back to unbounded if no semaphore is given.
    """
    if semaphore is None:
        return await asyncio.to_thread(func, *args, **kwargs)
    async with semaphore:
        return await asyncio.to_thread(func, *args, **kwargs)


class Debouncer(Generic[T]):
    """Coalesce bursts of items into one call of an async function.

    Every ``push()`` restarts a trailing-edge timer of ``wait`` seconds.
    When the timer fires, everything pushed so far is handed to ``func``
    as a single list (the latest item per key wins, first-push order is
    kept).  Runs are serialized by a lock: items that arrive while a run
    is in flight are collected for the next run and never overlap it.

    Args:
        func: Async callable receiving the coalesced list.
        wait: Quiet period in seconds before a run starts.
        key: Maps an item to its de-duplication key.  Defaults to the
            item itself.
    """

    def __init__(
        self,
        func: Callable[[list[T]], Awaitable[Any]],
        wait: float = 0.25,
        key: Callable[[T], Hashable] | None = None,
    ) -> None:
        self._func = func
        self._wait = wait
        self._key = key or (lambda item: item)
        self._items: dict[Hashable, T] = {}
        self._timer: asyncio.TimerHandle | None = None
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of items waiting for the next run."""
        return len(self._items)

    def push(self, item: T) -> None:
        """Record *item* and (re)start the quiet-period timer."""
        self._items[self._key(item)] = item
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._wait, self._fire)

    def _fire(self) -> None:
        self._timer = None
        task = asyncio.create_task(self._run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self) -> None:
        async with self._lock:
            if not self._items:
                return
            items = list(self._items.values())
            self._items = {}
            logger.debug("Debounced run with %d item(s)", len(items))
            try:
                await self._func(items)
            except Exception:
                logger.exception("Debounced call failed")

    async def flush(self) -> None:
        """Run pending items now and wait for any in-flight run."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        await self._run()
        if self._tasks:
            await asyncio.gather(*list(self._tasks))

    def close(self) -> None:
        """Cancel the timer and drop pending items."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._items = {}
