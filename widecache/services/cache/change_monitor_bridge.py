"""
Change Monitor Bridge

Connects one-shot change monitors to cache eviction. Each registered monitor
gets a callback that schedules an unconditional remove of its key on the
event loop that registered it, whichever thread the monitor fires on.
"""

import asyncio
import concurrent.futures
import threading
from functools import partial
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Set, Union

import structlog

from ...domain.cache.change_monitors import ChangeMonitor
from ...domain.cache.exceptions import CacheInvalidArgumentException
from ...domain.cache.value_objects import CacheKey

logger = structlog.get_logger()

Evictor = Callable[[CacheKey], Awaitable[Any]]
PendingEviction = Union[asyncio.Future, concurrent.futures.Future]


class ChangeMonitorRegistry:
    """
    Registry of live change monitors owned by a single cache instance.

    Monitors are consumed when they fire. close() disposes whatever is still
    armed and waits for in-flight evictions, so no callback outlives the cache.
    """

    def __init__(self, evict: Evictor):
        self._evict = evict
        self._lock = threading.Lock()
        self._monitors: Dict[str, ChangeMonitor] = {}
        self._pending: Set[PendingEviction] = set()
        self._closed = False

    @property
    def active_count(self) -> int:
        """Number of armed monitors."""
        with self._lock:
            return len(self._monitors)

    @property
    def closed(self) -> bool:
        return self._closed

    def validate(self, monitors: Iterable[ChangeMonitor]) -> None:
        """
        Check that every monitor can still be armed.

        Raises CacheInvalidArgumentException for a monitor that is disposed,
        already bound to a callback, or listed twice.
        """
        seen = set()
        for monitor in monitors:
            if monitor is None:
                raise CacheInvalidArgumentException(
                    "Change monitor cannot be None", argument="change_monitors"
                )
            if monitor.is_disposed:
                raise CacheInvalidArgumentException(
                    f"Change monitor {monitor.unique_id} is disposed",
                    argument="change_monitors",
                )
            if monitor.has_callback or monitor.unique_id in seen:
                raise CacheInvalidArgumentException(
                    f"Change monitor {monitor.unique_id} is already registered",
                    argument="change_monitors",
                )
            seen.add(monitor.unique_id)

    def register(self, monitors: Iterable[ChangeMonitor], key: CacheKey) -> None:
        """
        Arm each monitor to evict key when it fires.

        Must be called from a running event loop; that loop runs the evictions.
        """
        loop = asyncio.get_running_loop()

        for monitor in monitors:
            with self._lock:
                self._monitors[monitor.unique_id] = monitor

            monitor.notify_on_changed(partial(self._on_changed, loop, monitor, key))
            logger.debug(
                "Change monitor registered",
                monitor_id=monitor.unique_id,
                region=key.region,
                key=key.key,
            )

    def _on_changed(
        self,
        loop: asyncio.AbstractEventLoop,
        monitor: ChangeMonitor,
        key: CacheKey,
        state: Optional[Any] = None,
    ) -> None:
        with self._lock:
            self._monitors.pop(monitor.unique_id, None)
            if self._closed:
                return

        if loop.is_closed():
            logger.warning(
                "Change monitor fired after its event loop closed",
                monitor_id=monitor.unique_id,
                region=key.region,
                key=key.key,
            )
            return

        try:
            running_loop = asyncio.get_running_loop()
        except RuntimeError:
            running_loop = None

        coro = self._run_eviction(monitor, key, state)
        if running_loop is loop:
            pending: PendingEviction = loop.create_task(coro)
        else:
            pending = asyncio.run_coroutine_threadsafe(coro, loop)

        with self._lock:
            self._pending.add(pending)
        pending.add_done_callback(self._discard_pending)

    def _discard_pending(self, pending: PendingEviction) -> None:
        with self._lock:
            self._pending.discard(pending)

    async def _run_eviction(
        self, monitor: ChangeMonitor, key: CacheKey, state: Optional[Any]
    ) -> None:
        try:
            await self._evict(key)
            logger.info(
                "Cache entry evicted by change monitor",
                monitor_id=monitor.unique_id,
                region=key.region,
                key=key.key,
                source=state,
            )
        except Exception as e:
            # Nobody awaits this task, so the failure is reported here
            logger.exception(
                "Change monitor eviction failed",
                monitor_id=monitor.unique_id,
                region=key.region,
                key=key.key,
                error=str(e),
            )

    async def drain(self) -> None:
        """Wait for every eviction scheduled so far."""
        with self._lock:
            pending = list(self._pending)

        if not pending:
            return

        awaitables = [
            asyncio.wrap_future(item)
            if isinstance(item, concurrent.futures.Future)
            else item
            for item in pending
        ]
        await asyncio.gather(*awaitables, return_exceptions=True)

    async def close(self) -> None:
        """Dispose armed monitors and wait for in-flight evictions."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            monitors = list(self._monitors.values())
            self._monitors.clear()

        for monitor in monitors:
            monitor.dispose()

        await self.drain()
        logger.debug("Change monitor registry closed", disposed=len(monitors))
