"""
Change Monitors

One-shot watchers that signal when an external source changes, plus the
in-process notification hub they subscribe to. Monitors may fire from any
thread; all state transitions are guarded by a lock.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional
from uuid import uuid4

import structlog

from .exceptions import CacheInvalidArgumentException

logger = structlog.get_logger()

ChangeCallback = Callable[[Optional[Any]], None]


class Subscription:
    """Handle returned by a notifier; cancel() stops further notifications."""

    def __init__(self, source: str, cancel: Callable[[], None]):
        self.source = source
        self._cancel = cancel
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._cancel()


class ChangeNotifier(ABC):
    """Change-notification collaborator: delivers change events per source."""

    @abstractmethod
    def subscribe(
        self, source: str, on_change: Callable[[str], None]
    ) -> Subscription:
        """Invoke on_change(source) whenever source changes until cancelled."""
        pass


class ChangeNotificationHub(ChangeNotifier):
    """
    In-process change notifier.

    Producers call notify(source); every live subscriber of that source is
    invoked on the producer's thread.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: Dict[str, Dict[str, Callable[[str], None]]] = {}

    def subscribe(
        self, source: str, on_change: Callable[[str], None]
    ) -> Subscription:
        if not source:
            raise CacheInvalidArgumentException(
                "Change source cannot be empty", argument="source"
            )

        token = uuid4().hex
        with self._lock:
            self._subscribers.setdefault(source, {})[token] = on_change

        return Subscription(source, lambda: self._unsubscribe(source, token))

    def _unsubscribe(self, source: str, token: str) -> None:
        with self._lock:
            callbacks = self._subscribers.get(source)
            if not callbacks:
                return
            callbacks.pop(token, None)
            if not callbacks:
                del self._subscribers[source]

    def subscriber_count(self, source: str) -> int:
        with self._lock:
            return len(self._subscribers.get(source, {}))

    def notify(self, source: str) -> int:
        """
        Signal that source changed.

        Returns:
            Number of subscribers notified
        """
        with self._lock:
            callbacks = list(self._subscribers.get(source, {}).values())

        for callback in callbacks:
            callback(source)

        logger.debug("Change notified", source=source, subscribers=len(callbacks))
        return len(callbacks)


class ChangeMonitor(ABC):
    """
    One-shot change monitor.

    A single callback may be attached with notify_on_changed(). When the
    monitor observes a change the callback runs exactly once, after which the
    monitor disposes itself. A change observed before the callback is
    attached is delivered as soon as it is attached.
    """

    def __init__(self):
        self.unique_id = uuid4().hex
        self._lock = threading.Lock()
        self._callback: Optional[ChangeCallback] = None
        self._has_changed = False
        self._callback_invoked = False
        self._disposed = False

    @property
    def has_changed(self) -> bool:
        return self._has_changed

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def has_callback(self) -> bool:
        return self._callback is not None

    def notify_on_changed(self, callback: ChangeCallback) -> None:
        """Attach the callback. Can only be called once per monitor."""
        if callback is None:
            raise CacheInvalidArgumentException(
                "Change callback cannot be None", argument="callback"
            )

        with self._lock:
            if self._callback is not None:
                raise CacheInvalidArgumentException(
                    "Change monitor already has a callback", argument="callback"
                )
            self._callback = callback
            fire_now = self._has_changed and not self._callback_invoked
            if fire_now:
                self._callback_invoked = True

        if fire_now:
            callback(None)
            self.dispose()

    def on_changed(self, state: Optional[Any] = None) -> None:
        """Record a change; subclasses call this from their source handlers."""
        with self._lock:
            if self._has_changed:
                return
            self._has_changed = True
            callback = self._callback
            if callback is not None:
                self._callback_invoked = True

        if callback is not None:
            callback(state)
            self.dispose()

    def dispose(self) -> None:
        """Stop watching and release source subscriptions."""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True

        self._dispose_resources()

    @abstractmethod
    def _dispose_resources(self) -> None:
        pass


class SourceChangeMonitor(ChangeMonitor):
    """Monitor bound to one or more sources of a ChangeNotifier."""

    def __init__(self, notifier: ChangeNotifier, sources: Iterable[str]):
        super().__init__()
        self.sources = list(sources)
        self._subscriptions: List[Subscription] = [
            notifier.subscribe(source, self._handle_change) for source in self.sources
        ]

    def _handle_change(self, source: str) -> None:
        self.on_changed(source)

    def _dispose_resources(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions = []
