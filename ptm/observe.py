"""Change notifications for a :class:`~ptm.manager.ProgressManager`.

:class:`ProgressNotifier` wraps a tree and exposes one :class:`Observable`
per node and per :class:`~ptm.progress.NodeProperty`:

- ``fraction_completed`` publishes on every recomputation;
- ``total_unit_count`` publishes only when a task is resized;
- ``completed_unit_count`` publishes only when the integer changes. For the
  root that means only when a task becomes (or stops being) finished.

Readers either pull from a :class:`Subscription` on their own thread or
register a push callback with :meth:`ProgressNotifier.watch`. Subscriptions
keep only the latest value: a new value replaces one that was not yet read.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Dict, Generic, Hashable, List, Optional, TypeVar

from .manager import ProgressManager
from .progress import NodeProperty, ProgressNode

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)

Callback = Callable[[Any], None]


class _Root:
    def __repr__(self) -> str:
        return "ROOT"


ROOT: Any = _Root()

_EMPTY = object()


class SubscriptionClosed(Exception):
    """Raised by :meth:`Subscription.get` once the stream is drained and closed."""


class Subscription:
    """Single-slot, latest-value-wins stream of property values."""

    def __init__(self, on_cancel: Optional[Callable[['Subscription'], None]] = None) -> None:
        self._cond = threading.Condition()
        self._value: Any = _EMPTY
        self._closed = False
        self._on_cancel = on_cancel

    @classmethod
    def absent(cls) -> 'Subscription':
        """A stream that yields ``None`` once and is then closed."""
        sub = cls()
        sub._value = None
        sub._closed = True
        return sub

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> bool:
        return self._value is not _EMPTY

    def get(self, block: bool = True, timeout: Optional[float] = None) -> Any:
        """Return the latest unread value.

        Raises :class:`queue.Empty` when nothing arrives in time and
        :class:`SubscriptionClosed` once the stream is closed and drained.
        """
        with self._cond:
            if block:
                self._cond.wait_for(lambda: self._value is not _EMPTY or self._closed, timeout)
            if self._value is not _EMPTY:
                value, self._value = self._value, _EMPTY
                return value
            if self._closed:
                raise SubscriptionClosed()
            raise queue.Empty()

    def __iter__(self) -> 'Subscription':
        return self

    def __next__(self) -> Any:
        try:
            return self.get()
        except SubscriptionClosed:
            raise StopIteration from None

    def cancel(self) -> None:
        """Stop delivery. A value that already arrived can still be read."""
        on_cancel, self._on_cancel = self._on_cancel, None
        if on_cancel is not None:
            on_cancel(self)
        self._close()

    def __enter__(self) -> 'Subscription':
        return self

    def __exit__(self, *exc) -> None:
        self.cancel()

    def _offer(self, value: Any) -> None:
        with self._cond:
            if self._closed:
                return
            self._value = value
            self._cond.notify_all()

    def _close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()


class Observable:
    """Holds the current value of one property and fans it out."""

    def __init__(self, value: Any) -> None:
        self._lock = threading.Lock()
        self._value = value
        self._subscriptions: List[Subscription] = []
        self._callbacks: List[Callback] = []

    @property
    def value(self) -> Any:
        return self._value

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions) + len(self._callbacks)

    def publish(self, value: Any) -> None:
        with self._lock:
            self._value = value
            subscriptions = list(self._subscriptions)
            callbacks = list(self._callbacks)
        for sub in subscriptions:
            sub._offer(value)
        for callback in callbacks:
            try:
                callback(value)
            except Exception:
                logger.exception("Progress callback %r failed", callback)

    def subscribe(self) -> Subscription:
        """Return a subscription seeded with the current value."""
        sub = Subscription(on_cancel=self._detach)
        with self._lock:
            sub._offer(self._value)
            self._subscriptions.append(sub)
        return sub

    def watch(self, callback: Callback) -> Callable[[], None]:
        """Call *callback* with each new value; returns an unsubscribe function."""
        with self._lock:
            self._callbacks.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return _unsubscribe

    def close(self) -> None:
        with self._lock:
            subscriptions = list(self._subscriptions)
            self._subscriptions.clear()
            self._callbacks.clear()
        for sub in subscriptions:
            sub._on_cancel = None
            sub._close()

    def _detach(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)


def _read(node: ProgressNode, prop: NodeProperty) -> Any:
    return getattr(node, prop.value)


class ProgressNotifier(Generic[K]):
    """Per-property observers for the root and every task of a manager.

    Pass ``ROOT`` (the default) or a task key to pick the node. Asking for
    a task the manager does not know returns :meth:`Subscription.absent`
    rather than raising.
    """

    def __init__(self, manager: ProgressManager[K]) -> None:
        self.manager = manager
        self._observables: Dict[ProgressNode, Dict[NodeProperty, Observable]] = {}
        for node in [manager.parent, *manager.child_tasks.values()]:
            self._observables[node] = {prop: Observable(_read(node, prop)) for prop in NodeProperty}
            node.add_observer(self._on_change)

    def __enter__(self) -> 'ProgressNotifier[K]':
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def observable(self, prop: NodeProperty, task: Any = ROOT) -> Optional[Observable]:
        node = self.manager.parent if task is ROOT else self.manager.get(task)
        observables = self._observables.get(node) if node is not None else None
        if observables is None:
            return None
        return observables[NodeProperty(prop)]

    def subscribe(self, prop: NodeProperty, task: Any = ROOT) -> Subscription:
        observable = self.observable(prop, task)
        if observable is None:
            logger.debug("No task %r to observe, returning an absent stream", task)
            return Subscription.absent()
        return observable.subscribe()

    def fraction_completed(self, task: Any = ROOT) -> Subscription:
        return self.subscribe(NodeProperty.FRACTION_COMPLETED, task)

    def total_unit_count(self, task: Any = ROOT) -> Subscription:
        return self.subscribe(NodeProperty.TOTAL_UNIT_COUNT, task)

    def completed_unit_count(self, task: Any = ROOT) -> Subscription:
        return self.subscribe(NodeProperty.COMPLETED_UNIT_COUNT, task)

    def watch(self, prop: NodeProperty, callback: Callback, task: Any = ROOT) -> Callable[[], None]:
        """Push each new value of *prop* to *callback*.

        For an unknown task the callback receives ``None`` once and the
        returned unsubscribe function does nothing.
        """
        observable = self.observable(prop, task)
        if observable is None:
            callback(None)
            return lambda: None
        return observable.watch(callback)

    def close(self) -> None:
        """Detach from the tree and close every open subscription."""
        for node, observables in self._observables.items():
            node.remove_observer(self._on_change)
            for observable in observables.values():
                observable.close()
        self._observables.clear()

    def _on_change(self, node: ProgressNode, prop: NodeProperty, value: Any) -> None:
        observables = self._observables.get(node)
        if observables is not None:
            observables[prop].publish(value)


__all__ = [
    "Observable",
    "ProgressNotifier",
    "ROOT",
    "Subscription",
    "SubscriptionClosed",
]
