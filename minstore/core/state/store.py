"""
Observable state store.

The store is the single writer for its state. All writes go through
dispatch(), all reads through get_state(), and subscribers are told
after every applied action.

Guarantees:
- One lock serializes every operation, including notification
- Actions apply in a single total order
- A failing reducer leaves the state untouched
- A failing subscriber does not stop the others from being notified
- dispatch() called from inside a subscriber is queued, not nested
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, List, Optional

from .actions import INIT, DispatchRecord, action_kind
from .reducer import Reducer
from ...config import StoreConfig
from ...errors import ConstructionError, InvalidListenerError, ReentrantDispatchError
from ...metrics import StoreMetrics

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class _Subscription:
    """One registration of a listener. The same listener may hold several."""

    __slots__ = ("listener", "active")

    def __init__(self, listener: Listener):
        self.listener = listener
        self.active = True


def _listener_name(listener: Listener) -> str:
    return getattr(listener, "__qualname__", None) or repr(listener)


class Store:
    """
    Holds one state value and notifies subscribers when it changes.

    - dispatch(action) runs the reducer, replaces the state, then calls
      every subscriber in registration order
    - get_state() returns the current state
    - subscribe(listener) registers a zero-argument callback and returns
      a function that removes it again

    Example:
        >>> store = create_store(counter_reducer)
        >>> unsubscribe = store.subscribe(lambda: print(store.get_state()))
        >>> store.dispatch(Action("INC"))
        1
        >>> unsubscribe()
    """

    def __init__(
        self,
        reducer: Reducer,
        initial_state: Any = None,
        config: Optional[StoreConfig] = None,
    ):
        """
        Create the store and run the bootstrap action.

        Args:
            reducer: Pure ``(state, action) -> new_state`` function
            initial_state: State passed to the reducer with the bootstrap
                action; None lets the reducer pick its own default
            config: Store settings (defaults used when omitted)

        Raises:
            ConstructionError: If reducer is missing or not callable
        """
        if reducer is None or not callable(reducer):
            raise ConstructionError(
                f"Store needs a callable reducer, got {type(reducer).__name__}"
            )

        self._config = (config or StoreConfig()).validate()
        self._reducer = reducer
        self._lock = threading.RLock()
        self._subscriptions: List[_Subscription] = []
        self._action_log: Deque[DispatchRecord] = deque(maxlen=self._config.history_size)
        self._pending: Deque[Any] = deque()
        self._queued_this_cycle = 0
        self._dispatching = False
        self._seq = 0
        self.metrics = StoreMetrics()

        with self._lock:
            self._state = reducer(initial_state, INIT)
            self._action_log.append(DispatchRecord(seq=0, action=INIT))

        logger.info(
            f"Store '{self.name}' initialized with {_listener_name(reducer)}",
            extra={"store": self.name, "seq": 0, "action": INIT.kind},
        )

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def seq(self) -> int:
        """Number of actions applied since bootstrap."""
        with self._lock:
            return self._seq

    def get_state(self) -> Any:
        """
        Get the current state.

        The returned object is the store's own value, not a copy. Treat it
        as read-only and dispatch an action to change it.
        """
        with self._lock:
            return self._state

    def dispatch(self, action: Any) -> None:
        """
        Apply an action and notify subscribers.

        Runs synchronously: returns after the reducer and every subscriber
        have run. When called from inside a notification of this store,
        the action is queued and applied once the current notification
        loop finishes.

        Args:
            action: Any value the reducer understands

        Raises:
            Exception: Whatever the reducer raised. The state is left at
                its value from before the failing action.
            ReentrantDispatchError: If called from inside a notification
                after max_queued_dispatches have already been queued during
                the current outer dispatch
        """
        with self._lock:
            if self._dispatching:
                self._enqueue(action)
                return

            self._dispatching = True
            self._queued_this_cycle = 0
            try:
                self._apply(action)
                while self._pending:
                    self._apply(self._pending.popleft())
            finally:
                # Only non-empty when the loop above was interrupted
                if self._pending:
                    logger.warning(
                        f"Discarding {len(self._pending)} queued dispatches "
                        f"after failed dispatch",
                        extra={"store": self.name, "seq": self._seq},
                    )
                    self._pending.clear()
                self._dispatching = False

    def _enqueue(self, action: Any) -> None:
        """Queue a re-entrant dispatch (internal, with lock held)."""
        limit = self._config.max_queued_dispatches
        kind = action_kind(action)
        if self._queued_this_cycle >= limit:
            self.metrics.increment("dropped")
            logger.warning(
                f"Dropped re-entrant dispatch of {kind}: {limit} already queued this cycle",
                extra={"store": self.name, "seq": self._seq, "action": kind},
            )
            raise ReentrantDispatchError(limit)

        self._pending.append(action)
        self._queued_this_cycle += 1
        self.metrics.increment("queued")
        logger.debug(
            f"Queued re-entrant dispatch of {kind}",
            extra={"store": self.name, "seq": self._seq, "action": kind},
        )

    def _apply(self, action: Any) -> None:
        """Reduce, replace, notify (internal, with lock held)."""
        kind = action_kind(action)

        with self.metrics.time_operation("dispatch") as timer:
            try:
                new_state = self._reducer(self._state, action)
            except Exception as e:
                self.metrics.record_error("transition", type(e).__name__)
                logger.error(
                    f"Reducer failed for {kind}: {e}",
                    extra={"store": self.name, "seq": self._seq, "action": kind},
                )
                raise

            self._state = new_state
            self._seq += 1
            self._action_log.append(DispatchRecord(seq=self._seq, action=action))
            self._notify(kind)

        self.metrics.increment("dispatches")
        logger.debug(
            f"Applied {kind}",
            extra={
                "store": self.name,
                "seq": self._seq,
                "action": kind,
                "latency_ms": timer.elapsed_ms,
            },
        )

    def _notify(self, kind: str) -> None:
        """Call every subscriber registered before this loop started."""
        for sub in list(self._subscriptions):
            if not sub.active:
                continue
            try:
                sub.listener()
            except Exception as e:
                self.metrics.record_error("subscriber", type(e).__name__)
                logger.exception(
                    f"Subscriber {_listener_name(sub.listener)} failed after {kind}: {e}",
                    extra={"store": self.name, "seq": self._seq, "action": kind},
                )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback to run after every dispatch.

        Args:
            listener: Zero-argument callable. Registering the same callable
                twice makes it run twice per dispatch.

        Returns:
            Unsubscribe function. Removes this registration only; calling
            it again does nothing.

        Raises:
            InvalidListenerError: If listener is not callable
        """
        if not callable(listener):
            raise InvalidListenerError(
                f"Listener must be callable, got {type(listener).__name__}"
            )

        sub = _Subscription(listener)
        with self._lock:
            self._subscriptions.append(sub)

        def unsubscribe() -> None:
            with self._lock:
                if not sub.active:
                    return
                sub.active = False
                self._subscriptions.remove(sub)

        return unsubscribe

    def listener_count(self) -> int:
        """Number of active registrations."""
        with self._lock:
            return len(self._subscriptions)

    def get_action_log(self, n: Optional[int] = None) -> List[DispatchRecord]:
        """Get the most recent applied actions, oldest first."""
        with self._lock:
            records = list(self._action_log)
        if n is not None:
            records = records[-n:] if n > 0 else []
        return records

    def __repr__(self) -> str:
        return (
            f"<Store name={self.name!r} seq={self._seq} "
            f"listeners={len(self._subscriptions)}>"
        )


def create_store(
    reducer: Reducer,
    initial_state: Any = None,
    config: Optional[StoreConfig] = None,
) -> Store:
    """
    Create a store and bootstrap its state.

    The reducer is called once with ``(initial_state, INIT)`` before this
    returns, so get_state() is valid immediately.

    Raises:
        ConstructionError: If reducer is missing or not callable
    """
    return Store(reducer, initial_state=initial_state, config=config)
