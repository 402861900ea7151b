"""
minstore: a minimal observable state container.

    >>> from minstore import Action, create_store, counter_reducer
    >>> store = create_store(counter_reducer)
    >>> _ = store.subscribe(lambda: print(store.get_state()))
    >>> store.dispatch(Action("INC"))
    1
"""
from .config import StoreConfig
from .core.state import (
    Action,
    DispatchRecord,
    INIT,
    Store,
    action_kind,
    counter_reducer,
    create_store,
    handler_reducer,
    reduce_actions,
)
from .errors import (
    ConfigError,
    ConstructionError,
    InvalidListenerError,
    ReentrantDispatchError,
    StoreError,
)
from .metrics import StoreMetrics

__version__ = "0.1.0"

__all__ = [
    "Action",
    "DispatchRecord",
    "INIT",
    "Store",
    "StoreConfig",
    "StoreMetrics",
    "action_kind",
    "counter_reducer",
    "create_store",
    "handler_reducer",
    "reduce_actions",
    "ConfigError",
    "ConstructionError",
    "InvalidListenerError",
    "ReentrantDispatchError",
    "StoreError",
]
