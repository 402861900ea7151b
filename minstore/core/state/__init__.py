# Observable state store: actions, reducers, and the store itself
from .actions import Action, DispatchRecord, INIT, action_kind
from .reducer import Reducer, counter_reducer, handler_reducer, reduce_actions
from .store import Store, create_store

__all__ = [
    "Action",
    "DispatchRecord",
    "INIT",
    "action_kind",
    "Reducer",
    "counter_reducer",
    "handler_reducer",
    "reduce_actions",
    "Store",
    "create_store",
]
