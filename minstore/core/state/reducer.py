"""
Pure reducer helpers.

A reducer is any callable ``(state, action) -> new_state``. This module
provides the fold used to check and replay dispatch histories, a builder
for dispatch-table reducers, and the counter reducer used by the CLI.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Optional

from .actions import Action, action_kind


Reducer = Callable[[Any, Any], Any]
Handler = Callable[[Any, Any], Any]


def reduce_actions(reducer: Reducer, state: Any, actions: Iterable[Any]) -> Any:
    """Apply a sequence of actions to get final state."""
    for action in actions:
        state = reducer(state, action)
    return state


def handler_reducer(
    handlers: Dict[str, Handler],
    initial_state: Any = None,
) -> Reducer:
    """
    Build a reducer from a {kind: handler} dispatch table.

    Args:
        handlers: Maps an action kind to ``handler(state, action)``
        initial_state: Used whenever the reducer is called with ``None``
            state. ``None`` always means "not initialised yet", so a handler
            that returns ``None`` gets initial_state back on the next action.

    Returns:
        A reducer. Kinds with no handler (including the bootstrap
        action) return the state unchanged.
    """
    table = dict(handlers)

    def reducer(state: Any, action: Any) -> Any:
        if state is None:
            state = initial_state
        handler = table.get(action_kind(action))
        if handler is None:
            return state
        return handler(state, action)

    return reducer


def _payload(action: Any, key: str, default: Any = None) -> Any:
    if isinstance(action, Action):
        return action.get(key, default)
    if isinstance(action, dict):
        return action.get(key, default)
    return getattr(action, key, default)


def _handle_add(state: int, action: Any) -> int:
    amount = _payload(action, "amount", 0)
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError(f"ADD amount must be an int, got {amount!r}")
    return state + amount


# O(1) dispatch table
_COUNTER_HANDLERS: Dict[str, Handler] = {
    "INC": lambda state, action: state + 1,
    "DEC": lambda state, action: state - 1,
    "ADD": _handle_add,
    "RESET": lambda state, action: 0,
}

counter_reducer: Reducer = handler_reducer(_COUNTER_HANDLERS, initial_state=0)
counter_reducer.__doc__ = "Integer counter: INC, DEC, ADD (payload amount), RESET."


def counter_action(kind: str, amount: Optional[int] = None) -> Action:
    """Create a counter action. ``amount`` is only used by ADD."""
    payload = {} if amount is None else {"amount": amount}
    return Action(kind=kind.upper(), payload=payload)
