"""
Action types for the store.

The store treats actions as opaque: anything can be dispatched, and only
the reducer looks inside. ``Action`` is the recommended shape, a kind tag
plus a payload, and is what the bundled reducers and the CLI use.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict


@dataclass(frozen=True)
class Action:
    """
    Immutable descriptor of an intended state change.

    Attributes:
        kind: Tag the reducer switches on (e.g. "INC")
        payload: Kind-specific data
    """
    kind: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Read a payload field."""
        return self.payload.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for logging."""
        return {"kind": self.kind, "payload": dict(self.payload)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Action":
        """Deserialize from dictionary. Accepts "type" as an alias for "kind"."""
        kind = data.get("kind", data.get("type"))
        if kind is None:
            raise ValueError("Action dict needs a 'kind' or 'type' key")
        return cls(kind=str(kind), payload=dict(data.get("payload", {})))


# Sentinel dispatched once by create_store() to obtain the initial state.
INIT = Action(kind="@@minstore/INIT")


@dataclass(frozen=True)
class DispatchRecord:
    """
    Entry in a store's action log.

    Attributes:
        seq: Position in the dispatch history (0 is the bootstrap action)
        action: The action as it was dispatched
        timestamp: When the action was applied (ISO format)
    """
    seq: int
    action: Any
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def kind(self) -> str:
        return action_kind(self.action)


def action_kind(action: Any) -> str:
    """
    Best-effort kind tag of an arbitrary action, for logs and metrics.

    Checks, in order: ``Action.kind``, a mapping's "type" or "kind" key,
    an object's ``type`` or ``kind`` attribute, then falls back to the
    class name.
    """
    if isinstance(action, Action):
        return action.kind
    if isinstance(action, Mapping):
        for key in ("type", "kind"):
            if key in action:
                return str(action[key])
    else:
        for attr in ("type", "kind"):
            value = getattr(action, attr, None)
            if isinstance(value, str):
                return value
    return type(action).__name__
