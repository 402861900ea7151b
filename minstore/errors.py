"""
Exceptions raised by the store.

Errors raised by a reducer are never wrapped: they propagate from
``dispatch`` exactly as the reducer raised them.
"""
from __future__ import annotations


class StoreError(Exception):
    """Base class for errors raised by the store itself."""
    pass


class ConstructionError(StoreError, TypeError):
    """Raised when a store is created without a callable reducer."""
    pass


class InvalidListenerError(StoreError, TypeError):
    """Raised when subscribe() is given something that cannot be called."""
    pass


class ReentrantDispatchError(StoreError):
    """Raised when too many dispatches are queued from inside notifications."""
    
    def __init__(self, limit: int):
        super().__init__(
            f"More than {limit} dispatches queued from notifications of one dispatch; "
            f"a subscriber is probably dispatching on every change"
        )
        self.limit = limit


class ConfigError(StoreError, ValueError):
    """Raised for invalid or unreadable store configuration."""
    pass
