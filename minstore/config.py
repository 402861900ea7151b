"""
Store configuration.

Load store settings from JSON or YAML files, or from the environment,
without modifying code.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, asdict
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class StoreConfig:
    """
    Configuration for a store.

    Attributes:
        name: Label used in log lines
        history_size: Max applied actions kept in the action log (0 disables)
        max_queued_dispatches: Max re-entrant dispatches queued during one dispatch() call
        log_level: Level used by the CLI when configuring logging
    """
    name: str = "store"
    history_size: int = 1000
    max_queued_dispatches: int = 100
    log_level: str = "INFO"

    def validate(self) -> "StoreConfig":
        """Raise ConfigError on out-of-range values; returns self."""
        for name in ("history_size", "max_queued_dispatches"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
        if not isinstance(self.log_level, str):
            raise ConfigError(f"log_level must be a string, got {self.log_level!r}")
        if self.history_size < 0:
            raise ConfigError(f"history_size must be >= 0, got {self.history_size}")
        if self.max_queued_dispatches < 0:
            raise ConfigError(
                f"max_queued_dispatches must be >= 0, got {self.max_queued_dispatches}"
            )
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigError(f"Unknown log_level: {self.log_level}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StoreConfig":
        """Create from dictionary, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known).validate()

    @classmethod
    def from_env(cls, prefix: str = "MINSTORE_") -> "StoreConfig":
        """
        Build a config from environment variables.

        Reads ``{prefix}NAME``, ``{prefix}HISTORY_SIZE``,
        ``{prefix}MAX_QUEUED_DISPATCHES`` and ``{prefix}LOG_LEVEL``;
        anything unset keeps its default.
        """
        data: Dict[str, Any] = {}
        for name, f in cls.__dataclass_fields__.items():
            raw = os.environ.get(f"{prefix}{name.upper()}")
            if raw is None:
                continue
            if f.type in ("int", int):
                try:
                    data[name] = int(raw)
                except ValueError:
                    raise ConfigError(f"{prefix}{name.upper()} must be an integer, got {raw!r}")
            else:
                data[name] = raw
        return cls.from_dict(data)

    def save(self, path: str) -> None:
        """Save config to JSON file."""
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str) -> Optional["StoreConfig"]:
        """
        Load config from a JSON or YAML file.

        Returns:
            StoreConfig, or None if the file does not exist

        Raises:
            ConfigError: If the file cannot be parsed or holds bad values
        """
        if not os.path.exists(path):
            return None

        with open(path, "r", encoding="utf-8") as f:
            content = f.read()

        try:
            if path.endswith((".yaml", ".yml")):
                data = yaml.safe_load(content)
            else:
                data = json.loads(content)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigError(f"Failed to parse config {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} must contain a mapping")

        logger.debug(f"Loaded store config from {path}")
        return cls.from_dict(data)
