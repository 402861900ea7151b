from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from .config import StoreConfig
from .core.state.reducer import counter_action, counter_reducer
from .core.state.store import create_store
from .errors import ConfigError
from .logging_config import configure_logging, get_logger

logger = get_logger(__name__)


def parse_action(token: str):
    """Turn "INC" or "ADD=5" into a counter action."""
    kind, sep, value = token.partition("=")
    if not sep:
        return counter_action(kind)
    try:
        amount = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{kind} needs an integer amount, got {value!r}")
    return counter_action(kind, amount)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="minstore",
        description="Run a counter store: dispatch actions and print each new state",
    )
    ap.add_argument(
        "actions", nargs="*", type=parse_action,
        help="Action kinds to dispatch in order: INC, DEC, RESET, ADD=<n>",
    )
    ap.add_argument("--config", help="Store config file (JSON or YAML)")
    ap.add_argument(
        "--log-level", type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level",
    )
    ap.add_argument("--json-logs", metavar="DIR", help="Also write rotating logs to DIR")
    ap.add_argument("--metrics", action="store_true", help="Print metrics summary as JSON")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    try:
        args = ap.parse_args(argv)
    except SystemExit as e:
        return int(e.code or 0)

    try:
        config = StoreConfig.load(args.config) if args.config else None
        if args.config and config is None:
            print(f"Config file not found: {args.config}", file=sys.stderr)
            return 2
        config = config or StoreConfig.from_env()
    except ConfigError as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        return 2

    configure_logging(level=args.log_level or config.log_level, log_dir=args.json_logs)

    store = create_store(counter_reducer, config=config)
    logger.info(f"Dispatching {len(args.actions)} actions to '{store.name}'")
    print(f"[{store.name}] initial state: {store.get_state()}")
    store.subscribe(lambda: print(f"[{store.name}] state: {store.get_state()}"))

    for action in args.actions:
        store.dispatch(action)

    print(f"[{store.name}] final state: {store.get_state()} after {store.seq} actions")

    if args.metrics:
        print(json.dumps(store.metrics.summary(), indent=2))

    return 0


if __name__ == "__main__":
    sys.exit(main())
