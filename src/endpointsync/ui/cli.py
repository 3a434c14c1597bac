from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from signal import SIGINT, SIGTERM, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from endpointsync.app import reconcile_endpoint, run_controller
from endpointsync.common.logging import LOG_LEVEL_NAMES
from endpointsync.config import ConfigurationError, configure_logging, get_controller_config

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value}") from None
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value}")
    return parsed


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Keep Keystone endpoints in sync with KeystoneEndpoint resources"
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVEL_NAMES,
        default="INFO",
        help="Logging verbosity (default: %(default)s)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    reconcile = subparsers.add_parser("reconcile", help="Run one reconcile pass for an endpoint")
    reconcile.add_argument(
        "--namespace",
        type=str,
        required=True,
        help="Namespace of the KeystoneEndpoint",
    )
    reconcile.add_argument("name", type=str, help="Name of the KeystoneEndpoint")

    run = subparsers.add_parser("run", help="Run the controller until interrupted")
    run.add_argument(
        "--namespace",
        type=str,
        help="Namespace to watch (defaults to ENDPOINTSYNC_NAMESPACE, else all namespaces)",
    )
    run.add_argument(
        "--workers",
        type=_positive_int,
        help="Number of worker threads (defaults to config)",
    )

    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=parsed_args.log_level)

    try:
        config = get_controller_config()
        if parsed_args.command == "run":
            if parsed_args.namespace:
                config = replace(config, namespace=parsed_args.namespace)
            if parsed_args.workers is not None:
                config = replace(config, workers=parsed_args.workers)
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)

    try:
        if parsed_args.command == "reconcile":
            result = reconcile_endpoint(parsed_args.namespace, parsed_args.name, config=config)
            print(  # noqa: T201
                f"{parsed_args.namespace}/{parsed_args.name}: phase={result.phase}"
                + (f" requeue_after={result.requeue_after:g}s" if result.requeue else "")
            )
        elif parsed_args.command == "run":
            run_controller(config=config)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    signal(SIGTERM, sigint_handler)
    main()


if __name__ == "__main__":
    run()
