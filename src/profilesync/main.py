#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
import threading
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from profilesync.adapters.metrics import LoggingMetrics
from profilesync.adapters.wire import InvalidRequestError
from profilesync.app import apply_profile_updates, create_storage, fetch_profile
from profilesync.config import configure_logging
from profilesync.domain.model import DestinyVersion, ProfileKey

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

_cancel_requested = threading.Event()


class CliInputError(ValueError):
    """Raised for user input the CLI cannot act on (exit code 2)."""


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Apply and inspect profile sync data")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create the database tables")

    apply = subparsers.add_parser("apply", help="Apply a profile update request")
    apply.add_argument(
        "request",
        type=str,
        help="Path to a JSON profile update request, or '-' to read stdin",
    )
    apply.add_argument(
        "--platform-membership-id",
        type=str,
        help="Profile to update (overrides platformMembershipId in the request)",
    )
    apply.add_argument(
        "--destiny-version",
        type=int,
        choices=[version.value for version in DestinyVersion],
        help="Destiny version (overrides destinyVersion in the request)",
    )

    show = subparsers.add_parser("show", help="Print everything stored for a profile")
    show.add_argument("--platform-membership-id", type=str, required=True)
    show.add_argument(
        "--destiny-version",
        type=int,
        choices=[version.value for version in DestinyVersion],
        default=DestinyVersion.D2.value,
    )

    return parser.parse_args(list(argv))


def _read_request(source: str) -> object:
    try:
        text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    except OSError as exc:
        raise CliInputError(f"Could not read request {source}: {exc}") from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise CliInputError(f"Request {source} is not valid JSON: {exc}") from exc


def _print_json(body: dict[str, Any]) -> None:
    print(json.dumps(body, indent=2, sort_keys=True))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    request_payload: object = None
    try:
        if parsed_args.command == "apply":
            request_payload = _read_request(parsed_args.request)
    except CliInputError:
        log.exception("CLI validation error")
        sys.exit(2)

    metrics = LoggingMetrics()
    try:
        storage = create_storage(metrics=metrics)
    except Exception:
        log.exception("Could not start storage")
        sys.exit(1)

    try:
        if parsed_args.command == "init-db":
            log.info("Database ready")
        elif parsed_args.command == "apply":
            destiny_version = (
                DestinyVersion(parsed_args.destiny_version)
                if parsed_args.destiny_version is not None
                else None
            )
            _print_json(
                apply_profile_updates(
                    storage,
                    request_payload,
                    platform_membership_id=parsed_args.platform_membership_id,
                    destiny_version=destiny_version,
                    metrics=metrics,
                    cancelled=_cancel_requested.is_set,
                )
            )
        elif parsed_args.command == "show":
            key = ProfileKey(
                platform_membership_id=parsed_args.platform_membership_id,
                destiny_version=DestinyVersion(parsed_args.destiny_version),
            )
            _print_json(fetch_profile(storage, key))
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except InvalidRequestError:
        log.exception("Invalid profile update request")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)
    finally:
        storage.shutdown()


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C): stop before the next update, a second one exits."""
    if _cancel_requested.is_set():
        log.info("Closed by user (Ctrl+C)")
        sys.exit(0)
    log.info("Cancellation requested; remaining updates will be skipped")
    _cancel_requested.set()


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
