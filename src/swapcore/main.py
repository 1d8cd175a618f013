#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from swapcore.app import build_swap_core
from swapcore.common.logging import configure_logging
from swapcore.config.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from swapcore.app import SwapCore


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Swap targeting and proposal maintenance")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log at DEBUG level",
    )
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser(
        "sweep-auctions",
        help="Close every auction whose window has passed",
    )
    audit = commands.add_parser(
        "audit",
        help="Check targeting and proposal invariants",
    )
    audit.add_argument(
        "--repair",
        action="store_true",
        help="Fix duplicate edges, cycles and stale pending proposals before reporting",
    )
    return parser.parse_args(list(argv))


def _sweep(core: SwapCore) -> int:
    closures = core.close_expired_auctions()
    for closure in closures:
        winner = closure.winner_id or "-"
        print(f"{closure.swap_id} {closure.status} winner={winner}")
    print(f"Closed {len(closures)} auction(s)")
    return 0


def _audit(core: SwapCore, *, repair: bool) -> int:
    report = core.audit(repair=repair)
    if repair:
        print(f"Repaired {report.repaired} issue(s)")
    for issue in report.issues:
        print(f"{issue.kind} {issue.subject_id}: {issue.detail}")
    if report.ok:
        print("No consistency issues found")
        return 0
    return 1


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    parsed_args = _parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        core = build_swap_core()
        if parsed_args.command == "sweep-auctions":
            code = _sweep(core)
        else:
            code = _audit(core, repair=parsed_args.repair)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:  # noqa: BLE001
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()
