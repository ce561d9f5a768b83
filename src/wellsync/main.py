#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from wellsync.app import handle_import
from wellsync.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import one wellness submission")
    parser.add_argument(
        "payload",
        type=Path,
        help="Path to a JSON file holding the submission body ('-' reads stdin)",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        help="Load settings from this .env file instead of the default lookup",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log at DEBUG level",
    )
    return parser.parse_args(list(argv))


def _read_payload(path: Path) -> str:
    if str(path) == "-":
        return sys.stdin.read()
    return path.read_text(encoding="utf-8")


def main(argv: Sequence[str] | None = None) -> int:
    """Run one import and print the handler response body."""
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(level=logging.DEBUG if args.verbose else logging.INFO)
    load_dotenv(args.env_file)

    try:
        body = _read_payload(args.payload)
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    response = handle_import(body, secrets=None)
    print(response.body)
    return 0 if response.status_code < 400 else 1


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    signal(SIGINT, sigint_handler)
    sys.exit(main())


if __name__ == "__main__":
    run()
