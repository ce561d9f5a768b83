"""Logging setup for local runs of the import handler."""

from __future__ import annotations

import logging

# client libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Configure the root logger for CLI runs.

    The hosting runtime installs its own handlers, so the function entry point
    never calls this. HTTP client chatter is held at WARNING unless ``level`` asks
    for DEBUG output.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    client_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(client_level)
