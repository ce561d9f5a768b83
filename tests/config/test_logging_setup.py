from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from wellsync.config import configure_logging
from wellsync.config.logging import NOISY_LOGGERS

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    levels = {name: logging.getLogger(name).level for name in ("", *NOISY_LOGGERS)}
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


def test_configure_logging_quiets_http_clients() -> None:
    configure_logging(level=logging.INFO, force=True)

    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING


def test_debug_level_includes_http_clients() -> None:
    configure_logging(level=logging.DEBUG, force=True)

    assert logging.getLogger("httpx").level == logging.DEBUG
