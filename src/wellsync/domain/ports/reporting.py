"""Port for the external error tracker."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ErrorReporter(Protocol):
    def report(self, error: BaseException, *, handler: str, environment: str) -> None: ...
