"""Error reporters: a logging fallback and a Sentry-backed tracker."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import sentry_sdk

if TYPE_CHECKING:
    from wellsync.domain.ports.reporting import ErrorReporter

log = getLogger(__name__)


class LoggingErrorReporter:
    """Reports failures to the log only; used when no tracker DSN is configured."""

    def report(self, error: BaseException, *, handler: str, environment: str) -> None:
        log.error("Unhandled error in %s (%s)", handler, environment, exc_info=error)


class SentryErrorReporter:
    def __init__(self, dsn: str, *, environment: str) -> None:
        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            traces_sample_rate=0.0,
            # submissions carry patient data
            send_default_pii=False,
        )

    def report(self, error: BaseException, *, handler: str, environment: str) -> None:
        log.error("Unhandled error in %s (%s): %s", handler, environment, error)
        with sentry_sdk.new_scope() as scope:
            scope.set_tag("handler", handler)
            scope.set_tag("environment", environment)
            sentry_sdk.capture_exception(error)
        sentry_sdk.flush(timeout=2.0)


def build_error_reporter(dsn: str | None, *, environment: str) -> ErrorReporter:
    if not dsn:
        return LoggingErrorReporter()
    return SentryErrorReporter(dsn, environment=environment)


if TYPE_CHECKING:
    _logging_check: ErrorReporter = LoggingErrorReporter()
