from __future__ import annotations

import logging

import pytest
import sentry_sdk

from wellsync.adapters.reporting import (
    LoggingErrorReporter,
    SentryErrorReporter,
    build_error_reporter,
)


def test_without_dsn_errors_are_logged(caplog: pytest.LogCaptureFixture) -> None:
    reporter = build_error_reporter(None, environment="local")

    with caplog.at_level(logging.ERROR, logger="wellsync.adapters.reporting"):
        reporter.report(ValueError("boom"), handler="import-wellness", environment="local")

    assert isinstance(reporter, LoggingErrorReporter)
    assert "import-wellness" in caplog.text
    assert "boom" in caplog.text


def test_sentry_reporter_tags_and_captures(monkeypatch: pytest.MonkeyPatch) -> None:
    init_kwargs: dict[str, object] = {}
    captured: list[BaseException] = []
    monkeypatch.setattr(sentry_sdk, "init", lambda **kwargs: init_kwargs.update(kwargs))
    monkeypatch.setattr(sentry_sdk, "capture_exception", captured.append)
    monkeypatch.setattr(sentry_sdk, "flush", lambda **_: None)

    reporter = build_error_reporter("https://key@sentry.example.com/1", environment="staging")
    error = RuntimeError("boom")
    reporter.report(error, handler="import-wellness", environment="staging")

    assert isinstance(reporter, SentryErrorReporter)
    assert init_kwargs["dsn"] == "https://key@sentry.example.com/1"
    assert init_kwargs["environment"] == "staging"
    assert init_kwargs["send_default_pii"] is False
    assert captured == [error]
