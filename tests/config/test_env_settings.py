from __future__ import annotations

import pytest

from wellsync.config import MissingConfigurationError, lookup_setting, require_env_vars


def test_lookup_prefers_invocation_secrets(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROJECT_ID", "from-env")

    assert lookup_setting("PROJECT_ID", {"PROJECT_ID": "from-secrets"}) == "from-secrets"


def test_lookup_falls_back_to_environment_for_blank_secret(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("PROJECT_ID", "from-env")

    assert lookup_setting("PROJECT_ID", {"PROJECT_ID": "   "}) == "from-env"


def test_lookup_treats_blank_environment_as_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROJECT_ID", "")

    assert lookup_setting("PROJECT_ID") is None


def test_require_env_vars_reports_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FHIR_API", "https://fhir.example.com")

    with pytest.raises(MissingConfigurationError) as excinfo:
        require_env_vars(["PROJECT_ID", "FHIR_API", "PROJECT_API"])

    assert excinfo.value.names == ("PROJECT_API", "PROJECT_ID")
    assert str(excinfo.value) == "Missing configuration for: PROJECT_API, PROJECT_ID"


def test_require_env_vars_returns_values() -> None:
    values = require_env_vars(["A_SETTING"], {"A_SETTING": "value"})

    assert values == {"A_SETTING": "value"}
