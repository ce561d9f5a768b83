from __future__ import annotations

import pytest

from wellsync.config import (
    LOCAL_ENVIRONMENT,
    MissingConfigurationError,
    get_environment,
    get_project_config,
)


def test_project_config_from_secrets(secrets: dict[str, str]) -> None:
    config = get_project_config(secrets)

    assert config.project_id == "proj-1"
    assert config.application_id == "app-1"
    assert config.auth.client_id == "client-id"
    assert config.auth.audience == "https://api.example.com"
    assert config.environment == "production"
    assert config.is_local is False
    assert config.sentry_dsn is None


def test_resilience_uses_trimmed_base_urls(secrets: dict[str, str]) -> None:
    config = get_project_config({**secrets, "FHIR_API": "https://fhir.example.com/r4/"})

    assert config.fhir_resilience().base_url == "https://fhir.example.com/r4"
    assert config.project_resilience().base_url == "https://project.example.com/v1"
    assert config.auth_resilience().base_url is None


def test_retry_policy_never_replays_creates(secrets: dict[str, str]) -> None:
    retry = get_project_config(secrets).fhir_resilience().retry

    assert "POST" not in retry.allowed_methods
    assert {"GET", "PUT"} <= retry.allowed_methods


def test_environment_defaults_to_local() -> None:
    assert get_environment({}) == LOCAL_ENVIRONMENT


def test_environment_read_from_process(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "staging")

    assert get_environment(None) == "staging"


def test_missing_credentials_raise(secrets: dict[str, str]) -> None:
    partial = {key: value for key, value in secrets.items() if not key.startswith("AUTH0")}

    with pytest.raises(MissingConfigurationError) as excinfo:
        get_project_config(partial)

    assert "AUTH0_SECRET" in str(excinfo.value)
    assert "AUTH0_CLIENT_UUID" in str(excinfo.value)
