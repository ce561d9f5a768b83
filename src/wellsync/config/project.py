"""Deployment configuration for the wellness import function."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .env import lookup_setting, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

if TYPE_CHECKING:
    from collections.abc import Mapping

LOCAL_ENVIRONMENT = "local"
DEFAULT_TIMEOUT_SECONDS = 20.0

_REQUIRED_SETTINGS = (
    "PROJECT_API",
    "FHIR_API",
    "PROJECT_ID",
    "AUTH0_CLIENT_UUID",
    "AUTH0_ENDPOINT",
    "AUTH0_CLIENT",
    "AUTH0_SECRET",
    "AUTH0_AUDIENCE",
)


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """Client-credentials grant parameters for the machine-to-machine token."""

    endpoint: str
    client_id: str
    client_secret: str
    audience: str


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    """Holds project API locations and credentials for one deployment."""

    project_api: str
    fhir_api: str
    project_id: str
    application_id: str
    auth: AuthConfig
    environment: str = LOCAL_ENVIRONMENT
    sentry_dsn: str | None = None

    @property
    def is_local(self) -> bool:
        return self.environment == LOCAL_ENVIRONMENT

    def fhir_resilience(self) -> ResilienceConfig:
        return ResilienceConfig(
            name="fhir",
            base_url=self.fhir_api.rstrip("/"),
            timeout_seconds=DEFAULT_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=20, per_seconds=1.0),
        )

    def project_resilience(self) -> ResilienceConfig:
        return ResilienceConfig(
            name="project",
            base_url=self.project_api.rstrip("/"),
            timeout_seconds=DEFAULT_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=20, per_seconds=1.0),
        )

    def auth_resilience(self) -> ResilienceConfig:
        return ResilienceConfig(name="auth", timeout_seconds=DEFAULT_TIMEOUT_SECONDS)


def get_environment(secrets: Mapping[str, str] | None = None) -> str:
    return lookup_setting("ENVIRONMENT", secrets) or LOCAL_ENVIRONMENT


def get_project_config(secrets: Mapping[str, str] | None = None) -> ProjectConfig:
    values = require_env_vars(_REQUIRED_SETTINGS, secrets)
    return ProjectConfig(
        project_api=values["PROJECT_API"],
        fhir_api=values["FHIR_API"],
        project_id=values["PROJECT_ID"],
        application_id=values["AUTH0_CLIENT_UUID"],
        auth=AuthConfig(
            endpoint=values["AUTH0_ENDPOINT"],
            client_id=values["AUTH0_CLIENT"],
            client_secret=values["AUTH0_SECRET"],
            audience=values["AUTH0_AUDIENCE"],
        ),
        environment=get_environment(secrets),
        sentry_dsn=lookup_setting("SENTRY_DSN", secrets),
    )
