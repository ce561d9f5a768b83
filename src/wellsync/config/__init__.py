"""Application configuration helpers."""

from __future__ import annotations

from .env import lookup_setting, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .project import (
    LOCAL_ENVIRONMENT,
    AuthConfig,
    ProjectConfig,
    get_environment,
    get_project_config,
)

__all__ = [
    "LOCAL_ENVIRONMENT",
    "AuthConfig",
    "ConfigurationError",
    "MissingConfigurationError",
    "ProjectConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "configure_logging",
    "get_environment",
    "get_project_config",
    "lookup_setting",
    "require_env_vars",
]
