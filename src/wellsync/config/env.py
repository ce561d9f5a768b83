"""Environment and invocation-secret loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


def lookup_setting(name: str, secrets: Mapping[str, str] | None = None) -> str | None:
    """Return ``name`` from the invocation secrets, falling back to the environment."""

    value = secrets.get(name) if secrets else None
    if value is None or not str(value).strip():
        value = os.getenv(name)
    if value is None or not str(value).strip():
        return None
    return str(value)


def require_env_vars(
    names: Sequence[str],
    secrets: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Return the given settings or raise if any are missing/blank.

    Invocation secrets take precedence over the process environment so that a
    platform-supplied secret bag can be used unchanged in production while local
    runs rely on ``.env`` files.
    """

    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = lookup_setting(name, secrets)
        if value is None:
            missing.append(name)
            continue
        values[name] = value

    if missing:
        raise MissingConfigurationError(missing)

    return values
