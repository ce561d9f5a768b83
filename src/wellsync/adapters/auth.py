"""Machine-to-machine access tokens via the OAuth client-credentials grant."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from wellsync.adapters.http_resilience import ResilientClient
from wellsync.domain.ports.errors import TokenError

if TYPE_CHECKING:
    from collections.abc import Callable

    from wellsync.config.http_resilience import ResilienceConfig
    from wellsync.config.project import AuthConfig

log = getLogger(__name__)

DEFAULT_EXPIRES_IN_SECONDS = 3600
DEFAULT_LEEWAY_SECONDS = 60.0


class TokenResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str
    expires_in: int | None = None
    token_type: str | None = None


@dataclass(slots=True)
class ClientCredentialsTokenProvider:
    """Fetches a token once and reuses it until shortly before it expires."""

    auth: AuthConfig
    resilience: ResilienceConfig
    client_factory: Callable[[ResilienceConfig], ResilientClient] = ResilientClient
    clock: Callable[[], float] = time.monotonic
    leeway_seconds: float = DEFAULT_LEEWAY_SECONDS
    _token: str | None = field(default=None, init=False, repr=False)
    _expires_at: float = field(default=0.0, init=False, repr=False)

    async def get_token(self) -> str:
        if self._token is not None and self.clock() < self._expires_at:
            return self._token

        log.info("Requesting access token from %s", self.auth.endpoint)
        payload = {
            "grant_type": "client_credentials",
            "client_id": self.auth.client_id,
            "client_secret": self.auth.client_secret,
            "audience": self.auth.audience,
        }
        try:
            async with self.client_factory(self.resilience) as client:
                response = await client.post(self.auth.endpoint, json=payload)
        except httpx.HTTPError as exc:
            raise TokenError(f"Token request failed: {exc}") from exc

        if response.is_error:
            msg = f"Token endpoint returned {response.status_code}"
            raise TokenError(msg, status_code=response.status_code)

        try:
            token = TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise TokenError("Token endpoint returned an unexpected payload") from exc

        expires_in = token.expires_in or DEFAULT_EXPIRES_IN_SECONDS
        self._token = token.access_token
        self._expires_at = self.clock() + max(expires_in - self.leeway_seconds, 0.0)
        return self._token


@dataclass(frozen=True, slots=True)
class StaticTokenProvider:
    token: str

    async def get_token(self) -> str:
        return self.token
