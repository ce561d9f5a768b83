"""Shared plumbing for HTTP adapters that call the project's APIs with a bearer token."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Unpack

import httpx

from wellsync.adapters.http_resilience import ResilientClient, redact_url
from wellsync.domain.ports.errors import GatewayError

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType
    from typing import Self

    from httpx._types import URLTypes

    from wellsync.adapters.http_resilience import RequestOptions
    from wellsync.config.http_resilience import ResilienceConfig
    from wellsync.domain.ports.tokens import TokenProvider

log = getLogger(__name__)

PROJECT_ID_HEADER = "x-zapehr-project-id"


class AuthorizedGateway:
    """Owns one ``ResilientClient`` for the duration of an ``async with`` block.

    Subclasses set ``error_type``; transport failures and non-2xx responses are
    raised as that error with the response status attached.
    """

    error_type: type[GatewayError] = GatewayError

    def __init__(
        self,
        *,
        resilience: ResilienceConfig,
        tokens: TokenProvider,
        project_id: str,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._resilience = resilience
        self._tokens = tokens
        self._project_id = project_id
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> Self:
        self._client = self._client_factory(self._resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> ResilientClient:
        if self._client is None:
            msg = f"{type(self).__name__} must be used inside 'async with'"
            raise RuntimeError(msg)
        return self._client

    async def auth_headers(self) -> dict[str, str]:
        token = await self._tokens.get_token()
        return {"Authorization": f"Bearer {token}", PROJECT_ID_HEADER: self._project_id}

    async def call(
        self,
        method: str,
        url: URLTypes,
        *,
        authorized: bool = True,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        if authorized:
            kwargs["headers"] = await self.auth_headers()
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            msg = f"{method} {redact_url(url)} failed: {exc}"
            raise self.error_type(msg) from exc

        if response.is_error:
            log.warning("%s %s returned %s", method, redact_url(url), response.status_code)
            msg = f"{method} {redact_url(url)} returned {response.status_code}"
            raise self.error_type(msg, status_code=response.status_code)
        return response
