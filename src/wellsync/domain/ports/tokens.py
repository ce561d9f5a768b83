"""Port for access-token provisioning."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenProvider(Protocol):
    """Supplies a bearer token, refreshing it when it expires."""

    async def get_token(self) -> str: ...
