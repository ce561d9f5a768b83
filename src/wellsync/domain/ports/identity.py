"""Port for the identity/invitation service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from wellsync.domain.model import Account, Invitation, Role


@dataclass(frozen=True, slots=True, kw_only=True)
class InviteRequest:
    """Parameters for inviting a new portal account bound to a fresh patient profile."""

    username: str
    email: str | None
    phone_number: str
    role_id: str
    application_id: str


@runtime_checkable
class IdentityService(Protocol):
    async def list_accounts(self) -> Sequence[Account]: ...

    async def get_account(self, account_id: str) -> Account | None: ...

    async def find_role(self, name: str) -> Role:
        """Return the role called ``name`` or raise ``IdentityServiceError``."""
        ...

    async def invite(self, request: InviteRequest) -> Invitation: ...
