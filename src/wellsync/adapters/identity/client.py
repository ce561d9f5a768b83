"""Project identity API implementation of the identity service port."""

from __future__ import annotations

from http import HTTPStatus
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from wellsync.adapters.gateway import AuthorizedGateway
from wellsync.domain.model import Account, Invitation, Role
from wellsync.domain.ports.errors import IdentityServiceError

from .schema import InviteBody, InviteResponse, RolePayload, UserPayload

if TYPE_CHECKING:
    from collections.abc import Sequence

    import httpx

    from wellsync.domain.ports.identity import IdentityService, InviteRequest

log = getLogger(__name__)

_USERS = TypeAdapter(list[UserPayload])
_ROLES = TypeAdapter(list[RolePayload])


def _account(user: UserPayload) -> Account:
    return Account(id=user.id, name=user.name, profile=user.profile)


class ProjectIdentityService(AuthorizedGateway):
    error_type = IdentityServiceError

    async def list_accounts(self) -> Sequence[Account]:
        response = await self.call("GET", "/user")
        users = self._parse(response, _USERS, "user list")
        log.debug("Listed %d accounts", len(users))
        return [_account(user) for user in users]

    async def get_account(self, account_id: str) -> Account | None:
        try:
            response = await self.call("GET", f"/user/{account_id}")
        except IdentityServiceError as exc:
            if exc.status_code == HTTPStatus.NOT_FOUND:
                return None
            raise
        return _account(self._parse(response, TypeAdapter(UserPayload), "user"))

    async def find_role(self, name: str) -> Role:
        response = await self.call("GET", "/iam/role")
        roles = self._parse(response, _ROLES, "role list")
        for role in roles:
            if role.name == name:
                return Role(role.id, role.name)
        msg = f"Role {name!r} not found"
        raise IdentityServiceError(msg)

    async def invite(self, request: InviteRequest) -> Invitation:
        body = InviteBody(
            username=request.username,
            email=request.email,
            phone_number=request.phone_number,
            roles=[request.role_id],
            application_id=request.application_id,
        )
        response = await self.call(
            "POST", "/user/invite", json=body.model_dump(by_alias=True)
        )
        invited = self._parse(response, TypeAdapter(InviteResponse), "invite")
        log.info("Invited account %s with profile %s", invited.id, invited.profile)
        return Invitation(
            account_id=invited.id,
            profile=invited.profile,
            invitation_url=invited.invitation_url,
        )

    def _parse[T](self, response: httpx.Response, adapter: TypeAdapter[T], label: str) -> T:
        try:
            return adapter.validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            msg = f"Unexpected {label} response from identity service"
            raise IdentityServiceError(msg) from exc


if TYPE_CHECKING:
    _service_check: IdentityService = ProjectIdentityService.__new__(ProjectIdentityService)
