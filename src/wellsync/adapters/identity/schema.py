"""Pydantic models for the project identity API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class IdentityModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class UserPayload(IdentityModel):
    id: str
    name: str = ""
    profile: str | None = None
    email: str | None = None
    phone_number: str | None = Field(default=None, alias="phoneNumber")


class RolePayload(IdentityModel):
    id: str
    name: str


class InviteResource(IdentityModel):
    resource_type: str = Field(default="Patient", alias="resourceType")


class InviteBody(IdentityModel):
    resource: InviteResource = Field(default_factory=InviteResource)
    username: str
    email: str | None = None
    phone_number: str = Field(alias="phoneNumber")
    roles: list[str]
    application_id: str = Field(alias="applicationId")


class InviteResponse(IdentityModel):
    id: str
    profile: str
    invitation_url: str | None = Field(default=None, alias="invitationUrl")
