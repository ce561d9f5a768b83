"""Pydantic models for the project object-storage API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Z3Model(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SignedUrlRequest(Z3Model):
    action: Literal["download", "upload"]


class SignedUrlResponse(Z3Model):
    signed_url: str = Field(alias="signedUrl")


class ObjectSummary(Z3Model):
    key: str
    size: int | None = None
    last_modified: str | None = Field(default=None, alias="lastModified")
