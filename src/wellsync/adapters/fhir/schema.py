"""Pydantic models for the FHIR resources the record store returns."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

ResourceBody = dict[str, Any]


class FhirModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Reference(FhirModel):
    reference: str | None = None


class Meta(FhirModel):
    last_updated: datetime | None = Field(default=None, alias="lastUpdated")


class Resource(FhirModel):
    resource_type: str = Field(alias="resourceType")
    id: str
    meta: Meta | None = None


class Identifier(FhirModel):
    system: str | None = None
    value: str | None = None


class ContactPointPayload(FhirModel):
    system: str | None = None
    value: str | None = None


class AppointmentParticipant(FhirModel):
    actor: Reference | None = None


class AppointmentPayload(Resource):
    identifier: list[Identifier] = Field(default_factory=list)
    participant: list[AppointmentParticipant] = Field(default_factory=list)


class EncounterPayload(Resource):
    subject: Reference | None = None
    appointment: list[Reference] = Field(default_factory=list)


class RelatedPersonPayload(Resource):
    patient: Reference | None = None


class PersonLink(FhirModel):
    target: Reference | None = None


class PersonPayload(Resource):
    telecom: list[ContactPointPayload] = Field(default_factory=list)
    link: list[PersonLink] = Field(default_factory=list)


class AttachmentPayload(FhirModel):
    content_type: str | None = Field(default=None, alias="contentType")
    data: str | None = None
    url: str | None = None
    title: str | None = None


class DocumentContent(FhirModel):
    attachment: AttachmentPayload | None = None


class DocumentReferencePayload(Resource):
    content: list[DocumentContent] = Field(default_factory=list)


class BundleEntry(FhirModel):
    resource: ResourceBody | None = None


class Bundle(FhirModel):
    resource_type: str = Field(alias="resourceType")
    entry: list[BundleEntry] = Field(default_factory=list)

    def resources(self, resource_type: str) -> list[ResourceBody]:
        """Entries of ``resource_type`` in bundle order."""

        return [
            entry.resource
            for entry in self.entry
            if isinstance(entry.resource, Mapping)
            and entry.resource.get("resourceType") == resource_type
        ]
