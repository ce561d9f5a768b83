"""FHIR REST implementation of the record store port."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from wellsync.adapters.gateway import AuthorizedGateway
from wellsync.domain.model import ResourceType, reference
from wellsync.domain.ports.errors import RecordStoreError

from .schema import Bundle, Resource
from .translator import (
    caregiver_link_resource,
    document_resource,
    encounter_resource,
    identity_link_resource,
    parse_caregiver_link,
    parse_document,
    parse_encounter,
    parse_identity_link,
    parse_person,
    parse_visit,
    patient_resource,
    visit_resource,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from wellsync.domain.documents import DocumentDraft
    from wellsync.domain.model import (
        CaregiverLink,
        ContactPoint,
        DocumentRecord,
        EncounterRecord,
        IdentityLink,
        InboundRecord,
        PersonRecord,
        VisitRecord,
    )
    from wellsync.domain.ports.records import RecordStore

    from .schema import ResourceBody

log = getLogger(__name__)


class FhirRecordStore(AuthorizedGateway):
    """Record store backed by a FHIR R4 API: search returns Bundles, writes are POST/PUT."""

    error_type = RecordStoreError

    # searches

    async def find_practitioner_ids(self, *, given: str, family: str) -> Sequence[str]:
        bundle = await self._search(ResourceType.PRACTITIONER, {"given": given, "family": family})
        return [parse_person(item).id for item in bundle.resources(ResourceType.PRACTITIONER)]

    async def find_patients(
        self,
        *,
        birthdate: str,
        postal_code: str,
        given: str,
        family: str,
    ) -> Sequence[PersonRecord]:
        bundle = await self._search(
            ResourceType.PATIENT,
            {
                "birthdate": birthdate,
                "address-postalcode": postal_code,
                "given": given,
                "family": family,
            },
        )
        return [parse_person(item) for item in bundle.resources(ResourceType.PATIENT)]

    async def find_caregiver_links(self, patient_id: str) -> Sequence[CaregiverLink]:
        bundle = await self._search(
            ResourceType.RELATED_PERSON, {"patient": reference(ResourceType.PATIENT, patient_id)}
        )
        return [
            parse_caregiver_link(item) for item in bundle.resources(ResourceType.RELATED_PERSON)
        ]

    async def find_identity_links(self, caregiver_link_id: str) -> Sequence[IdentityLink]:
        bundle = await self._search(
            ResourceType.PERSON,
            {"link": reference(ResourceType.RELATED_PERSON, caregiver_link_id)},
        )
        return [parse_identity_link(item) for item in bundle.resources(ResourceType.PERSON)]

    async def find_visits(self, order_id: str) -> Sequence[VisitRecord]:
        bundle = await self._search(ResourceType.APPOINTMENT, {"identifier": order_id})
        return [parse_visit(item) for item in bundle.resources(ResourceType.APPOINTMENT)]

    async def find_encounters(
        self, visit_id: str
    ) -> tuple[Sequence[EncounterRecord], Sequence[PersonRecord]]:
        bundle = await self._search(
            ResourceType.ENCOUNTER,
            {
                "appointment": reference(ResourceType.APPOINTMENT, visit_id),
                "_include": "Encounter:subject",
            },
        )
        encounters = [parse_encounter(item) for item in bundle.resources(ResourceType.ENCOUNTER)]
        patients = [parse_person(item) for item in bundle.resources(ResourceType.PATIENT)]
        return encounters, patients

    async def find_patient_links(
        self, patient_id: str
    ) -> tuple[Sequence[CaregiverLink], Sequence[IdentityLink]]:
        bundle = await self._search(
            ResourceType.RELATED_PERSON,
            {
                "patient": reference(ResourceType.PATIENT, patient_id),
                "_revinclude:iterate": "Person:link",
            },
        )
        caregiver_links = [
            parse_caregiver_link(item) for item in bundle.resources(ResourceType.RELATED_PERSON)
        ]
        identity_links = [
            parse_identity_link(item) for item in bundle.resources(ResourceType.PERSON)
        ]
        return caregiver_links, identity_links

    async def find_documents(self, encounter_id: str) -> Sequence[DocumentRecord]:
        bundle = await self._search(
            ResourceType.DOCUMENT_REFERENCE,
            {"encounter": reference(ResourceType.ENCOUNTER, encounter_id)},
        )
        return [parse_document(item) for item in bundle.resources(ResourceType.DOCUMENT_REFERENCE)]

    # writes

    async def save_patient(
        self, record: InboundRecord, *, patient_id: str | None = None
    ) -> PersonRecord:
        saved = await self._save(patient_resource(record, patient_id=patient_id))
        return parse_person(saved)

    async def save_caregiver_link(
        self,
        record: InboundRecord,
        *,
        patient_id: str,
        caregiver_link_id: str | None = None,
    ) -> CaregiverLink:
        saved = await self._save(
            caregiver_link_resource(
                record, patient_id=patient_id, caregiver_link_id=caregiver_link_id
            )
        )
        return parse_caregiver_link(saved)

    async def save_identity_link(
        self,
        *,
        telecom: Sequence[ContactPoint],
        caregiver_link_ids: Sequence[str],
        identity_link_id: str | None = None,
    ) -> IdentityLink:
        saved = await self._save(
            identity_link_resource(
                telecom=telecom,
                caregiver_link_ids=caregiver_link_ids,
                identity_link_id=identity_link_id,
            )
        )
        return parse_identity_link(saved)

    async def save_visit(
        self,
        record: InboundRecord,
        *,
        patient_id: str,
        location_id: str,
        visit_id: str | None = None,
    ) -> VisitRecord:
        saved = await self._save(
            visit_resource(
                record, patient_id=patient_id, location_id=location_id, visit_id=visit_id
            )
        )
        return parse_visit(saved)

    async def save_encounter(
        self,
        record: InboundRecord,
        *,
        patient_id: str,
        visit_id: str,
        location_id: str,
        encounter_id: str | None = None,
    ) -> EncounterRecord:
        saved = await self._save(
            encounter_resource(
                record,
                patient_id=patient_id,
                visit_id=visit_id,
                location_id=location_id,
                encounter_id=encounter_id,
            )
        )
        return parse_encounter(saved)

    async def save_document(self, draft: DocumentDraft) -> DocumentRecord:
        saved = await self._save(document_resource(draft))
        return parse_document(saved)

    # transport

    async def _search(self, resource_type: ResourceType, params: Mapping[str, str]) -> Bundle:
        query = {key: value for key, value in params.items() if value}
        response = await self.call("GET", f"/{resource_type}", params=query)
        try:
            bundle = Bundle.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            msg = f"Unexpected search response for {resource_type}"
            raise RecordStoreError(msg) from exc
        log.debug("Searched %s %s: %d entries", resource_type, sorted(query), len(bundle.entry))
        return bundle

    async def _save(self, body: ResourceBody) -> ResourceBody:
        resource_type = body["resourceType"]
        resource_id = body.get("id")
        if resource_id:
            response = await self.call("PUT", f"/{resource_type}/{resource_id}", json=body)
        else:
            response = await self.call("POST", f"/{resource_type}", json=body)

        try:
            saved = response.json()
            Resource.model_validate(saved)
        except (ValueError, ValidationError) as exc:
            msg = f"Unexpected write response for {resource_type}"
            raise RecordStoreError(msg) from exc

        log.info(
            "%s %s/%s", "Updated" if resource_id else "Created", resource_type, saved.get("id")
        )
        return saved


if TYPE_CHECKING:
    _store_check: RecordStore = FhirRecordStore.__new__(FhirRecordStore)
